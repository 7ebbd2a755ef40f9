"""Ordered, editable collection of extracted assets"""
from itertools import groupby
from pydantic import ValidationError
from typing import Awaitable, Callable, Dict, Iterator, List, Optional
import asyncio
import logging
from ..exceptions import InputValidationError
from ..models.asset import ExtractedAsset

logger = logging.getLogger(__name__)

REGENERATED_SUFFIX = " (regenerated)"

# Fields that may be edited through update_field, keyed by python name
EDITABLE_FIELDS = ("asset_id", "asset_type", "preview", "alt_text", "keywords", "taxonomy", "bounding_box")

# Produces replacement alt text for an asset
Regenerator = Callable[[ExtractedAsset], Awaitable[str]]


def _display_order(assets: List[ExtractedAsset]) -> List[ExtractedAsset]:
    """
    Stable sort by page, then by box top among the assets that have a box

    Boxless assets keep their slot within the page; the boxed assets of a
    page are sorted among the slots they occupy.
    """
    by_page = sorted(assets, key=lambda asset: asset.page_number)
    ordered: List[ExtractedAsset] = []
    for _, group in groupby(by_page, key=lambda asset: asset.page_number):
        page_assets = list(group)
        boxed = iter(sorted(
            (asset for asset in page_assets if asset.bounding_box is not None),
            key=lambda asset: asset.bounding_box.y,
        ))
        ordered.extend(
            next(boxed) if asset.bounding_box is not None else asset
            for asset in page_assets
        )
    return ordered


def _resolve_field(field: str) -> str:
    """Accept python field names or their camelCase aliases"""
    if field in ExtractedAsset.model_fields:
        return field
    for name, info in ExtractedAsset.model_fields.items():
        if info.alias == field:
            return name
    return field


class AssetCollection:
    """
    Assets in display order: page number ascending, then bounding box top
    when both assets have one, otherwise insertion order.

    All mutations are synchronous, so on a single event loop no reader ever
    sees a half-applied change.
    """

    def __init__(self):
        self._assets: List[ExtractedAsset] = []
        self.selected_id: Optional[str] = None

    def __iter__(self) -> Iterator[ExtractedAsset]:
        return iter(list(self._assets))

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: str) -> bool:
        return self.get(asset_id) is not None

    def get(self, asset_id: str) -> Optional[ExtractedAsset]:
        for asset in self._assets:
            if asset.id == asset_id:
                return asset
        return None

    def snapshot(self) -> List[ExtractedAsset]:
        """Deep copy of the current display order"""
        return [asset.model_copy(deep=True) for asset in self._assets]

    def by_id(self) -> Dict[str, ExtractedAsset]:
        return {asset.id: asset for asset in self._assets}

    def clear(self):
        self._assets = []
        self.selected_id = None

    def insert_all(self, new_assets: List[ExtractedAsset]):
        """Append assets then restore display order"""
        self._assets = _display_order(self._assets + list(new_assets))
        logger.debug(f"Inserted {len(new_assets)} assets, collection size {len(self._assets)}")

    def update_field(self, asset_id: str, field: str, value) -> Optional[ExtractedAsset]:
        """
        Replace one field of an asset

        Unknown ids are ignored. Unknown or immutable fields and values of the
        wrong type raise InputValidationError.
        """
        name = _resolve_field(field)
        if name not in EDITABLE_FIELDS:
            raise InputValidationError(f"Field '{field}' cannot be edited")

        asset = self.get(asset_id)
        if asset is None:
            logger.debug(f"update_field on missing asset {asset_id} ignored")
            return None

        try:
            setattr(asset, name, value)
        except ValidationError as e:
            raise InputValidationError(f"Invalid value for '{field}': {e.errors()[0]['msg']}") from e

        if name == "bounding_box":
            self.insert_all([])
        return asset

    def add_keyword(self, asset_id: str, text: str) -> Optional[ExtractedAsset]:
        keyword = (text or "").strip()
        asset = self.get(asset_id)
        if asset is None or not keyword:
            return asset
        asset.keywords = asset.keywords + [keyword]
        return asset

    def remove_keyword(self, asset_id: str, index: int) -> Optional[ExtractedAsset]:
        asset = self.get(asset_id)
        if asset is None or index < 0 or index >= len(asset.keywords):
            return asset
        asset.keywords = [k for i, k in enumerate(asset.keywords) if i != index]
        return asset

    def delete(self, asset_id: str) -> bool:
        """Remove an asset; clears the selection if it was selected"""
        before = len(self._assets)
        self._assets = [asset for asset in self._assets if asset.id != asset_id]
        if self.selected_id == asset_id:
            self.selected_id = None
        return len(self._assets) < before

    def select(self, asset_id: Optional[str]) -> Optional[ExtractedAsset]:
        """Select an asset (None or a missing id clears the selection)"""
        asset = self.get(asset_id) if asset_id else None
        self.selected_id = asset.id if asset else None
        return asset

    async def regenerate(
        self,
        asset_id: str,
        delay: float = 2.0,
        regenerator: Optional[Regenerator] = None
    ) -> Optional[ExtractedAsset]:
        """
        Replace one asset's alt text after a delay or a regenerator call

        Other mutations may run while this is suspended. If the asset is
        deleted in the meantime the result is dropped.
        """
        asset = self.get(asset_id)
        if asset is None:
            return None

        if regenerator is not None:
            new_alt_text = await regenerator(asset.model_copy(deep=True))
        else:
            await asyncio.sleep(delay)
            new_alt_text = None

        current = self.get(asset_id)
        if current is None:
            logger.debug(f"Asset {asset_id} deleted during regeneration, result dropped")
            return None

        current.alt_text = new_alt_text if new_alt_text is not None else current.alt_text + REGENERATED_SUFFIX
        return current
