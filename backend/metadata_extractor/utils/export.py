"""CSV export of extracted assets"""
from typing import Iterable, Optional
from ..models.asset import ExtractedAsset

CSV_HEADER = "Filename,Asset ID,Asset Type,Page/Location,Alt Text,Keywords,Taxonomy"
EXPORT_FILENAME = "metadata_export.csv"

_SPECIAL_CHARACTERS = (",", '"', "\r", "\n")


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _plain(value: str) -> str:
    """Write a field as-is unless it would break the row"""
    if any(character in value for character in _SPECIAL_CHARACTERS):
        return _quote(value)
    return value


def assets_to_csv(assets: Iterable[ExtractedAsset], filename: Optional[str] = None) -> str:
    """
    Serialize assets in display order

    Alt text, keywords and taxonomy are always quoted with inner quotes
    doubled. The remaining columns are quoted only when they contain a
    comma, a quote or a line break.
    """
    lines = [CSV_HEADER]
    for asset in assets:
        row = [
            _plain(filename or "document"),
            _plain(asset.asset_id),
            _plain(asset.asset_type.value),
            str(asset.page_number),
            _quote(asset.alt_text),
            _quote(", ".join(asset.keywords)),
            _quote(asset.taxonomy),
        ]
        lines.append(",".join(row))
    return "\r\n".join(lines) + "\r\n"
