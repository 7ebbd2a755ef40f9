"""Interactive rectangle selection and on-demand metadata generation"""
from enum import Enum
from typing import Callable, Optional
import asyncio
import logging
from ..exceptions import SelectionStateError
from ..models.asset import AssetDescriptor, BoundingBox, ExtractedAsset
from ..models.geometry import PageRect, Point
from ..models.response import SelectionAffordance, SelectionSnapshot
from ..utils.coordinates import clamp_box, normalize_rect, percent_to_pixel_crop, to_percent
from ..utils.helpers import generate_asset_id
from .document_renderer import DocumentHandle, DocumentRenderer
from .metadata_service import MetadataServiceBase

logger = logging.getLogger(__name__)


async def describe_region(
    renderer: DocumentRenderer,
    metadata_service: MetadataServiceBase,
    document: DocumentHandle,
    page_index: int,
    box: BoundingBox,
    scale: float = 1.5
) -> AssetDescriptor:
    """Render one page, crop it to a percentage box and describe the crop"""
    image = await renderer.render_page_async(document, page_index, scale)
    crop = percent_to_pixel_crop(box, image.size)
    region = renderer.crop(image, crop)
    payload = await asyncio.to_thread(renderer.encode_png, region)
    return await metadata_service.generate_metadata_for_selection(payload, "image/png")


class SelectionState(str, Enum):
    INACTIVE = "inactive"
    IDLE = "idle"
    DRAGGING = "dragging"
    PROPOSED = "proposed"
    GENERATING = "generating"


class RegionSelectionController:
    """
    Click-drag-release selection of a page region, then single-asset generation

    INACTIVE <-> IDLE via toggle; IDLE -> DRAGGING on pointer down over a page;
    DRAGGING -> PROPOSED on pointer up; PROPOSED -> INACTIVE on cancel;
    PROPOSED -> GENERATING on confirm, then INACTIVE whether generation
    succeeds or fails. Only one generation is in flight at a time.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        metadata_service: MetadataServiceBase,
        document: DocumentHandle,
        on_asset: Callable[[ExtractedAsset], None],
        extraction_scale: float = 1.5
    ):
        self.renderer = renderer
        self.metadata_service = metadata_service
        self.document = document
        self.on_asset = on_asset
        self.extraction_scale = extraction_scale

        self.state = SelectionState.INACTIVE
        self.page_index: Optional[int] = None
        self.drag_start: Optional[Point] = None
        self.current_rect: Optional[BoundingBox] = None
        self._page_rect: Optional[PageRect] = None
        self._closed = False

    @property
    def active(self) -> bool:
        return self.state != SelectionState.INACTIVE

    @property
    def dragging(self) -> bool:
        return self.state == SelectionState.DRAGGING

    def _clear(self, state: SelectionState):
        self.state = state
        self.page_index = None
        self.drag_start = None
        self.current_rect = None
        self._page_rect = None

    def _reject_while_generating(self, operation: str):
        if self.state == SelectionState.GENERATING:
            raise SelectionStateError(f"Cannot {operation} while metadata is being generated")

    def toggle(self) -> SelectionState:
        """Switch selection mode on or off"""
        self._reject_while_generating("toggle selection mode")
        if self.state == SelectionState.INACTIVE:
            self._clear(SelectionState.IDLE)
        else:
            self._clear(SelectionState.INACTIVE)
        logger.debug(f"Selection mode: {self.state.value}")
        return self.state

    def pointer_down(self, page_index: Optional[int], pointer_px: Point, page_rect_px: PageRect) -> bool:
        """
        Start a drag on a page container

        Ignored (returns False) when selection mode is off or the pointer is
        not over a known page. Starting a drag discards any proposed rectangle.
        """
        self._reject_while_generating("start a selection")
        if self.state == SelectionState.INACTIVE:
            return False
        if page_index is None or page_index < 0 or page_index >= self.document.page_count:
            return False

        start = to_percent(pointer_px, page_rect_px)
        self.state = SelectionState.DRAGGING
        self.page_index = page_index
        self._page_rect = page_rect_px
        self.drag_start = start
        self.current_rect = BoundingBox(x=start.x, y=start.y, width=0, height=0)
        return True

    def pointer_move(self, pointer_px: Point, page_rect_px: Optional[PageRect] = None) -> Optional[BoundingBox]:
        """
        Update the rectangle against the page captured at drag start

        page_rect_px is that same page's current screen rect (it moves when
        the viewer scrolls). Coordinates are not clamped while dragging.
        """
        if self.state != SelectionState.DRAGGING:
            return None
        if page_rect_px is not None:
            self._page_rect = page_rect_px
        current = to_percent(pointer_px, self._page_rect)
        self.current_rect = normalize_rect(self.drag_start, current)
        return self.current_rect

    def pointer_up(self) -> Optional[BoundingBox]:
        """Freeze the rectangle, clipped to the page, and propose it"""
        if self.state != SelectionState.DRAGGING:
            return None
        self.current_rect = clamp_box(self.current_rect)
        self.drag_start = None
        self.state = SelectionState.PROPOSED
        return self.current_rect

    def cancel(self):
        """Dismiss the selection and leave selection mode"""
        self._reject_while_generating("cancel")
        self._clear(SelectionState.INACTIVE)

    async def confirm(self) -> ExtractedAsset:
        """
        Generate metadata for the proposed rectangle

        Renders only the selected page, crops to the rectangle and asks the
        service for exactly one descriptor. Selection state is cleared and
        selection mode exits whether or not generation succeeds.

        Raises:
            SelectionStateError: No rectangle is proposed
            RenderError: The page could not be rendered
            ServiceError: The metadata service failed
        """
        if self.state != SelectionState.PROPOSED:
            raise SelectionStateError(f"No selection to confirm (state: {self.state.value})")

        page_index = self.page_index
        box = self.current_rect.model_copy()
        self.state = SelectionState.GENERATING
        logger.info(f"Generating metadata for selection on page {page_index + 1}")

        try:
            descriptor = await describe_region(
                self.renderer,
                self.metadata_service,
                self.document,
                page_index,
                box,
                self.extraction_scale,
            )

            asset = ExtractedAsset(
                **descriptor.model_dump(exclude={"bounding_box", "page_number"}),
                id=generate_asset_id(),
                page_number=page_index + 1,
                bounding_box=box,
            )
            if self._closed:
                logger.debug("Selection finished after its document was unloaded, result dropped")
            else:
                self.on_asset(asset)
                logger.info(f"New asset \"{asset.asset_id}\" added from selection")
            return asset
        except Exception as e:
            logger.error(f"Failed to generate metadata for selection: {e}")
            raise
        finally:
            self._clear(SelectionState.INACTIVE)

    def affordance(self) -> Optional[SelectionAffordance]:
        """Confirm/cancel controls anchored below the frozen rectangle"""
        if self.state not in (SelectionState.PROPOSED, SelectionState.GENERATING):
            return None
        return SelectionAffordance(
            top=self.current_rect.y + self.current_rect.height,
            left=self.current_rect.x,
            generate_enabled=self.state == SelectionState.PROPOSED,
        )

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            state=self.state.value,
            active=self.active,
            dragging=self.dragging,
            page_index=self.page_index,
            drag_start=self.drag_start,
            current_rect=self.current_rect,
            affordance=self.affordance(),
        )

    def close(self):
        """Detach from the session; a generation finishing later is dropped"""
        self._closed = True
