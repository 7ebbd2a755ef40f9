"""Viewport-driven lazy rendering of document pages"""
from enum import Enum
from typing import Dict, List, Optional
import asyncio
import logging
from ..models.geometry import PageGeometry
from .document_renderer import DocumentHandle, DocumentRenderer

logger = logging.getLogger(__name__)


class PageRenderState(str, Enum):
    UNOBSERVED = "unobserved"
    PENDING = "pending"
    RENDERED = "rendered"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LazyPageRenderer:
    """
    Renders each page once, when it first comes within the preload margin
    of the viewport.

    Pages move UNOBSERVED -> PENDING -> RENDERED (or FAILED). Observation is
    one-shot: a page never returns to UNOBSERVED, so at most one render is
    started per page for the lifetime of this renderer (one document load).
    After teardown every in-flight render is CANCELLED and its result is
    discarded when it resolves.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        document: DocumentHandle,
        geometry: List[PageGeometry],
        scale: float = 1.5,
        preload_margin: int = 500,
        page_gap: int = 16
    ):
        self.renderer = renderer
        self.document = document
        self.geometry = geometry
        self.scale = scale
        self.preload_margin = preload_margin
        self.page_gap = page_gap

        self._states: List[PageRenderState] = [PageRenderState.UNOBSERVED] * len(geometry)
        self._surfaces: Dict[int, bytes] = {}
        self._errors: Dict[int, str] = {}
        self._tasks: Dict[int, asyncio.Task] = {}
        self._torn_down = False

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def state(self, page_index: int) -> PageRenderState:
        return self._states[page_index]

    def surface(self, page_index: int) -> Optional[bytes]:
        """PNG bytes of a rendered page, or None"""
        return self._surfaces.get(page_index)

    def error(self, page_index: int) -> Optional[str]:
        return self._errors.get(page_index)

    def page_offsets(self) -> List[float]:
        """Top edge of each page when pages are stacked vertically"""
        offsets = []
        top = 0.0
        for page in self.geometry:
            offsets.append(top)
            top += page.height + self.page_gap
        return offsets

    def pages_near_viewport(self, scroll_top: float, viewport_height: float) -> List[int]:
        """Pages intersecting the viewport expanded by the preload margin"""
        low = scroll_top - self.preload_margin
        high = scroll_top + viewport_height + self.preload_margin
        near = []
        for index, top in enumerate(self.page_offsets()):
            bottom = top + self.geometry[index].height
            if bottom >= low and top <= high:
                near.append(index)
        return near

    def on_viewport(self, scroll_top: float, viewport_height: float) -> List[int]:
        """
        Handle a viewport report from the UI

        Returns:
            Indices of pages observed for the first time by this report
        """
        observed = [
            index for index in self.pages_near_viewport(scroll_top, viewport_height)
            if self.observe(index)
        ]
        if observed:
            logger.debug(f"Pages entering viewport: {[i + 1 for i in observed]}")
        return observed

    def observe(self, page_index: int) -> bool:
        """Start rendering a page if it has never been observed"""
        if self._torn_down or self._states[page_index] != PageRenderState.UNOBSERVED:
            return False
        self._states[page_index] = PageRenderState.PENDING
        self._tasks[page_index] = asyncio.create_task(self._render(page_index))
        return True

    async def wait_for(self, page_index: int) -> PageRenderState:
        """Await an in-flight render of a page, if any"""
        task = self._tasks.get(page_index)
        if task is not None:
            await asyncio.wait([task])
        return self._states[page_index]

    async def _render(self, page_index: int):
        try:
            image = await self.renderer.render_page_async(self.document, page_index, self.scale)
            surface = await asyncio.to_thread(self.renderer.encode_png, image)
        except asyncio.CancelledError:
            self._states[page_index] = PageRenderState.CANCELLED
            raise
        except Exception as e:
            if self._torn_down:
                return
            logger.warning(f"Render of page {page_index + 1} failed: {e}")
            self._states[page_index] = PageRenderState.FAILED
            self._errors[page_index] = str(e)
            return
        finally:
            self._tasks.pop(page_index, None)

        if self._torn_down:
            logger.debug(f"Discarding stale render of page {page_index + 1}")
            return

        self._surfaces[page_index] = surface
        self._states[page_index] = PageRenderState.RENDERED
        logger.debug(f"Rendered page {page_index + 1}")

    def teardown(self):
        """Cancel in-flight renders and drop all surfaces"""
        self._torn_down = True
        for page_index, task in list(self._tasks.items()):
            self._states[page_index] = PageRenderState.CANCELLED
            task.cancel()
        self._tasks.clear()
        self._surfaces.clear()
