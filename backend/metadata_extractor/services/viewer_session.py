"""Viewer session orchestrating document, assets and selection"""
from typing import Dict, List, Optional, Tuple
import asyncio
import logging
from ..db.usage_store import UsageStore
from ..exceptions import (
    BudgetExceededError,
    InputValidationError,
    MetadataExtractorError,
    NotFoundError,
    SelectionStateError,
)
from ..models.asset import ExtractedAsset
from ..models.geometry import PageGeometry, PageRect, Point
from ..models.response import SessionResponse, SessionStatus
from ..utils.export import assets_to_csv
from ..utils.helpers import (
    DOCX_MIME_TYPE,
    detect_mime_type,
    filename_from_url,
    generate_asset_id,
    generate_session_id,
)
from .asset_collection import AssetCollection
from .document_fetcher import DocumentFetcher
from .document_renderer import DocumentHandle, DocumentRenderer
from .extraction_pipeline import ExtractionPipeline, ExtractionResult, TOOL_NAME, compute_page_geometry
from .metadata_service import MetadataServiceBase
from .notifications import Notifier
from .page_renderer import LazyPageRenderer, PageRenderState
from .region_selection import RegionSelectionController, describe_region
from .word_reader import read_word_document

logger = logging.getLogger(__name__)


def _close_document(document: DocumentHandle):
    """Close a document without blocking the event loop on a page render in progress"""
    document.closed = True
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        document.close()
        return
    loop.run_in_executor(None, document.close)


class ViewerSession:
    """
    Owns one loaded document and everything derived from it

    The session is the only writer of its asset collection. Loading a new
    document cancels any running extraction, tears down page rendering and
    clears assets, selection state and page geometry.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        metadata_service: MetadataServiceBase,
        usage_store: UsageStore,
        fetcher: Optional[DocumentFetcher] = None,
        session_id: Optional[str] = None,
        max_file_size: int = 100 * 1024 * 1024,
        display_scale: float = 1.5,
        extraction_scale: float = 1.5,
        jpeg_quality: int = 80,
        preload_margin: int = 500,
        page_gap: int = 16,
        regenerate_delay: float = 2.0,
        page_failure_policy: str = "abort"
    ):
        self.session_id = session_id or generate_session_id()
        self.renderer = renderer
        self.metadata_service = metadata_service
        self.usage_store = usage_store
        self.fetcher = fetcher or DocumentFetcher(max_file_size)
        self.max_file_size = max_file_size
        self.display_scale = display_scale
        self.extraction_scale = extraction_scale
        self.preload_margin = preload_margin
        self.page_gap = page_gap
        self.regenerate_delay = regenerate_delay

        self.pipeline = ExtractionPipeline(
            renderer=renderer,
            metadata_service=metadata_service,
            record_usage=usage_store.record_usage,
            extraction_scale=extraction_scale,
            display_scale=display_scale,
            jpeg_quality=jpeg_quality,
            page_failure_policy=page_failure_policy,
        )

        self.status = SessionStatus.IDLE
        self.status_message = ""
        self.progress: Optional[Tuple[int, int]] = None
        self.document: Optional[DocumentHandle] = None
        self.page_geometry: List[PageGeometry] = []
        self.collection = AssetCollection()
        self.notifier = Notifier()
        self.selection: Optional[RegionSelectionController] = None
        self.page_renderer: Optional[LazyPageRenderer] = None
        self.last_result: Optional[ExtractionResult] = None
        self._extraction_task: Optional[asyncio.Task] = None
        self._load_lock = asyncio.Lock()

    # --- Document loading ---

    def validate_upload(self, filename: Optional[str], size: int, content_type: Optional[str] = None) -> str:
        """
        Check an upload before any processing

        Returns:
            Resolved MIME type

        Raises:
            InputValidationError: No file, unsupported type or file too large
        """
        if not filename or size == 0:
            raise InputValidationError("Please upload a PDF or Word file.")
        if size > self.max_file_size:
            raise InputValidationError(
                f"File size cannot exceed {self.max_file_size // (1024 * 1024)}MB."
            )
        mime_type = detect_mime_type(filename, content_type)
        if mime_type is None:
            raise InputValidationError("Only PDF (.pdf) and Word (.docx) files are supported.")
        return mime_type

    async def load(self, filename: str, content: bytes, content_type: Optional[str] = None) -> DocumentHandle:
        """Load a document, replacing the current one and all derived state"""
        try:
            mime_type = self.validate_upload(filename, len(content), content_type)
        except InputValidationError as e:
            self.notifier.error(str(e))
            raise

        return await self._open_document(
            lambda: self.renderer.open(content, filename, mime_type), filename
        )

    async def load_url(self, url: str) -> DocumentHandle:
        """
        Download a document by URL and load it

        PDF and Word downloads load like uploads. Any other content is left
        for the metadata service to read from the URL itself.
        """
        try:
            content, content_type = await self.fetcher.fetch(url)
        except MetadataExtractorError as e:
            self.notifier.error(str(e))
            raise

        filename = filename_from_url(url)
        if detect_mime_type(filename, content_type) is not None:
            return await self.load(filename, content, content_type)

        logger.info(f"Session {self.session_id} using whole-document mode for {url[:80]}")
        return await self._open_document(
            lambda: DocumentHandle(filename, content, content_type or "", url=url), filename
        )

    async def _open_document(self, opener, filename: str) -> DocumentHandle:
        # Loads run one at a time so a slower earlier load cannot replace a later one
        async with self._load_lock:
            self._unload()
            self.status = SessionStatus.LOADING
            self.status_message = "Loading document..."

            try:
                document = await asyncio.to_thread(opener)
                geometry = []
                if document.paginated:
                    geometry = await asyncio.to_thread(
                        compute_page_geometry, self.renderer, document, self.display_scale
                    )
            except MetadataExtractorError as e:
                self._fail(str(e))
                raise

            self.document = document
            self.page_geometry = geometry
            if document.paginated:
                self.page_renderer = LazyPageRenderer(
                    self.renderer,
                    document,
                    geometry,
                    scale=self.display_scale,
                    preload_margin=self.preload_margin,
                    page_gap=self.page_gap,
                )
                self.selection = RegionSelectionController(
                    self.renderer,
                    self.metadata_service,
                    document,
                    on_asset=self._insert_selected_asset,
                    extraction_scale=self.extraction_scale,
                )

            self.status = SessionStatus.IDLE
            self.status_message = ""
            logger.info(f"Session {self.session_id} loaded {filename} ({document.page_count} pages)")
            return document

    def _unload(self):
        if self._extraction_task is not None and not self._extraction_task.done():
            logger.info(f"Cancelling running extraction in session {self.session_id}")
            self._extraction_task.cancel()
        self._extraction_task = None

        if self.page_renderer is not None:
            self.page_renderer.teardown()
            self.page_renderer = None
        if self.selection is not None:
            self.selection.close()
            self.selection = None
        if self.document is not None:
            _close_document(self.document)
            self.document = None

        self.collection.clear()
        self.page_geometry = []
        self.progress = None
        self.last_result = None

    def _fail(self, message: str):
        self.status = SessionStatus.ERROR
        self.status_message = message
        self.notifier.error(message)

    # --- Extraction ---

    def start_extraction(self) -> asyncio.Task:
        """
        Check the token budget and start extraction in the background

        Raises:
            InputValidationError: No document loaded, no current user, or already running
            BudgetExceededError: The current user's token cap is reached
        """
        try:
            if self.document is None:
                raise InputValidationError("Please upload a PDF file.")
            user = self.usage_store.current_user()
            if user is None:
                raise InputValidationError("No user logged in.")
            if user.budget_exhausted:
                raise BudgetExceededError("Token cap reached - contact admin.")
            if self.extraction_running:
                raise InputValidationError("Extraction is already running.")
        except MetadataExtractorError as e:
            self.notifier.error(str(e))
            raise

        self.collection.clear()
        self.status = SessionStatus.EXTRACTING
        self.status_message = "Starting extraction..."
        self._extraction_task = asyncio.create_task(self._run_extraction(self.document, user.id))
        return self._extraction_task

    async def extract(self) -> Optional[ExtractionResult]:
        """Run extraction to completion"""
        return await self.start_extraction()

    @property
    def extraction_running(self) -> bool:
        return self._extraction_task is not None and not self._extraction_task.done()

    async def _run_extraction(self, document: DocumentHandle, user_id: int) -> Optional[ExtractionResult]:
        try:
            if document.paginated:
                result = await self.pipeline.run(
                    document,
                    user_id=user_id,
                    on_geometry=self._publish_geometry,
                    on_progress=self._report_progress,
                    on_assets=self.collection.insert_all,
                )
            else:
                result = await self._run_whole_document(document, user_id)
        except Exception as e:
            logger.error(f"Processing failed in session {self.session_id}: {e}")
            self._fail(str(e) or "Processing failed. Please try again.")
            return None

        self.last_result = result
        self.status = SessionStatus.DONE
        self.status_message = ""
        self.notifier.success(
            f"Extraction complete! {result.total_assets} assets found. "
            f"{result.total_tokens:,} tokens used."
        )
        if result.failed_pages:
            self.notifier.error(f"Pages skipped after errors: {', '.join(map(str, result.failed_pages))}")
        return result

    async def _run_whole_document(self, document: DocumentHandle, user_id: int) -> ExtractionResult:
        self.status_message = "Analyzing document..."
        if document.mime_type == DOCX_MIME_TYPE:
            word = await asyncio.to_thread(read_word_document, document.content)
            descriptors = await self.metadata_service.extract_from_word(word.text, word.images)
        else:
            descriptors = await self.metadata_service.extract_from_document(url=document.url)

        assets = [
            ExtractedAsset(**descriptor.model_dump(), id=generate_asset_id())
            for descriptor in descriptors
        ]
        self.collection.insert_all(assets)

        usage = self.usage_store.record_usage(user_id, TOOL_NAME)
        return ExtractionResult(
            total_assets=len(assets),
            prompt_tokens=usage.prompt_tokens,
            response_tokens=usage.response_tokens,
        )

    def _publish_geometry(self, geometry: List[PageGeometry]):
        self.page_geometry = geometry

    def _report_progress(self, page_number: int, page_count: int):
        self.progress = (page_number, page_count)
        self.status_message = f"Analyzing page {page_number} of {page_count}..."

    # --- Asset operations ---

    def select_asset(self, asset_id: Optional[str]) -> Optional[int]:
        """
        Highlight an asset

        Returns:
            0-based index of the page to scroll into view, if known
        """
        asset = self.collection.select(asset_id)
        if asset is None or asset.page_number < 1:
            return None
        return asset.page_number - 1

    def update_field(self, asset_id: str, field: str, value) -> Optional[ExtractedAsset]:
        return self.collection.update_field(asset_id, field, value)

    def add_keyword(self, asset_id: str, text: str) -> Optional[ExtractedAsset]:
        return self.collection.add_keyword(asset_id, text)

    def remove_keyword(self, asset_id: str, index: int) -> Optional[ExtractedAsset]:
        return self.collection.remove_keyword(asset_id, index)

    def delete_asset(self, asset_id: str) -> bool:
        removed = self.collection.delete(asset_id)
        if removed:
            self.notifier.info("Asset removed.")
        return removed

    async def regenerate_asset(self, asset_id: str) -> Optional[ExtractedAsset]:
        """
        Regenerate one asset's alt text

        Assets with a known region on a loaded PDF are re-described by the
        metadata service; others get the simulated regeneration.
        """
        asset = self.collection.get(asset_id)
        if asset is None:
            return None

        self.notifier.info(f"Regenerating metadata for {asset.asset_id}...")
        regenerator = None
        document = self.document
        if document is not None and document.paginated and asset.bounding_box is not None:
            async def regenerator(target: ExtractedAsset) -> str:
                descriptor = await describe_region(
                    self.renderer,
                    self.metadata_service,
                    document,
                    target.page_number - 1,
                    target.bounding_box,
                    self.extraction_scale,
                )
                return descriptor.alt_text

        try:
            updated = await self.collection.regenerate(asset_id, self.regenerate_delay, regenerator)
        except Exception as e:
            logger.error(f"Error regenerating asset {asset_id}: {e}")
            self.notifier.error(f"Could not regenerate metadata for {asset.asset_id}.")
            raise

        if updated is not None:
            self.notifier.success(f"Metadata for {updated.asset_id} regenerated.")
        return updated

    def export_csv(self) -> str:
        filename = self.document.filename if self.document else None
        csv_text = assets_to_csv(self.collection, filename)
        self.notifier.info("CSV export initiated.")
        return csv_text

    # --- Region selection ---

    def _require_selection(self) -> RegionSelectionController:
        if self.selection is None:
            raise SelectionStateError("Region selection requires a loaded PDF document")
        return self.selection

    def _insert_selected_asset(self, asset: ExtractedAsset):
        self.collection.insert_all([asset])

    def toggle_selection(self):
        return self._require_selection().toggle()

    def pointer_down(self, page_index: Optional[int], pointer: Point, page_rect: PageRect) -> bool:
        return self._require_selection().pointer_down(page_index, pointer, page_rect)

    def pointer_move(self, pointer: Point, page_rect: Optional[PageRect] = None):
        return self._require_selection().pointer_move(pointer, page_rect)

    def pointer_up(self):
        return self._require_selection().pointer_up()

    def cancel_selection(self):
        self._require_selection().cancel()

    async def confirm_selection(self) -> ExtractedAsset:
        selection = self._require_selection()
        try:
            asset = await selection.confirm()
        except SelectionStateError:
            raise
        except Exception:
            self.notifier.error("Could not generate metadata for selection.")
            raise
        self.notifier.success(f'New asset "{asset.asset_id}" added!')
        return asset

    # --- Page rendering ---

    def report_viewport(self, scroll_top: float, viewport_height: float) -> List[int]:
        if self.page_renderer is None:
            return []
        return self.page_renderer.on_viewport(scroll_top, viewport_height)

    def page_state(self, page_index: int) -> Tuple[PageRenderState, Optional[str]]:
        if self.page_renderer is None or page_index < 0 or page_index >= len(self.page_geometry):
            raise NotFoundError(f"Page {page_index} not found")
        return self.page_renderer.state(page_index), self.page_renderer.error(page_index)

    def page_image(self, page_index: int) -> Optional[bytes]:
        self.page_state(page_index)
        return self.page_renderer.surface(page_index)

    async def wait_for_page(self, page_index: int) -> Tuple[PageRenderState, Optional[str]]:
        """Observe a page if needed and wait until its render settles"""
        self.page_state(page_index)
        self.page_renderer.observe(page_index)
        await self.page_renderer.wait_for(page_index)
        return self.page_state(page_index)

    # --- Lifecycle ---

    def reset(self):
        """Return to the input screen, e.g. after a failed extraction"""
        self._unload()
        self.status = SessionStatus.IDLE
        self.status_message = ""

    def close(self):
        self._unload()

    def dismiss_notification(self, notification_id: str) -> bool:
        return self.notifier.dismiss(notification_id)

    def to_response(self) -> SessionResponse:
        return SessionResponse(
            session_id=self.session_id,
            status=self.status,
            status_message=self.status_message,
            filename=self.document.filename if self.document else None,
            page_count=self.document.page_count if self.document else 0,
            page_geometry=list(self.page_geometry),
            assets=self.collection.snapshot(),
            selected_asset_id=self.collection.selected_id,
            selection=self.selection.snapshot() if self.selection else None,
            notifications=self.notifier.list(),
        )


class SessionManager:
    """In-memory registry of viewer sessions"""

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._sessions: Dict[str, ViewerSession] = {}

    def create(self) -> ViewerSession:
        session = self._session_factory()
        self._sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get(self, session_id: str) -> ViewerSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def close(self, session_id: str):
        session = self.get(session_id)
        session.close()
        del self._sessions[session_id]
        logger.info(f"Closed session {session_id}")

    def close_all(self):
        for session_id in list(self._sessions):
            self.close(session_id)
