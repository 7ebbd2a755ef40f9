"""Sequential page-by-page asset extraction"""
from typing import Awaitable, Callable, List, Optional, Union
from pydantic import BaseModel, Field
import asyncio
import logging
from ..exceptions import ExtractionError, MetadataExtractorError
from ..models.asset import ExtractedAsset
from ..models.geometry import PageGeometry
from ..models.usage import TokenUsage
from ..utils.helpers import generate_asset_id
from .document_renderer import DocumentHandle, DocumentRenderer
from .metadata_service import MetadataServiceBase

logger = logging.getLogger(__name__)

TOOL_NAME = "Metadata Extractor"

ABORT = "abort"
SKIP = "skip"

# Usage accounting hook: (user_id, tool_name) -> token usage
UsageHook = Callable[[int, str], Union[TokenUsage, Awaitable[TokenUsage]]]


class ExtractionResult(BaseModel):
    """Summary of a completed pipeline run"""
    total_assets: int
    prompt_tokens: int = 0
    response_tokens: int = 0
    failed_pages: List[int] = Field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.response_tokens


def compute_page_geometry(
    renderer: DocumentRenderer, document: DocumentHandle, scale: float
) -> List[PageGeometry]:
    """Display size of every page at a fixed scale"""
    geometry = []
    for page_index in range(renderer.page_count(document)):
        width, height = renderer.page_native_size(document, page_index)
        geometry.append(PageGeometry(page_index=page_index, width=width * scale, height=height * scale))
    return geometry


class ExtractionPipeline:
    """
    Drive extraction for a newly loaded document

    Pages are processed strictly one at a time, in order, so assets are
    published with non-decreasing page numbers and at most one page image
    and one service call are in flight.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        metadata_service: MetadataServiceBase,
        record_usage: Optional[UsageHook] = None,
        extraction_scale: float = 1.5,
        display_scale: float = 1.5,
        jpeg_quality: int = 80,
        page_failure_policy: str = ABORT
    ):
        """
        Initialize extraction pipeline

        Args:
            renderer: Document renderer used to rasterize pages
            metadata_service: Service returning asset descriptors per page
            record_usage: Usage accounting hook invoked after a successful run
            extraction_scale: Scale of page images sent to the service
            display_scale: Scale of the published page geometry
            jpeg_quality: JPEG quality of page images
            page_failure_policy: "abort" stops at the first failing page,
                "skip" logs it and continues with the next page
        """
        if page_failure_policy not in (ABORT, SKIP):
            raise ValueError(f"Unknown page failure policy: {page_failure_policy}")
        self.renderer = renderer
        self.metadata_service = metadata_service
        self.record_usage = record_usage
        self.extraction_scale = extraction_scale
        self.display_scale = display_scale
        self.jpeg_quality = jpeg_quality
        self.page_failure_policy = page_failure_policy

    async def run(
        self,
        document: DocumentHandle,
        user_id: Optional[int] = None,
        on_geometry: Optional[Callable[[List[PageGeometry]], None]] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
        on_assets: Optional[Callable[[List[ExtractedAsset]], None]] = None
    ) -> ExtractionResult:
        """
        Extract assets from every page of a PDF

        Args:
            document: Loaded PDF handle
            user_id: User charged for the run
            on_geometry: Receives page geometry for all pages before any page is analyzed
            on_progress: Receives (page_number, page_count) as each page starts
            on_assets: Receives the new assets of each page

        Returns:
            ExtractionResult with the asset total and token counts

        Raises:
            ExtractionError: A page failed and the policy is "abort". Assets of
                earlier pages have already been published.
        """
        page_count = self.renderer.page_count(document)
        logger.info(f"Starting extraction of {document.filename} ({page_count} pages)")

        try:
            geometry = await asyncio.to_thread(
                compute_page_geometry, self.renderer, document, self.display_scale
            )
        except MetadataExtractorError as e:
            raise ExtractionError(str(e)) from e
        if on_geometry:
            on_geometry(geometry)

        total_assets = 0
        failed_pages: List[int] = []

        for page_number in range(1, page_count + 1):
            if on_progress:
                on_progress(page_number, page_count)
            logger.debug(f"Analyzing page {page_number} of {page_count}")

            try:
                new_assets = await self._extract_page(document, page_number)
            except Exception as e:
                if self.page_failure_policy == SKIP:
                    logger.warning(f"Skipping page {page_number} after failure: {e}")
                    failed_pages.append(page_number)
                    continue
                logger.error(f"Extraction aborted on page {page_number}: {e}")
                raise ExtractionError(str(e), page_number=page_number) from e

            if new_assets:
                total_assets += len(new_assets)
                if on_assets:
                    on_assets(new_assets)

        result = ExtractionResult(total_assets=total_assets, failed_pages=failed_pages)
        if self.record_usage is not None and user_id is not None:
            usage = self.record_usage(user_id, TOOL_NAME)
            if asyncio.iscoroutine(usage):
                usage = await usage
            result.prompt_tokens = usage.prompt_tokens
            result.response_tokens = usage.response_tokens

        logger.info(
            f"Extraction complete: {total_assets} assets, "
            f"{result.total_tokens} tokens, {len(failed_pages)} failed pages"
        )
        return result

    async def _extract_page(self, document: DocumentHandle, page_number: int) -> List[ExtractedAsset]:
        image = await self.renderer.render_page_async(document, page_number - 1, self.extraction_scale)
        payload = await asyncio.to_thread(self.renderer.encode_jpeg, image, self.jpeg_quality)

        descriptors = await self.metadata_service.extract_assets_from_page(payload, "image/jpeg")

        return [
            ExtractedAsset(
                **descriptor.model_dump(),
                id=generate_asset_id(),
                page_number=page_number,
            )
            for descriptor in descriptors
        ]
