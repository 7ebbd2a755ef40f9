"""Dependency injection for API routes"""
import logging
from ..config import settings
from ..db import UsageStore
from ..services import (
    DocumentRenderer,
    DocumentFetcher,
    MetadataServiceBase,
    GeminiMetadataService,
    MockMetadataService,
    ViewerSession,
    SessionManager,
)

logger = logging.getLogger(__name__)


# Singleton instances
_document_renderer = None
_metadata_service = None
_usage_store = None
_document_fetcher = None
_session_manager = None


def get_document_renderer() -> DocumentRenderer:
    """Get DocumentRenderer singleton"""
    global _document_renderer
    if _document_renderer is None:
        _document_renderer = DocumentRenderer()
    return _document_renderer


def get_metadata_service() -> MetadataServiceBase:
    """Get metadata service singleton (mock when no API key is configured)"""
    global _metadata_service
    if _metadata_service is None:
        if settings.google_api_key:
            _metadata_service = GeminiMetadataService(
                google_api_key=settings.google_api_key,
                model_name=settings.gemini_model,
                temperature=settings.gemini_temperature,
                timeout=settings.gemini_timeout,
                max_retries=settings.gemini_max_retries
            )
        else:
            logger.warning("GOOGLE_API_KEY not set, using mock metadata service")
            _metadata_service = MockMetadataService(latency=settings.mock_latency)
    return _metadata_service


def get_usage_store() -> UsageStore:
    """Get UsageStore singleton"""
    global _usage_store
    if _usage_store is None:
        _usage_store = UsageStore()
    return _usage_store


def get_document_fetcher() -> DocumentFetcher:
    """Get DocumentFetcher singleton"""
    global _document_fetcher
    if _document_fetcher is None:
        _document_fetcher = DocumentFetcher(
            max_file_size=settings.max_file_size,
            timeout=settings.url_fetch_timeout
        )
    return _document_fetcher


def create_viewer_session() -> ViewerSession:
    """Build a session wired to the shared services"""
    return ViewerSession(
        renderer=get_document_renderer(),
        metadata_service=get_metadata_service(),
        usage_store=get_usage_store(),
        fetcher=get_document_fetcher(),
        max_file_size=settings.max_file_size,
        display_scale=settings.display_scale,
        extraction_scale=settings.extraction_scale,
        jpeg_quality=settings.jpeg_quality,
        preload_margin=settings.preload_margin,
        page_gap=settings.page_gap,
        regenerate_delay=settings.regenerate_delay,
        page_failure_policy=settings.page_failure_policy
    )


def get_session_manager() -> SessionManager:
    """Get SessionManager singleton"""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager(session_factory=create_viewer_session)
    return _session_manager
