"""Service layer for business logic"""
from .document_renderer import DocumentHandle, DocumentRenderer
from .document_fetcher import DocumentFetcher
from .metadata_service import MetadataServiceBase, GeminiMetadataService, MockMetadataService
from .asset_collection import AssetCollection
from .page_renderer import LazyPageRenderer, PageRenderState
from .extraction_pipeline import ExtractionPipeline, ExtractionResult
from .region_selection import RegionSelectionController, SelectionState
from .notifications import Notifier
from .viewer_session import ViewerSession, SessionManager

__all__ = [
    "DocumentHandle",
    "DocumentRenderer",
    "DocumentFetcher",
    "MetadataServiceBase",
    "GeminiMetadataService",
    "MockMetadataService",
    "AssetCollection",
    "LazyPageRenderer",
    "PageRenderState",
    "ExtractionPipeline",
    "ExtractionResult",
    "RegionSelectionController",
    "SelectionState",
    "Notifier",
    "ViewerSession",
    "SessionManager",
]
