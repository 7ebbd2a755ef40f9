"""API request and response models"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, List, Optional
from .asset import BoundingBox, ExtractedAsset
from .geometry import PageGeometry, PageRect, Point


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    EXTRACTING = "extracting"
    DONE = "done"
    ERROR = "error"


class Notification(BaseModel):
    """Dismissible message shown to the user"""
    id: str
    type: str  # "success", "error" or "info"
    message: str


class SelectionAffordance(BaseModel):
    """Confirm/cancel controls anchored below a proposed selection"""
    top: float  # percent of page height
    left: float  # percent of page width
    offset_px: int = 8
    generate_enabled: bool = True


class SelectionSnapshot(BaseModel):
    """Read-only view of the region selection controller"""
    state: str
    active: bool
    dragging: bool
    page_index: Optional[int] = None
    drag_start: Optional[Point] = None
    current_rect: Optional[BoundingBox] = None
    affordance: Optional[SelectionAffordance] = None


class SessionResponse(BaseModel):
    """Full state of a viewer session, polled by the UI"""
    session_id: str
    status: SessionStatus
    status_message: str = ""
    filename: Optional[str] = None
    page_count: int = 0
    page_geometry: List[PageGeometry] = Field(default_factory=list)
    assets: List[ExtractedAsset] = Field(default_factory=list)
    selected_asset_id: Optional[str] = None
    selection: Optional[SelectionSnapshot] = None
    notifications: List[Notification] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """Response for document upload"""
    session_id: str
    filename: str
    total_pages: int
    paginated: bool = True
    message: str = "Document loaded. Extraction started."


class UrlRequest(BaseModel):
    url: str


class ViewportRequest(BaseModel):
    scroll_top: float = Field(ge=0)
    viewport_height: float = Field(gt=0)


class PageState(BaseModel):
    page_index: int
    state: str
    error: Optional[str] = None


class AssetUpdateRequest(BaseModel):
    field: str
    value: Any


class KeywordRequest(BaseModel):
    text: str


class PointerDownRequest(BaseModel):
    page_index: Optional[int] = None  # None when the pointer is outside every page
    pointer: Point
    page_rect: PageRect


class PointerMoveRequest(BaseModel):
    pointer: Point
    page_rect: Optional[PageRect] = None


class SelectAssetResponse(BaseModel):
    selected_asset_id: Optional[str] = None
    scroll_to_page: Optional[int] = None
