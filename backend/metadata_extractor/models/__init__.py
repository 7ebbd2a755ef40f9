"""Data models for the application"""
from .asset import (
    AssetType,
    BoundingBox,
    AssetDescriptor,
    PageAssetDescriptor,
    DocumentAssetDescriptor,
    PageAssetList,
    DocumentAssetList,
    ExtractedAsset,
)
from .geometry import PageGeometry, Point, PageRect, PixelCrop
from .usage import Role, User, UsageLog, TokenUsage, UserCreateRequest, UserUpdateRequest, CurrentUserRequest
from .response import (
    SessionStatus,
    Notification,
    SelectionAffordance,
    SelectionSnapshot,
    SessionResponse,
    UploadResponse,
)

__all__ = [
    "AssetType",
    "BoundingBox",
    "AssetDescriptor",
    "PageAssetDescriptor",
    "DocumentAssetDescriptor",
    "PageAssetList",
    "DocumentAssetList",
    "ExtractedAsset",
    "PageGeometry",
    "Point",
    "PageRect",
    "PixelCrop",
    "Role",
    "User",
    "UsageLog",
    "TokenUsage",
    "UserCreateRequest",
    "UserUpdateRequest",
    "CurrentUserRequest",
    "SessionStatus",
    "Notification",
    "SelectionAffordance",
    "SelectionSnapshot",
    "SessionResponse",
    "UploadResponse",
]
