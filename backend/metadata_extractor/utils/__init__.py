"""Utility functions and helpers"""
from .coordinates import to_percent, normalize_rect, clamp_box, percent_to_pixel_crop
from .export import assets_to_csv, CSV_HEADER, EXPORT_FILENAME
from .helpers import (
    generate_asset_id,
    generate_session_id,
    detect_mime_type,
)

__all__ = [
    "to_percent",
    "normalize_rect",
    "clamp_box",
    "percent_to_pixel_crop",
    "assets_to_csv",
    "CSV_HEADER",
    "EXPORT_FILENAME",
    "generate_asset_id",
    "generate_session_id",
    "detect_mime_type",
]
