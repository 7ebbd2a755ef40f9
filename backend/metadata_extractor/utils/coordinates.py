"""Conversions between pointer pixels, page percentages and raster crops"""
from typing import Tuple
from ..models.asset import BoundingBox
from ..models.geometry import PageRect, PixelCrop, Point


def to_percent(pointer_px: Point, page_rect_px: PageRect) -> Point:
    """
    Express a pointer position as percentages of a page container

    The page rect must have a non-zero size. Points outside the container
    map to values below 0 or above 100; they are not clamped.
    """
    return Point(
        x=100 * (pointer_px.x - page_rect_px.left) / page_rect_px.width,
        y=100 * (pointer_px.y - page_rect_px.top) / page_rect_px.height,
    )


def normalize_rect(start: Point, current: Point) -> BoundingBox:
    """Bounding box spanned by a drag, independent of drag direction"""
    return BoundingBox(
        x=min(start.x, current.x),
        y=min(start.y, current.y),
        width=abs(current.x - start.x),
        height=abs(current.y - start.y),
    )


def clamp_box(box: BoundingBox) -> BoundingBox:
    """Clip a box to the 0-100 page square"""
    x0 = min(max(box.x, 0.0), 100.0)
    y0 = min(max(box.y, 0.0), 100.0)
    x1 = min(max(box.x + box.width, 0.0), 100.0)
    y1 = min(max(box.y + box.height, 0.0), 100.0)
    return BoundingBox(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def percent_to_pixel_crop(box: BoundingBox, canvas_size_px: Tuple[int, int]) -> PixelCrop:
    """Scale a percentage box onto a raster of the given (width, height)"""
    width, height = canvas_size_px
    return PixelCrop(
        sx=(box.x / 100) * width,
        sy=(box.y / 100) * height,
        s_width=(box.width / 100) * width,
        s_height=(box.height / 100) * height,
    )
