"""Page geometry and coordinate models"""
from pydantic import BaseModel, Field


class PageGeometry(BaseModel):
    """Display size of a page at the session's render scale"""
    page_index: int
    width: float
    height: float


class Point(BaseModel):
    """A 2D point (pixels or percentages depending on context)"""
    x: float
    y: float


class PageRect(BaseModel):
    """Screen rectangle of a rendered page container, in pixels"""
    left: float
    top: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PixelCrop(BaseModel):
    """Source rectangle on a rasterized page, in pixels"""
    sx: float
    sy: float
    s_width: float
    s_height: float
