"""Tests for pointer, percentage and raster conversions."""

import pytest

from metadata_extractor.models.asset import BoundingBox
from metadata_extractor.models.geometry import PageRect, Point
from metadata_extractor.utils.coordinates import (
    clamp_box,
    normalize_rect,
    percent_to_pixel_crop,
    to_percent,
)


def test_to_percent_relative_to_page_container() -> None:
    rect = PageRect(left=100, top=50, width=200, height=400)

    assert to_percent(Point(x=100, y=50), rect) == Point(x=0, y=0)
    assert to_percent(Point(x=300, y=450), rect) == Point(x=100, y=100)
    assert to_percent(Point(x=150, y=150), rect) == Point(x=25, y=25)


def test_to_percent_does_not_clamp_outside_points() -> None:
    rect = PageRect(left=0, top=0, width=100, height=100)

    point = to_percent(Point(x=-20, y=130), rect)

    assert point.x == pytest.approx(-20)
    assert point.y == pytest.approx(130)


@pytest.mark.parametrize(
    "start,current",
    [
        (Point(x=10, y=20), Point(x=40, y=60)),
        (Point(x=40, y=60), Point(x=10, y=20)),
        (Point(x=40, y=20), Point(x=10, y=60)),
        (Point(x=10, y=60), Point(x=40, y=20)),
    ],
)
def test_normalize_rect_is_direction_independent(start: Point, current: Point) -> None:
    box = normalize_rect(start, current)

    assert box == BoundingBox(x=10, y=20, width=30, height=40)


def test_clamp_box_clips_to_page() -> None:
    box = clamp_box(BoundingBox(x=-10, y=90, width=50, height=30))

    assert box == BoundingBox(x=0, y=90, width=40, height=10)


def test_clamp_box_keeps_inside_box() -> None:
    box = BoundingBox(x=5, y=5, width=10, height=10)

    assert clamp_box(box) == box


def test_percent_to_pixel_crop_scales_to_canvas() -> None:
    crop = percent_to_pixel_crop(BoundingBox(x=10, y=20, width=50, height=25), (918, 1188))

    assert crop.sx == pytest.approx(91.8)
    assert crop.sy == pytest.approx(237.6)
    assert crop.s_width == pytest.approx(459)
    assert crop.s_height == pytest.approx(297)


def test_full_page_round_trip_through_crop() -> None:
    rect = PageRect(left=0, top=0, width=918, height=1188)
    box = normalize_rect(to_percent(Point(x=0, y=0), rect), to_percent(Point(x=918, y=1188), rect))

    crop = percent_to_pixel_crop(box, (918, 1188))

    assert (crop.sx, crop.sy) == (0, 0)
    assert crop.s_width == pytest.approx(918)
    assert crop.s_height == pytest.approx(1188)
