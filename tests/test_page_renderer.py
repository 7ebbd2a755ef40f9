"""Tests for viewport-driven lazy page rendering."""

import asyncio

import pytest

from metadata_extractor.services.extraction_pipeline import compute_page_geometry
from metadata_extractor.services.page_renderer import LazyPageRenderer, PageRenderState


@pytest.fixture
def lazy_renderer(renderer, pdf_document):
    geometry = compute_page_geometry(renderer, pdf_document, 1.5)
    lazy = LazyPageRenderer(renderer, pdf_document, geometry, scale=1.5, preload_margin=500, page_gap=16)
    yield lazy
    lazy.teardown()


def test_pages_stack_with_gap(lazy_renderer) -> None:
    assert lazy_renderer.page_offsets() == pytest.approx([0, 1204, 2408])


def test_preload_margin_extends_viewport(lazy_renderer) -> None:
    assert lazy_renderer.pages_near_viewport(0, 800) == [0, 1]
    assert lazy_renderer.pages_near_viewport(0, 100) == [0]
    assert lazy_renderer.pages_near_viewport(2500, 600) == [1, 2]


@pytest.mark.anyio
async def test_pages_render_once_when_observed(lazy_renderer, renderer, mocker) -> None:
    render_spy = mocker.spy(renderer, "render_page_async")

    assert lazy_renderer.on_viewport(0, 800) == [0, 1]
    assert lazy_renderer.state(2) == PageRenderState.UNOBSERVED

    await lazy_renderer.wait_for(0)
    await lazy_renderer.wait_for(1)
    assert lazy_renderer.on_viewport(0, 800) == []

    assert render_spy.call_count == 2
    assert lazy_renderer.state(0) == PageRenderState.RENDERED
    assert lazy_renderer.surface(0).startswith(b"\x89PNG")


@pytest.mark.anyio
async def test_failed_render_stays_failed(lazy_renderer, renderer, mocker) -> None:
    mocker.patch.object(renderer, "render_page_async", side_effect=RuntimeError("corrupt page"))

    lazy_renderer.observe(2)
    state = await lazy_renderer.wait_for(2)

    assert state == PageRenderState.FAILED
    assert lazy_renderer.error(2) == "corrupt page"
    assert lazy_renderer.observe(2) is False


@pytest.mark.anyio
async def test_teardown_cancels_and_discards(lazy_renderer, renderer, mocker) -> None:
    async def slow_render(*args):
        await asyncio.sleep(10)

    mocker.patch.object(renderer, "render_page_async", side_effect=slow_render)
    lazy_renderer.on_viewport(0, 100)
    await asyncio.sleep(0)

    lazy_renderer.teardown()
    await asyncio.sleep(0)

    assert lazy_renderer.state(0) == PageRenderState.CANCELLED
    assert lazy_renderer.surface(0) is None
    assert lazy_renderer.observe(1) is False
