"""Tests for PyMuPDF document loading and rasterization."""

import io

import pytest
from PIL import Image

from conftest import build_pdf
from metadata_extractor.exceptions import RenderError
from metadata_extractor.models.geometry import PixelCrop
from metadata_extractor.utils.helpers import DOCX_MIME_TYPE, PDF_MIME_TYPE


def test_open_pdf_reports_pages(renderer, pdf_document) -> None:
    assert pdf_document.paginated
    assert renderer.page_count(pdf_document) == 3
    assert renderer.page_native_size(pdf_document, 0) == pytest.approx((612, 792))


def test_open_invalid_pdf_raises(renderer) -> None:
    with pytest.raises(RenderError):
        renderer.open(b"not a pdf", "broken.pdf", PDF_MIME_TYPE)


def test_word_document_kept_unpaginated(renderer) -> None:
    document = renderer.open(b"docx-bytes", "notes.docx", DOCX_MIME_TYPE)

    assert not document.paginated
    assert document.page_count == 0
    assert document.size == len(b"docx-bytes")


def test_render_page_at_scale(renderer, pdf_document) -> None:
    image = renderer.render_page(pdf_document, 1, 1.5)

    assert image.mode == "RGB"
    assert image.size == (918, 1188)


def test_render_out_of_range_page_raises(renderer, pdf_document) -> None:
    with pytest.raises(RenderError):
        renderer.render_page(pdf_document, 3, 1.5)


def test_render_after_close_raises(renderer) -> None:
    document = renderer.open(build_pdf(1), "one.pdf", PDF_MIME_TYPE)
    document.close()

    assert document.page_count == 1
    with pytest.raises(RenderError):
        renderer.render_page(document, 0, 1.0)


@pytest.mark.anyio
async def test_render_page_async(renderer, pdf_document) -> None:
    image = await renderer.render_page_async(pdf_document, 0, 1.0)

    assert image.size == (612, 792)


def test_crop_is_at_least_one_pixel(renderer) -> None:
    image = Image.new("RGB", (100, 100))

    region = renderer.crop(image, PixelCrop(sx=50, sy=50, s_width=0, s_height=0))

    assert region.size == (1, 1)


def test_encoders_produce_images(renderer) -> None:
    image = Image.new("RGB", (10, 10), (0, 128, 255))

    jpeg = renderer.encode_jpeg(image, 80)
    png = renderer.encode_png(image)

    assert Image.open(io.BytesIO(jpeg)).format == "JPEG"
    assert Image.open(io.BytesIO(png)).format == "PNG"
