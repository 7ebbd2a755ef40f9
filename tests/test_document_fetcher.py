"""Tests for URL downloads and loading documents by URL."""

import httpx
import pytest

from metadata_extractor.exceptions import InputValidationError, RenderError
from metadata_extractor.services.document_fetcher import DocumentFetcher


def make_fetcher(handler, max_file_size: int = 100) -> DocumentFetcher:
    return DocumentFetcher(max_file_size, transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_declared_size_over_limit_rejected() -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(200, headers={"content-length": "1000"}, content=b"%PDF"))

    with pytest.raises(InputValidationError, match="File size cannot exceed"):
        await fetcher.fetch("https://example.com/big.pdf")


@pytest.mark.anyio
async def test_streamed_body_over_limit_rejected() -> None:
    async def body():
        for _ in range(5):
            yield b"x" * 40

    fetcher = make_fetcher(lambda request: httpx.Response(200, content=body()))

    with pytest.raises(InputValidationError, match="File size cannot exceed"):
        await fetcher.fetch("https://example.com/chunked.pdf")


@pytest.mark.anyio
async def test_non_http_url_rejected_without_request() -> None:
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, content=b"")

    with pytest.raises(InputValidationError, match="valid http"):
        await make_fetcher(handler).fetch("ftp://example.com/report.pdf")
    assert requests == []


@pytest.mark.anyio
async def test_http_error_becomes_render_error() -> None:
    fetcher = make_fetcher(lambda request: httpx.Response(404, content=b"missing"))

    with pytest.raises(RenderError, match="Could not download document"):
        await fetcher.fetch("https://example.com/missing.pdf")


@pytest.mark.anyio
async def test_returns_content_and_type() -> None:
    fetcher = make_fetcher(
        lambda request: httpx.Response(200, headers={"content-type": "application/pdf"}, content=b"%PDF-1.7")
    )

    content, content_type = await fetcher.fetch("https://example.com/small.pdf")

    assert content == b"%PDF-1.7"
    assert content_type == "application/pdf"


@pytest.mark.anyio
async def test_session_loads_pdf_by_url(make_session, fake_service, pdf_bytes) -> None:
    fetcher = DocumentFetcher(
        10 * 1024 * 1024,
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, headers={"content-type": "application/pdf"}, content=pdf_bytes)
        ),
    )
    session = make_session(fake_service, fetcher=fetcher)

    document = await session.load_url("https://example.com/files/report.pdf?download=1")

    assert document.paginated
    assert document.page_count == 3
    assert document.filename == "report.pdf"
    assert len(session.page_geometry) == 3
