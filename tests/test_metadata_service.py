"""Tests for the Gemini and mock metadata services."""

import base64

import pytest

from metadata_extractor.exceptions import ServiceError
from metadata_extractor.models.asset import (
    AssetType,
    DocumentAssetDescriptor,
    DocumentAssetList,
    PageAssetDescriptor,
    PageAssetList,
)
from metadata_extractor.services import metadata_service
from metadata_extractor.services.metadata_service import (
    MOCK_METADATA,
    GeminiMetadataService,
    MockMetadataService,
)


@pytest.fixture
def structured_llm(mocker):
    chat_cls = mocker.patch.object(metadata_service, "ChatGoogleGenerativeAI")
    structured = mocker.MagicMock()
    structured.ainvoke = mocker.AsyncMock()
    chat_cls.return_value.with_structured_output.return_value = structured
    return structured


def page_result(*assets: PageAssetDescriptor) -> dict:
    return {"raw": None, "parsed": PageAssetList(assets=list(assets)), "parsing_error": None}


@pytest.mark.anyio
async def test_page_request_sends_prompt_and_image(structured_llm) -> None:
    descriptor = PageAssetDescriptor(
        asset_id="Figure 1",
        asset_type=AssetType.GRAPH,
        preview="Line chart",
        alt_text="A line chart.",
        keywords=["chart"],
        taxonomy="Graph -> Time-series",
        bounding_box={"x": 1, "y": 2, "width": 3, "height": 4},
    )
    structured_llm.ainvoke.return_value = page_result(descriptor)
    service = GeminiMetadataService(google_api_key="test-key")

    assets = await service.extract_assets_from_page(b"jpeg-bytes")

    assert assets == [descriptor]
    message = structured_llm.ainvoke.call_args.args[0][0]
    text_part, image_part = message.content
    assert "bounding box" in text_part["text"]
    expected = base64.b64encode(b"jpeg-bytes").decode("utf-8")
    assert image_part["image_url"]["url"] == f"data:image/jpeg;base64,{expected}"


@pytest.mark.anyio
async def test_request_failure_becomes_service_error(structured_llm) -> None:
    structured_llm.ainvoke.side_effect = RuntimeError("503 unavailable")
    service = GeminiMetadataService(google_api_key="test-key")

    with pytest.raises(ServiceError, match="503 unavailable"):
        await service.generate_metadata_for_selection(b"png-bytes")


@pytest.mark.anyio
async def test_malformed_response_rejected(structured_llm) -> None:
    structured_llm.ainvoke.return_value = {
        "raw": None,
        "parsed": None,
        "parsing_error": ValueError("not json"),
    }
    service = GeminiMetadataService(google_api_key="test-key")

    with pytest.raises(ServiceError, match="malformed"):
        await service.extract_assets_from_page(b"jpeg-bytes")


@pytest.mark.anyio
async def test_document_mode_requires_input(structured_llm) -> None:
    service = GeminiMetadataService(google_api_key="test-key")

    with pytest.raises(ServiceError):
        await service.extract_from_document("")
    structured_llm.ainvoke.assert_not_called()


@pytest.mark.anyio
async def test_document_mode_sends_url_in_prompt(structured_llm) -> None:
    descriptor = DocumentAssetDescriptor(
        asset_id="Map 1",
        asset_type=AssetType.MAP,
        page_number=1,
        preview="Site map",
        alt_text="A map of the site.",
        keywords=["map"],
        taxonomy="Map -> Site",
    )
    structured_llm.ainvoke.return_value = {
        "raw": None,
        "parsed": DocumentAssetList(assets=[descriptor]),
        "parsing_error": None,
    }
    service = GeminiMetadataService(google_api_key="test-key")

    assets = await service.extract_from_document("https://example.com/brochure.html")

    assert assets == [descriptor]
    message = structured_llm.ainvoke.call_args.args[0][0]
    assert len(message.content) == 1
    assert "https://example.com/brochure.html" in message.content[0]["text"]


@pytest.mark.anyio
async def test_mock_service_cycles_page_results() -> None:
    service = MockMetadataService(latency=0)

    first = await service.extract_assets_from_page(b"")
    second = await service.extract_assets_from_page(b"")

    assert first[0].asset_id == MOCK_METADATA[0].asset_id
    assert second[0].asset_id == MOCK_METADATA[1].asset_id
    assert first[0].bounding_box is not None


@pytest.mark.anyio
async def test_mock_document_mode_returns_copies() -> None:
    service = MockMetadataService(latency=0)

    assets = await service.extract_from_document(url="https://example.com/paper.pdf")
    assets[0].alt_text = "changed"

    assert [a.page_number for a in assets] == [2, 3, 5, 7]
    assert MOCK_METADATA[0].alt_text != "changed"
