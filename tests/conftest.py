"""Shared fixtures: generated PDFs and a scriptable metadata service."""

import io
from typing import Callable, Dict, List, Optional, Union

import fitz
import pytest
from docx import Document
from PIL import Image

from metadata_extractor.db.usage_store import UsageStore
from metadata_extractor.models.asset import (
    AssetDescriptor,
    AssetType,
    DocumentAssetDescriptor,
    PageAssetDescriptor,
)
from metadata_extractor.services.document_renderer import DocumentRenderer
from metadata_extractor.services.metadata_service import MetadataServiceBase
from metadata_extractor.services.viewer_session import ViewerSession


@pytest.fixture
def anyio_backend():
    return "asyncio"


def build_pdf(page_count: int = 3, width: float = 612, height: float = 792) -> bytes:
    doc = fitz.open()
    for index in range(page_count):
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), f"Page {index + 1}", fontsize=24)
        page.draw_rect(fitz.Rect(100, 200, 400, 400), color=(0, 0, 1), fill=(0.8, 0.8, 1))
    content = doc.tobytes()
    doc.close()
    return content


def build_docx(text: str = "Table 1 shows results.", with_image: bool = True) -> bytes:
    document = Document()
    document.add_paragraph(text)
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Month"
    table.cell(0, 1).text = "Users"
    table.cell(1, 0).text = "January"
    table.cell(1, 1).text = "120"
    if with_image:
        image = io.BytesIO()
        Image.new("RGB", (20, 10), (255, 0, 0)).save(image, format="PNG")
        image.seek(0)
        document.add_picture(image)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def page_descriptor(asset_id: str, y: Optional[float] = None, **overrides) -> PageAssetDescriptor:
    values = dict(
        asset_id=asset_id,
        asset_type=AssetType.FIGURE,
        preview=f"Preview of {asset_id}",
        alt_text=f"Alt text of {asset_id}",
        keywords=["alpha", "beta"],
        taxonomy="Figure -> Diagram",
        bounding_box=None if y is None else {"x": 10.0, "y": y, "width": 50.0, "height": 20.0},
    )
    values.update(overrides)
    return PageAssetDescriptor(**values)


PageScript = Union[List[PageAssetDescriptor], Exception]


class FakeMetadataService(MetadataServiceBase):
    """Returns scripted descriptors per page call and records every call."""

    def __init__(
        self,
        pages: Optional[Dict[int, PageScript]] = None,
        selection: Optional[Union[AssetDescriptor, Exception]] = None,
        document: Optional[List[DocumentAssetDescriptor]] = None,
    ):
        self.pages = pages or {}
        self.selection = selection
        self.document = document or []
        self.page_calls: List[bytes] = []
        self.selection_calls: List[bytes] = []
        self.document_urls: List[str] = []
        self.word_calls: List[tuple] = []
        self.before_page: Optional[Callable[[int], object]] = None

    async def extract_assets_from_page(self, image_bytes, mime_type="image/jpeg"):
        self.page_calls.append(image_bytes)
        page_number = len(self.page_calls)
        if self.before_page is not None:
            await self.before_page(page_number)
        script = self.pages.get(page_number, [])
        if isinstance(script, Exception):
            raise script
        return [descriptor.model_copy(deep=True) for descriptor in script]

    async def generate_metadata_for_selection(self, image_bytes, mime_type="image/png"):
        self.selection_calls.append(image_bytes)
        if isinstance(self.selection, Exception):
            raise self.selection
        if self.selection is None:
            return AssetDescriptor(
                asset_id="Figure 9",
                asset_type=AssetType.FIGURE,
                preview="Selected figure",
                alt_text="A selected figure.",
                keywords=["selected"],
                taxonomy="Figure -> Selection",
            )
        return self.selection

    async def extract_from_document(self, url):
        self.document_urls.append(url)
        return [descriptor.model_copy(deep=True) for descriptor in self.document]

    async def extract_from_word(self, text, images):
        self.word_calls.append((text, images))
        return [descriptor.model_copy(deep=True) for descriptor in self.document]


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(3)


@pytest.fixture
def renderer() -> DocumentRenderer:
    return DocumentRenderer()


@pytest.fixture
def fake_service() -> FakeMetadataService:
    return FakeMetadataService()


@pytest.fixture
def pdf_document(renderer, pdf_bytes):
    document = renderer.open(pdf_bytes, "report.pdf", "application/pdf")
    yield document
    document.close()


@pytest.fixture
def usage_store() -> UsageStore:
    return UsageStore()


@pytest.fixture
def make_session(renderer, usage_store) -> Callable[..., ViewerSession]:
    sessions = []

    def _factory(service: MetadataServiceBase, **kwargs) -> ViewerSession:
        kwargs.setdefault("regenerate_delay", 0)
        session = ViewerSession(renderer=renderer, metadata_service=service, usage_store=usage_store, **kwargs)
        sessions.append(session)
        return session

    yield _factory
    for session in sessions:
        session.close()
