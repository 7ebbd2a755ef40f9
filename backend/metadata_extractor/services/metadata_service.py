"""Metadata generation service using Google Gemini"""
from abc import ABC, abstractmethod
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import HumanMessage
from typing import List, Tuple, Type
from pydantic import BaseModel
import asyncio
import base64
import logging
from ..exceptions import ServiceError
from ..models.asset import (
    AssetDescriptor,
    AssetType,
    DocumentAssetDescriptor,
    DocumentAssetList,
    PageAssetDescriptor,
    PageAssetList,
)

logger = logging.getLogger(__name__)


PAGE_PROMPT = (
    "Analyze this image of a single document page. Find ALL figures, tables, images, "
    "equations, maps, and graphs on it. For each asset found, extract its metadata "
    "completely and accurately, and give its bounding box as percentages (0-100) of the "
    "page width and height. Return an empty list if the page has no assets."
)

SELECTION_PROMPT = (
    "This image is a region a user selected on a document page because it contains a "
    "single asset (figure, table, image, equation, map, or graph). Describe that one "
    "asset and generate its metadata completely and accurately."
)

DOCUMENT_PROMPT = (
    "Analyze the provided document. Your task is to find ALL figures, tables, images, "
    "equations, maps, and graphs. For each asset found, extract its metadata completely "
    "and accurately. Ensure 100% coverage of all assets in the document. Provide the page "
    "number for each asset."
)

WORD_PROMPT = (
    'Analyze the provided document content extracted from a Word (.docx) file. The raw '
    'text is: "{text}". The document also contains {image_count} images, which are '
    "provided as subsequent parts. Your task is to find ALL figures, tables (from the "
    "text), images, equations, maps, and graphs. For each asset found, extract its "
    "metadata completely and accurately. Ensure 100% coverage. Match images to their "
    "context in the text for accurate metadata. Provide an approximate page number if "
    "possible, otherwise use 0."
)


class MetadataServiceBase(ABC):
    """Interface of the metadata generation service"""

    @abstractmethod
    async def extract_assets_from_page(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> List[PageAssetDescriptor]:
        """Page-batch mode: zero or more descriptors for one page image"""

    @abstractmethod
    async def generate_metadata_for_selection(
        self, image_bytes: bytes, mime_type: str = "image/png"
    ) -> AssetDescriptor:
        """Single-region mode: exactly one descriptor for a cropped region"""

    @abstractmethod
    async def extract_from_document(self, url: str) -> List[DocumentAssetDescriptor]:
        """Whole-document mode for a document the model reads by URL"""

    @abstractmethod
    async def extract_from_word(
        self, text: str, images: List[Tuple[bytes, str]]
    ) -> List[DocumentAssetDescriptor]:
        """Whole-document mode for Word text plus embedded images"""


def _image_part(image_bytes: bytes, mime_type: str) -> dict:
    image_data = base64.b64encode(image_bytes).decode("utf-8")
    return {
        "type": "image_url",
        "image_url": {"url": f"data:{mime_type};base64,{image_data}"},
    }


class GeminiMetadataService(MetadataServiceBase):
    """Generate asset metadata with Gemini structured output"""

    def __init__(
        self,
        google_api_key: str,
        model_name: str = "gemini-2.5-flash",
        temperature: float = 0.2,
        timeout: int = 120,
        max_retries: int = 2
    ):
        """
        Initialize metadata service

        Args:
            google_api_key: Google AI API key
            model_name: Name of the Gemini model
            temperature: Temperature for generation
            timeout: Request timeout in seconds
            max_retries: Retries performed by the client before failing
        """
        self.model_name = model_name
        self.llm = ChatGoogleGenerativeAI(
            model=model_name,
            temperature=temperature,
            google_api_key=google_api_key,
            timeout=timeout,
            max_retries=max_retries,
        )
        logger.info(f"GeminiMetadataService initialized with model: {model_name}")

    async def _invoke_structured(self, content: list, schema: Type[BaseModel]) -> BaseModel:
        structured_llm = self.llm.with_structured_output(schema, include_raw=True)
        try:
            result = await structured_llm.ainvoke([HumanMessage(content=content)])
        except Exception as e:
            logger.error(f"Error calling Gemini API: {e}")
            raise ServiceError(f"Metadata service request failed: {e}") from e

        parsed = result.get("parsed")
        if result.get("parsing_error") is not None or parsed is None:
            logger.error(f"Malformed metadata response: {result.get('parsing_error')}")
            raise ServiceError("Metadata service returned malformed data")

        raw = result.get("raw")
        usage = getattr(raw, "usage_metadata", None)
        if usage:
            logger.debug(f"Gemini usage: {usage}")
        return parsed

    async def extract_assets_from_page(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> List[PageAssetDescriptor]:
        content = [{"type": "text", "text": PAGE_PROMPT}, _image_part(image_bytes, mime_type)]
        parsed = await self._invoke_structured(content, PageAssetList)
        logger.debug(f"Page analysis returned {len(parsed.assets)} assets")
        return parsed.assets

    async def generate_metadata_for_selection(
        self, image_bytes: bytes, mime_type: str = "image/png"
    ) -> AssetDescriptor:
        content = [{"type": "text", "text": SELECTION_PROMPT}, _image_part(image_bytes, mime_type)]
        return await self._invoke_structured(content, AssetDescriptor)

    async def extract_from_document(self, url: str) -> List[DocumentAssetDescriptor]:
        if not url:
            raise ServiceError("No file or URL provided for processing.")

        prompt = f"{DOCUMENT_PROMPT} Analyze the document at this URL: {url}"
        parsed = await self._invoke_structured([{"type": "text", "text": prompt}], DocumentAssetList)
        logger.info(f"Document analysis returned {len(parsed.assets)} assets")
        return parsed.assets

    async def extract_from_word(
        self, text: str, images: List[Tuple[bytes, str]]
    ) -> List[DocumentAssetDescriptor]:
        parts = [{"type": "text", "text": WORD_PROMPT.format(text=text, image_count=len(images))}]
        for image_bytes, mime_type in images:
            parts.append(_image_part(image_bytes, mime_type))

        parsed = await self._invoke_structured(parts, DocumentAssetList)
        logger.info(f"Word document analysis returned {len(parsed.assets)} assets")
        return parsed.assets


MOCK_METADATA = [
    DocumentAssetDescriptor(
        asset_id="Figure 1",
        asset_type=AssetType.GRAPH,
        page_number=2,
        preview="Bar chart showing quarterly sales.",
        alt_text=(
            "A bar chart displaying the company's sales figures for the four quarters of "
            "fiscal year 2023. Q1 had $1.2M, Q2 had $1.5M, Q3 showed a peak at $2.1M, and "
            "Q4 dropped slightly to $1.8M."
        ),
        keywords=["sales", "quarterly report", "finance", "bar chart"],
        taxonomy="Graph -> Bar Chart",
    ),
    DocumentAssetDescriptor(
        asset_id="Table 1",
        asset_type=AssetType.TABLE,
        page_number=3,
        preview="Table of user growth metrics.",
        alt_text=(
            "A table with four columns: 'Month', 'New Users', 'Returning Users', and "
            "'Churn Rate'. Data is shown for January, February, and March 2023."
        ),
        keywords=["user metrics", "growth", "churn"],
        taxonomy="Table -> Data Table",
    ),
    DocumentAssetDescriptor(
        asset_id="Equation 1",
        asset_type=AssetType.EQUATION,
        page_number=5,
        preview="E = mc^2",
        alt_text=(
            "Einstein's mass-energy equivalence formula: E equals m times c squared, where "
            "E is energy, m is mass, and c is the speed of light."
        ),
        keywords=["physics", "relativity", "einstein"],
        taxonomy="Equation -> Physics",
    ),
    DocumentAssetDescriptor(
        asset_id="Image 1",
        asset_type=AssetType.IMAGE,
        page_number=7,
        preview="Photograph of a modern office space.",
        alt_text=(
            "A wide-angle photograph of a bright, modern open-plan office. Large windows let "
            "in natural light, and employees are working collaboratively at shared desks."
        ),
        keywords=["office", "workplace", "collaboration"],
        taxonomy="Image -> Photographic",
    ),
]


class MockMetadataService(MetadataServiceBase):
    """Canned metadata with simulated latency, used when no API key is configured"""

    def __init__(self, latency: float = 2.0):
        self.latency = latency
        self._page_calls = 0
        logger.warning("Google API key not set. Metadata service returns mock data.")

    async def extract_assets_from_page(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> List[PageAssetDescriptor]:
        await asyncio.sleep(self.latency)
        mock = MOCK_METADATA[self._page_calls % len(MOCK_METADATA)]
        self._page_calls += 1
        return [
            PageAssetDescriptor(
                **mock.model_dump(exclude={"page_number"}),
                bounding_box={"x": 10.0, "y": 20.0, "width": 80.0, "height": 30.0},
            )
        ]

    async def generate_metadata_for_selection(
        self, image_bytes: bytes, mime_type: str = "image/png"
    ) -> AssetDescriptor:
        await asyncio.sleep(self.latency)
        return AssetDescriptor(
            asset_id="Figure (selection)",
            asset_type=AssetType.FIGURE,
            preview="User-selected region of the page.",
            alt_text="A region of the document page selected manually for description.",
            keywords=["selection", "figure"],
            taxonomy="Figure -> Manual Selection",
        )

    async def extract_from_document(self, url: str) -> List[DocumentAssetDescriptor]:
        await asyncio.sleep(self.latency)
        return [asset.model_copy(deep=True) for asset in MOCK_METADATA]

    async def extract_from_word(
        self, text: str, images: List[Tuple[bytes, str]]
    ) -> List[DocumentAssetDescriptor]:
        await asyncio.sleep(self.latency)
        return [asset.model_copy(deep=True) for asset in MOCK_METADATA]
