"""Asset data models"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional


class AssetType(str, Enum):
    """Kinds of assets the metadata service can detect"""
    FIGURE = "Figure"
    TABLE = "Table"
    IMAGE = "Image"
    EQUATION = "Equation"
    MAP = "Map"
    GRAPH = "Graph"


class BoundingBox(BaseModel):
    """Rectangle in percentages (0-100) of a page's rendered dimensions"""
    x: float
    y: float
    width: float
    height: float


class AssetDescriptor(BaseModel):
    """Metadata for one asset as returned by the metadata service"""
    asset_id: str = Field(
        alias="assetId",
        description='A unique identifier for the asset, e.g., "Figure 1.1", "Table 2", "Equation 3".',
    )
    asset_type: AssetType = Field(alias="assetType", description="The type of the asset.")
    preview: str = Field(
        description="A brief, one-sentence textual description or the content of the asset "
        "(e.g., the equation itself)."
    )
    alt_text: str = Field(
        alias="altText",
        description="A detailed, context-aware alternative text for accessibility purposes, "
        "fully describing the asset.",
    )
    keywords: List[str] = Field(description="A list of 3-5 relevant keywords for the asset.")
    taxonomy: str = Field(
        description='A hierarchical classification for the asset, e.g., "Graph -> Time-series", '
        '"Image -> Photographic".'
    )

    class Config:
        populate_by_name = True


class PageAssetDescriptor(AssetDescriptor):
    """Descriptor returned in page-batch mode (bounding box is optional)"""
    bounding_box: Optional[BoundingBox] = Field(
        None,
        alias="boundingBox",
        description="Location of the asset on the page, in percentages (0-100) of the page size.",
    )


class DocumentAssetDescriptor(AssetDescriptor):
    """Descriptor returned in whole-document mode"""
    page_number: int = Field(
        0,
        alias="pageNumber",
        description="The page number where the asset is located. Use 0 when pagination is uncertain.",
    )


class PageAssetList(BaseModel):
    """All assets found on a single page"""
    assets: List[PageAssetDescriptor] = Field(default_factory=list)


class DocumentAssetList(BaseModel):
    """All assets found in a whole document"""
    assets: List[DocumentAssetDescriptor] = Field(default_factory=list)


class ExtractedAsset(AssetDescriptor):
    """An asset held in a session's collection"""
    id: str = Field(frozen=True)
    page_number: int = Field(alias="pageNumber", frozen=True)
    bounding_box: Optional[BoundingBox] = Field(None, alias="boundingBox")

    class Config:
        populate_by_name = True
        validate_assignment = True
