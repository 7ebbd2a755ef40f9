"""Word (.docx) content extraction using python-docx"""
from docx import Document
from typing import List, Tuple
import io
import logging
from ..exceptions import RenderError

logger = logging.getLogger(__name__)


class WordContent:
    """Raw text and embedded images of a Word document"""
    def __init__(self, text: str, images: List[Tuple[bytes, str]]):
        self.text = text
        self.images = images  # (image bytes, MIME type)


def read_word_document(content: bytes) -> WordContent:
    """
    Extract raw text (paragraphs and table cells) and images from a .docx

    Raises:
        RenderError: If the file is not a readable Word document
    """
    try:
        document = Document(io.BytesIO(content))
    except Exception as e:
        logger.error(f"Failed to open Word document: {e}")
        raise RenderError(f"Could not load Word document: {e}") from e

    parts = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                parts.append(" | ".join(cells))

    images = []
    for rel in document.part.rels.values():
        if rel.is_external or "image" not in rel.reltype:
            continue
        image_part = rel.target_part
        images.append((image_part.blob, image_part.content_type))

    logger.debug(f"Word document: {len(parts)} text blocks, {len(images)} images")
    return WordContent(text="\n".join(parts), images=images)
