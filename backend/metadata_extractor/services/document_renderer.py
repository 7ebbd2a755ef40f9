"""Document rendering service using PyMuPDF"""
import fitz  # PyMuPDF
from PIL import Image
import asyncio
import io
import threading
from typing import Optional, Tuple
import logging
from ..exceptions import RenderError
from ..models.geometry import PixelCrop
from ..utils.helpers import PDF_MIME_TYPE

logger = logging.getLogger(__name__)


class DocumentHandle:
    """A loaded document owned by a viewer session"""

    def __init__(
        self,
        filename: str,
        content: bytes,
        mime_type: str,
        pdf: Optional[fitz.Document] = None,
        url: Optional[str] = None
    ):
        self.filename = filename
        self.content = content
        self.mime_type = mime_type
        self.pdf = pdf
        self.url = url  # set for documents the model reads by URL
        self.page_count = len(pdf) if pdf is not None else 0
        # PyMuPDF documents are not thread-safe; page access and close share this lock
        self.lock = threading.Lock()
        self.closed = False

    @property
    def paginated(self) -> bool:
        return self.pdf is not None

    @property
    def size(self) -> int:
        return len(self.content)

    def close(self):
        """Close the PDF; waits for a page render holding the lock to finish"""
        self.closed = True
        with self.lock:
            if self.pdf is not None and not self.pdf.is_closed:
                self.pdf.close()
        logger.debug(f"Closed document: {self.filename}")


class DocumentRenderer:
    """Open documents and rasterize their pages"""

    def open(self, content: bytes, filename: str, mime_type: str) -> DocumentHandle:
        """
        Load a document from bytes

        PDFs are opened with PyMuPDF so they can be paginated. Other supported
        types (Word) are kept as raw bytes for whole-document processing.

        Raises:
            RenderError: If the PDF cannot be parsed
        """
        if mime_type != PDF_MIME_TYPE:
            return DocumentHandle(filename, content, mime_type)

        try:
            pdf = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF {filename}: {e}")
            raise RenderError(f"Could not load PDF document: {e}") from e

        if len(pdf) == 0:
            pdf.close()
            raise RenderError("PDF document has no pages")

        logger.info(f"Opened PDF {filename} with {len(pdf)} pages")
        return DocumentHandle(filename, content, mime_type, pdf=pdf)

    def page_count(self, doc: DocumentHandle) -> int:
        return doc.page_count

    def _get_page(self, doc: DocumentHandle, page_index: int) -> fitz.Page:
        # Caller holds doc.lock
        if doc.pdf is None or doc.closed:
            raise RenderError("Document is not a loaded PDF")
        if page_index < 0 or page_index >= doc.page_count:
            raise RenderError(f"Page index {page_index} out of range (0-{doc.page_count - 1})")
        return doc.pdf[page_index]

    def page_native_size(self, doc: DocumentHandle, page_index: int) -> Tuple[float, float]:
        """Page size in PDF points at scale 1"""
        with doc.lock:
            rect = self._get_page(doc, page_index).rect
            return rect.width, rect.height

    def render_page(self, doc: DocumentHandle, page_index: int, scale: float) -> Image.Image:
        """
        Rasterize a page to an RGB image

        Args:
            doc: Loaded PDF handle
            page_index: 0-based page index
            scale: Zoom factor relative to native size

        Returns:
            PIL Image of the rendered page
        """
        with doc.lock:
            page = self._get_page(doc, page_index)
            try:
                pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
                return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            except Exception as e:
                logger.error(f"Error rendering page {page_index + 1} of {doc.filename}: {e}")
                raise RenderError(f"Could not render page {page_index + 1}: {e}") from e

    async def render_page_async(self, doc: DocumentHandle, page_index: int, scale: float) -> Image.Image:
        """Rasterize a page off the event loop"""
        return await asyncio.to_thread(self.render_page, doc, page_index, scale)

    @staticmethod
    def crop(image: Image.Image, crop: PixelCrop) -> Image.Image:
        """Cut a pixel rectangle out of a rendered page (at least 1x1)"""
        left = int(round(crop.sx))
        top = int(round(crop.sy))
        right = max(left + 1, int(round(crop.sx + crop.s_width)))
        bottom = max(top + 1, int(round(crop.sy + crop.s_height)))
        return image.crop((left, top, right, bottom))

    @staticmethod
    def encode_jpeg(image: Image.Image, quality: int = 80) -> bytes:
        if image.mode != "RGB":
            image = image.convert("RGB")
        buffered = io.BytesIO()
        image.save(buffered, format="JPEG", quality=quality)
        return buffered.getvalue()

    @staticmethod
    def encode_png(image: Image.Image) -> bytes:
        buffered = io.BytesIO()
        image.save(buffered, format="PNG")
        return buffered.getvalue()
