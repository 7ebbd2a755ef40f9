"""Download documents from public URLs"""
import httpx
from typing import Optional, Tuple
import logging
from ..exceptions import InputValidationError, RenderError

logger = logging.getLogger(__name__)


class DocumentFetcher:
    """Fetch a document by URL, enforcing the upload size limit"""

    def __init__(
        self,
        max_file_size: int,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.max_file_size = max_file_size
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> Tuple[bytes, Optional[str]]:
        """
        Download a document

        Returns:
            Tuple of (content bytes, declared content type)

        Raises:
            InputValidationError: Bad URL or document larger than the limit
            RenderError: The download failed
        """
        if not url or not url.startswith(("http://", "https://")):
            raise InputValidationError("Please provide a valid http(s) URL.")

        logger.info(f"Fetching document: {url[:80]}")
        try:
            async with httpx.AsyncClient(
                follow_redirects=True, timeout=self.timeout, transport=self.transport
            ) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()

                    declared_size = response.headers.get("content-length")
                    if declared_size and int(declared_size) > self.max_file_size:
                        raise InputValidationError(self._too_large_message())

                    chunks = []
                    size = 0
                    async for chunk in response.aiter_bytes():
                        size += len(chunk)
                        if size > self.max_file_size:
                            raise InputValidationError(self._too_large_message())
                        chunks.append(chunk)

                    content_type = response.headers.get("content-type")
        except InputValidationError:
            raise
        except httpx.HTTPError as e:
            logger.error(f"Error fetching {url}: {e}")
            raise RenderError(f"Could not download document: {e}") from e

        logger.info(f"Fetched {size} bytes ({content_type})")
        return b"".join(chunks), content_type

    def _too_large_message(self) -> str:
        return f"File size cannot exceed {self.max_file_size // (1024 * 1024)}MB."
