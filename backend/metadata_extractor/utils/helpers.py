"""Helper utility functions"""
import uuid
import os
from typing import Optional

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def generate_asset_id() -> str:
    """Generate unique asset ID"""
    return str(uuid.uuid4())


def generate_session_id() -> str:
    """Generate unique session ID"""
    return f"sess_{uuid.uuid4().hex[:16]}"


def generate_notification_id() -> str:
    """Generate unique notification ID"""
    return uuid.uuid4().hex[:9]


def generate_log_id() -> str:
    """Generate unique usage log ID"""
    return f"log_{uuid.uuid4().hex[:12]}"


def detect_mime_type(filename: Optional[str], content_type: Optional[str] = None) -> Optional[str]:
    """
    Resolve the document type from a declared content type or file extension

    Returns:
        PDF or DOCX MIME type, or None when the type is not supported
    """
    if content_type:
        declared = content_type.split(";")[0].strip().lower()
        if declared in (PDF_MIME_TYPE, DOCX_MIME_TYPE):
            return declared

    if filename:
        extension = os.path.splitext(filename.split("?")[0])[1].lower()
        if extension == ".pdf":
            return PDF_MIME_TYPE
        if extension == ".docx":
            return DOCX_MIME_TYPE

    return None


def filename_from_url(url: str) -> str:
    """Last path segment of a URL, or a generic name"""
    path = url.split("?")[0].rstrip("/")
    name = path.rsplit("/", 1)[-1]
    return name or "document"
