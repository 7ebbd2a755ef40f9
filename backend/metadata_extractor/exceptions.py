"""Custom exceptions for the metadata extractor."""


class MetadataExtractorError(Exception):
    """Base exception for all metadata extractor errors."""
    pass


class InputValidationError(MetadataExtractorError):
    """No file/URL supplied, unsupported type, oversized file or bad field value."""
    pass


class BudgetExceededError(MetadataExtractorError):
    """The current user has consumed their whole token cap."""
    pass


class RenderError(MetadataExtractorError):
    """A document failed to load or a page failed to rasterize."""
    pass


class ServiceError(MetadataExtractorError):
    """The metadata service failed or returned malformed data."""
    pass


class ExtractionError(MetadataExtractorError):
    """A pipeline run was aborted. Carries the underlying message and page."""

    def __init__(self, message: str, page_number: int = 0):
        super().__init__(message)
        self.page_number = page_number


class SelectionStateError(MetadataExtractorError):
    """A region selection operation was invoked in the wrong state."""
    pass


class NotFoundError(MetadataExtractorError):
    """A session or user does not exist."""
    pass
