"""Map domain errors to HTTP responses"""
from fastapi import HTTPException
from ..exceptions import (
    MetadataExtractorError,
    InputValidationError,
    BudgetExceededError,
    NotFoundError,
    SelectionStateError,
    RenderError,
    ServiceError,
    ExtractionError,
)

_STATUS_CODES = [
    (InputValidationError, 400),
    (BudgetExceededError, 402),
    (NotFoundError, 404),
    (SelectionStateError, 409),
    (RenderError, 502),
    (ServiceError, 502),
    (ExtractionError, 502),
]


def to_http_exception(error: MetadataExtractorError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
