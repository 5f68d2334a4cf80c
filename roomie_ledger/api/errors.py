"""Translation of domain errors into HTTP responses"""

from fastapi import HTTPException
from roomie_ledger.domain.exceptions import (
    ConflictError,
    DomainException,
    ForbiddenError,
    InvalidExpenseError,
    NotFoundError,
    UnavailableError,
)

_STATUS_CODES = {
    InvalidExpenseError: 422,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    UnavailableError: 503,
}


def to_http_exception(error: DomainException) -> HTTPException:
    """Map a domain error to its status code, surfacing the message verbatim"""
    status_code = _STATUS_CODES.get(type(error), 500)
    headers = {"Retry-After": "1"} if isinstance(error, UnavailableError) else None
    return HTTPException(status_code=status_code, detail=str(error), headers=headers)
