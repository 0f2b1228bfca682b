# src/services/ledger_service/app/error_mapping.py
from fastapi import HTTPException, status

from ledger_common.exceptions import (
    AuthenticationMissingError,
    AuthorizationDeniedError,
    ConflictError,
    LedgerError,
    NotFoundError,
    PersistenceFailureError,
    ValidationFailedError,
)

STATUS_BY_ERROR = (
    (AuthenticationMissingError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationDeniedError, status.HTTP_403_FORBIDDEN),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PersistenceFailureError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(exc: LedgerError) -> HTTPException:
    """Translates a ledger error into the HTTP status and body callers see."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    if isinstance(exc, ValidationFailedError):
        detail = {"error": str(exc), "details": exc.errors}
    else:
        detail = {"error": str(exc)}
    return HTTPException(status_code=status_code, detail=detail)
