# tests/unit/services/ledger_service/test_ledger_error_mapping.py
import pytest

from ledger_common.exceptions import (
    AuthenticationMissingError,
    AuthorizationDeniedError,
    ConflictError,
    LedgerError,
    NotFoundError,
    PersistenceFailureError,
    ValidationFailedError,
)

from src.services.ledger_service.app.error_mapping import to_http_exception


@pytest.mark.parametrize(
    "error, expected_status",
    [
        (AuthenticationMissingError("Unauthorized"), 401),
        (AuthorizationDeniedError("Access denied"), 403),
        (NotFoundError("Transaction not found"), 404),
        (ConflictError("Posted transactions cannot be deleted"), 409),
        (PersistenceFailureError("Transaction creation failed"), 500),
        (LedgerError("unexpected"), 500),
    ],
)
def test_status_codes(error, expected_status):
    exc = to_http_exception(error)
    assert exc.status_code == expected_status
    assert exc.detail == {"error": str(error)}


def test_validation_errors_are_listed():
    exc = to_http_exception(ValidationFailedError(["Amount is required", "Transaction type is required"]))
    assert exc.status_code == 400
    assert exc.detail == {
        "error": "Validation failed",
        "details": ["Amount is required", "Transaction type is required"],
    }
