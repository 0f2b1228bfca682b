# src/libs/ledger-common/ledger_common/exceptions.py
from typing import Iterable, List


class LedgerError(Exception):
    """Base class for every error the ledger surfaces to its callers."""


class AuthenticationMissingError(LedgerError):
    """No verified principal accompanies the call."""


class AuthorizationDeniedError(LedgerError):
    """The principal is out of scope for the target row. Nothing was written."""


class ValidationFailedError(LedgerError):
    """
    One or more invariant violations. `errors` keeps the validator's order so
    callers can display every problem at once.
    """
    def __init__(self, errors: Iterable[str], message: str = "Validation failed") -> None:
        self.errors: List[str] = list(errors)
        super().__init__(message)


class NotFoundError(LedgerError):
    pass


class ConflictError(LedgerError):
    """Natural/unique-key violation, or a lifecycle precondition such as deleting a POSTED row."""


class PersistenceFailureError(LedgerError):
    """
    Transient or systemic storage failure. Deliberately generic; the
    underlying driver error is logged, not returned.
    """
