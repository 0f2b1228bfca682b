# src/services/ledger_service/app/services/duplicate_detector.py
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ledger_common.database_models import Transaction
from ledger_common.monitoring import observe_duplicate_check
from ledger_common.transaction_domain import TransactionDraft, account_reference_of

from ..repositories.transaction_repository import NaturalKey, TransactionRepository

logger = logging.getLogger(__name__)

CASH_SECURITY = "CASH"


class DuplicateCheckOutcome(str, Enum):
    CLEAR = "CLEAR"
    DUPLICATE = "DUPLICATE"
    RECOVERED = "RECOVERED"


@dataclass(frozen=True)
class DuplicateCheckResult:
    outcome: DuplicateCheckOutcome
    is_duplicate: bool
    message: Optional[str] = None
    existing_transaction_id: Optional[int] = None
    existing_transaction: Optional[Transaction] = None


def natural_key_of(draft: TransactionDraft) -> Optional[NaturalKey]:
    """None when the draft lacks a component of the key and cannot collide."""
    account = account_reference_of(draft.master_account_id, draft.client_account_id)
    if (
        account is None
        or draft.transaction_date is None
        or draft.transaction_type is None
        or draft.amount is None
    ):
        return None
    security_id = draft.security_id
    if security_id == CASH_SECURITY:
        security_id = None
    return NaturalKey(
        account=account,
        transaction_date=draft.transaction_date,
        transaction_type=draft.transaction_type.value,
        security_id=security_id,
        amount=draft.amount,
    )


class DuplicateDetector:
    """
    Flags a draft whose natural key already exists in the ledger. The lookup
    is global, not permission-scoped, and its own failures never block a write.
    """

    def __init__(self, repo: TransactionRepository):
        self.repo = repo

    async def check(self, draft: TransactionDraft) -> DuplicateCheckResult:
        key = natural_key_of(draft)
        if key is None:
            observe_duplicate_check(DuplicateCheckOutcome.CLEAR.value)
            return DuplicateCheckResult(outcome=DuplicateCheckOutcome.CLEAR, is_duplicate=False)

        try:
            async with self.repo.savepoint():
                existing = await self.repo.find_by_natural_key(key)
        except SQLAlchemyError:
            logger.exception(
                "Duplicate lookup failed; continuing without a duplicate verdict.",
                extra={"transaction_type": key.transaction_type},
            )
            observe_duplicate_check(DuplicateCheckOutcome.RECOVERED.value)
            return DuplicateCheckResult(outcome=DuplicateCheckOutcome.RECOVERED, is_duplicate=False)

        if existing is None:
            observe_duplicate_check(DuplicateCheckOutcome.CLEAR.value)
            return DuplicateCheckResult(outcome=DuplicateCheckOutcome.CLEAR, is_duplicate=False)

        message = (
            f"Potential duplicate: {key.transaction_type} of {draft.security_id or CASH_SECURITY} "
            f"for ${key.amount:.2f} on {key.transaction_date.date().isoformat()}"
        )
        logger.info(message, extra={"existing_transaction_id": existing.id})
        observe_duplicate_check(DuplicateCheckOutcome.DUPLICATE.value)
        return DuplicateCheckResult(
            outcome=DuplicateCheckOutcome.DUPLICATE,
            is_duplicate=True,
            message=message,
            existing_transaction_id=existing.id,
            existing_transaction=existing,
        )
