# src/services/ledger_service/app/services/ledger_service.py
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from ledger_common.config import LEDGER_LIST_DEFAULT_LIMIT, LEDGER_LIST_MAX_LIMIT
from ledger_common.database_models import Transaction
from ledger_common.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceFailureError,
    ValidationFailedError,
)
from ledger_common.monitoring import observe_mutation
from ledger_common.transaction_domain import (
    BusinessDayCalendar,
    TRADE_TYPES,
    EntryStatus,
    Principal,
    TransactionDraft,
    calculate_cash_balance,
    calculate_transaction_fields,
    transaction_validation_messages,
    validate_transaction,
)

from ..repositories.transaction_repository import TransactionRepository
from .duplicate_detector import DuplicateCheckResult, DuplicateDetector
from .permission_filters import (
    TransactionFilters,
    build_scope_predicate,
    build_transaction_filters,
    ensure_write_ownership,
)

logger = logging.getLogger(__name__)

_ENUM_FIELDS = ("transaction_type", "entry_status")
UNSTORABLE_VALUE_MESSAGE = "Transaction contains a value the ledger cannot store"

# Derived field -> the inputs it is calculated from.
DERIVED_FIELD_INPUTS = {
    "amount": frozenset({"quantity", "price", "transaction_type"}),
    "trade_date": frozenset({"transaction_date"}),
    "settlement_date": frozenset({"transaction_date", "trade_date", "transaction_type"}),
}


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return LEDGER_LIST_DEFAULT_LIMIT
    return min(limit, LEDGER_LIST_MAX_LIMIT)


def row_values(draft: TransactionDraft, fields: Optional[set] = None) -> Dict[str, Any]:
    """Column values for a draft, restricted to `fields` when given."""
    if fields is None:
        values = draft.model_dump(exclude_none=True)
    else:
        values = draft.model_dump(include=fields)
    for field in _ENUM_FIELDS:
        if values.get(field) is not None:
            values[field] = values[field].value
    return values


def prepare_draft(
    draft: TransactionDraft, calendar: Optional[BusinessDayCalendar] = None
) -> TransactionDraft:
    """Calculates derived fields and rejects the draft if any invariant fails."""
    calculated = calculate_transaction_fields(draft, calendar=calendar)
    issues = validate_transaction(calculated)
    if issues:
        raise ValidationFailedError(transaction_validation_messages(issues))
    return calculated


def stale_derived_fields(merged: TransactionDraft, supplied_fields: set) -> Dict[str, Any]:
    """
    Derived values to clear so they are recalculated: those whose inputs the
    caller changed without pinning the derived value itself.
    """
    stale: Dict[str, Any] = {}
    for derived, inputs in DERIVED_FIELD_INPUTS.items():
        if derived in supplied_fields or not inputs & supplied_fields:
            continue
        if derived != "trade_date" and merged.transaction_type not in TRADE_TYPES:
            continue
        stale[derived] = None
    return stale


@dataclass
class TransactionPage:
    transactions: List[Transaction]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class CreateTransactionResult:
    transaction: Transaction
    duplicate: Optional[DuplicateCheckResult] = None


class LedgerService:
    """
    Single-row reads and mutations over the ledger. Every mutation runs in
    exactly one storage transaction and leaves no partial effect on failure.
    """

    def __init__(
        self,
        repo: TransactionRepository,
        duplicate_detector: Optional[DuplicateDetector] = None,
        calendar: Optional[BusinessDayCalendar] = None,
    ):
        self.repo = repo
        self.duplicate_detector = duplicate_detector or DuplicateDetector(repo)
        self.calendar = calendar

    async def list_transactions(
        self,
        principal: Principal,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> TransactionPage:
        page = max(page or 1, 1)
        limit = clamp_limit(limit)
        where = build_transaction_filters(principal, filters)

        total = await self.repo.count_transactions(where)
        rows = await self.repo.list_transactions(where, skip=(page - 1) * limit, limit=limit)
        return TransactionPage(transactions=rows, page=page, limit=limit, total=total)

    async def get_transaction(self, principal: Principal, transaction_id: int) -> Transaction:
        transaction = await self.repo.get_by_id(transaction_id, scope=build_scope_predicate(principal))
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    async def cash_balance(
        self, principal: Principal, filters: Optional[TransactionFilters] = None
    ) -> Decimal:
        items = await self.repo.list_cash_items(build_transaction_filters(principal, filters))
        return calculate_cash_balance(
            {"transaction_type": txn_type, "amount": amount} for txn_type, amount in items
        )

    async def create_transaction(
        self, principal: Principal, draft: TransactionDraft, check_duplicates: bool = True
    ) -> CreateTransactionResult:
        calculated = prepare_draft(draft, self.calendar)
        ensure_write_ownership(principal, calculated.client_profile_id)
        values = row_values(calculated)
        values.setdefault("entry_status", EntryStatus.DRAFT.value)

        duplicate = None
        try:
            async with self.repo.transaction():
                if check_duplicates:
                    duplicate = await self.duplicate_detector.check(calculated)
                transaction = await self.repo.create(values)
        except IntegrityError as exc:
            logger.warning("Create rejected by a storage constraint.", exc_info=True)
            raise ConflictError("Transaction conflicts with existing ledger data") from exc
        except DataError as exc:
            logger.warning("Create rejected by the database.", exc_info=True)
            raise ValidationFailedError([UNSTORABLE_VALUE_MESSAGE]) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to create transaction.")
            raise PersistenceFailureError("Failed to create transaction") from exc

        observe_mutation("create")
        logger.info(
            "Created ledger row.",
            extra={"transaction_id": transaction.id, "duplicate": bool(duplicate and duplicate.is_duplicate)},
        )
        return CreateTransactionResult(transaction=transaction, duplicate=duplicate)

    async def update_transaction(
        self, principal: Principal, transaction_id: int, changes: Dict[str, Any]
    ) -> Transaction:
        """
        Merges `changes` over the stored row, recalculates and revalidates the
        result, then writes only the supplied fields and newly derived values.
        """
        supplied = TransactionDraft.model_validate(changes)
        supplied_fields = set(changes) & set(TransactionDraft.model_fields)

        try:
            async with self.repo.transaction():
                existing = await self.repo.get_by_id(transaction_id)
                if existing is None:
                    raise NotFoundError(f"Transaction {transaction_id} not found")
                ensure_write_ownership(principal, existing.client_profile_id)

                stored = TransactionDraft.model_validate(existing)
                merged = stored.model_copy(
                    update={field: getattr(supplied, field) for field in supplied_fields}
                )
                merged = merged.model_copy(update=stale_derived_fields(merged, supplied_fields))
                calculated = prepare_draft(merged, self.calendar)
                ensure_write_ownership(principal, calculated.client_profile_id)

                write_fields = set(supplied_fields)
                for derived in DERIVED_FIELD_INPUTS:
                    if getattr(calculated, derived) != getattr(stored, derived):
                        write_fields.add(derived)
                transaction = await self.repo.update(existing, row_values(calculated, write_fields))
        except IntegrityError as exc:
            logger.warning("Update rejected by a storage constraint.", exc_info=True)
            raise ConflictError("Transaction conflicts with existing ledger data") from exc
        except DataError as exc:
            logger.warning("Update rejected by the database.", exc_info=True)
            raise ValidationFailedError([UNSTORABLE_VALUE_MESSAGE]) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to update transaction.")
            raise PersistenceFailureError("Failed to update transaction") from exc

        observe_mutation("update")
        logger.info("Updated ledger row.", extra={"transaction_id": transaction_id, "fields": sorted(write_fields)})
        return transaction

    async def delete_transaction(self, principal: Principal, transaction_id: int) -> None:
        try:
            async with self.repo.transaction():
                existing = await self.repo.get_by_id(transaction_id)
                if existing is None:
                    raise NotFoundError(f"Transaction {transaction_id} not found")
                ensure_write_ownership(principal, existing.client_profile_id)
                if existing.entry_status == EntryStatus.POSTED.value:
                    raise ConflictError("Posted transactions cannot be deleted")
                await self.repo.delete(existing)
        except SQLAlchemyError as exc:
            logger.exception("Failed to delete transaction.")
            raise PersistenceFailureError("Failed to delete transaction") from exc

        observe_mutation("delete")
        logger.info("Deleted ledger row.", extra={"transaction_id": transaction_id})
