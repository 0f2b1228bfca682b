# src/services/ledger_service/app/services/bulk_ledger_service.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from sqlalchemy import and_
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from ledger_common.config import LEDGER_BULK_MAX_ROWS
from ledger_common.database_models import Transaction
from ledger_common.exceptions import (
    AuthorizationDeniedError,
    PersistenceFailureError,
    ValidationFailedError,
)
from ledger_common.monitoring import observe_bulk_rows, observe_mutation
from ledger_common.transaction_domain import (
    BusinessDayCalendar,
    EntryStatus,
    Principal,
    TransactionDraft,
    calculate_transaction_fields,
    transaction_validation_messages,
    validate_transaction,
)

from ..repositories.transaction_repository import TransactionRepository
from .ledger_service import row_values
from .permission_filters import TransactionFilters, build_transaction_filters, ensure_write_ownership

logger = logging.getLogger(__name__)

ROW_CONFLICT_MESSAGE = "Row conflicts with existing ledger data or references an unknown record"
ROW_DATA_MESSAGE = "Row contains a value the ledger cannot store"
SYSTEMIC_FAILURE_MESSAGE = "Transaction creation failed"


class BulkOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    FAILURE = "FAILURE"


@dataclass
class BulkRowSuccess:
    row: int
    transaction: Transaction


@dataclass
class BulkRowFailure:
    row: int
    transaction: Any
    errors: List[str]


@dataclass
class BulkCreateResult:
    total: int
    successful: List[BulkRowSuccess] = field(default_factory=list)
    failed: List[BulkRowFailure] = field(default_factory=list)
    aborted: bool = False
    message: str = ""

    @property
    def outcome(self) -> BulkOutcome:
        if not self.successful:
            return BulkOutcome.FAILURE
        if self.failed:
            return BulkOutcome.PARTIAL_SUCCESS
        return BulkOutcome.SUCCESS


def _parse_errors(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]


class BulkLedgerService:
    """
    Batch mutations. Bulk create validates every row before touching storage,
    then writes the passing rows in one transaction with a savepoint per row.
    """

    def __init__(self, repo: TransactionRepository, calendar: Optional[BusinessDayCalendar] = None):
        self.repo = repo
        self.calendar = calendar

    def prepare_row(
        self, principal: Principal, raw: Any
    ) -> Tuple[Optional[TransactionDraft], List[str]]:
        """Parses, calculates, validates and ownership-checks one row without touching storage."""
        try:
            draft = (
                raw if isinstance(raw, TransactionDraft) else TransactionDraft.model_validate(raw)
            )
        except ValidationError as exc:
            return None, _parse_errors(exc)

        calculated = calculate_transaction_fields(draft, calendar=self.calendar)
        issues = validate_transaction(calculated)
        if issues:
            return None, transaction_validation_messages(issues)
        try:
            ensure_write_ownership(principal, calculated.client_profile_id)
        except AuthorizationDeniedError as exc:
            return None, [str(exc)]

        return calculated, []

    async def bulk_create(self, principal: Principal, rows: Sequence[Any]) -> BulkCreateResult:
        if not rows:
            raise ValidationFailedError(["Transactions array is required"])
        if len(rows) > LEDGER_BULK_MAX_ROWS:
            raise ValidationFailedError(
                [f"Too many transactions. Maximum {LEDGER_BULK_MAX_ROWS} allowed."]
            )

        result = BulkCreateResult(total=len(rows))
        passing: List[Tuple[int, Any, Dict[str, Any]]] = []
        for row, raw in enumerate(rows, start=1):
            calculated, errors = self.prepare_row(principal, raw)
            if errors:
                result.failed.append(BulkRowFailure(row=row, transaction=raw, errors=errors))
                continue
            values = row_values(calculated)
            values.setdefault("entry_status", EntryStatus.DRAFT.value)
            passing.append((row, raw, values))

        if not passing:
            result.message = "All transactions failed validation"
            observe_bulk_rows("invalid", len(result.failed))
            logger.info("Bulk create rejected every row.", extra={"total": result.total})
            return result

        invalid_count = len(result.failed)
        written: List[BulkRowSuccess] = []
        conflicts: List[BulkRowFailure] = []
        try:
            async with self.repo.transaction():
                for row, raw, values in passing:
                    try:
                        async with self.repo.savepoint():
                            created = await self.repo.create(values)
                    except (IntegrityError, DataError) as exc:
                        logger.warning(
                            "Bulk row rejected by the database.",
                            extra={"row": row, "error": exc.__class__.__name__},
                        )
                        message = ROW_CONFLICT_MESSAGE if isinstance(exc, IntegrityError) else ROW_DATA_MESSAGE
                        conflicts.append(BulkRowFailure(row=row, transaction=raw, errors=[message]))
                        continue
                    written.append(BulkRowSuccess(row=row, transaction=created))
        except SQLAlchemyError as exc:
            logger.exception("Bulk create aborted; no rows were committed.", extra={"total": result.total})
            result.aborted = True
            result.failed.extend(
                BulkRowFailure(row=row, transaction=raw, errors=[f"{SYSTEMIC_FAILURE_MESSAGE}: {exc.__class__.__name__}"])
                for row, raw, _ in passing
            )
            result.failed.sort(key=lambda failure: failure.row)
            result.message = SYSTEMIC_FAILURE_MESSAGE
            observe_bulk_rows("invalid", invalid_count)
            observe_bulk_rows("aborted", len(passing))
            return result

        result.successful = written
        result.failed.extend(conflicts)
        result.failed.sort(key=lambda failure: failure.row)
        result.message = f"Successfully created {len(written)} out of {result.total} transactions"

        observe_bulk_rows("created", len(written))
        observe_bulk_rows("invalid", invalid_count)
        observe_bulk_rows("conflict", len(conflicts))
        observe_mutation("bulk_create", len(written))
        logger.info(
            result.message,
            extra={"total": result.total, "created": len(written), "failed": len(result.failed)},
        )
        return result

    def _scoped_where(
        self,
        principal: Principal,
        account_id: Optional[str],
        transaction_ids: Optional[Sequence[int]],
        entry_status: Optional[EntryStatus] = None,
    ) -> ColumnElement:
        where = build_transaction_filters(
            principal, TransactionFilters(account_id=account_id, entry_status=entry_status)
        )
        if transaction_ids is not None:
            where = and_(where, Transaction.id.in_(list(transaction_ids)))
        return where

    async def _update_status(self, where: ColumnElement, status: EntryStatus, operation: str) -> int:
        try:
            async with self.repo.transaction():
                count = await self.repo.update_many(where, {"entry_status": status.value})
        except SQLAlchemyError as exc:
            logger.exception(f"Bulk {operation} failed.")
            raise PersistenceFailureError(f"Failed to {operation} transactions") from exc
        observe_mutation(operation, count)
        return count

    async def bulk_post(
        self,
        principal: Principal,
        account_id: Optional[str] = None,
        transaction_ids: Optional[Sequence[int]] = None,
    ) -> int:
        """DRAFT -> POSTED for every visible draft matching the filters. Rows are not revalidated."""
        where = self._scoped_where(principal, account_id, transaction_ids, EntryStatus.DRAFT)
        count = await self._update_status(where, EntryStatus.POSTED, "post")
        logger.info(f"Posted {count} transactions.")
        return count

    async def bulk_delete_drafts(
        self,
        principal: Principal,
        account_id: Optional[str] = None,
        transaction_ids: Optional[Sequence[int]] = None,
    ) -> int:
        where = self._scoped_where(principal, account_id, transaction_ids, EntryStatus.DRAFT)
        try:
            async with self.repo.transaction():
                count = await self.repo.delete_many(where)
        except SQLAlchemyError as exc:
            logger.exception("Bulk delete of drafts failed.")
            raise PersistenceFailureError("Failed to delete draft transactions") from exc
        observe_mutation("delete_drafts", count)
        logger.info(f"Deleted {count} draft transactions.")
        return count

    async def bulk_update_status(
        self, principal: Principal, transaction_ids: Optional[Sequence[int]], new_status: Any
    ) -> int:
        if not transaction_ids:
            raise ValidationFailedError(["Transaction IDs are required"])
        try:
            status = EntryStatus(new_status)
        except ValueError:
            raise ValidationFailedError(["Invalid status"]) from None

        where = self._scoped_where(principal, None, transaction_ids)
        count = await self._update_status(where, status, "update_status")
        logger.info(f"Updated {count} transactions to {status.value}.")
        return count
