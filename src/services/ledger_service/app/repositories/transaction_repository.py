# src/services/ledger_service/app/repositories/transaction_repository.py
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from sqlalchemy import delete, desc, func, select, true, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed, before_sleep_log

from ledger_common.database_models import Transaction
from ledger_common.transaction_domain import AccountReference
from ledger_common.utils import async_timed

logger = logging.getLogger(__name__)

READ_RETRY = dict(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_fixed(0.2),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


@dataclass(frozen=True)
class NaturalKey:
    """Business-meaning identity of a ledger row, independent of its storage id."""

    account: AccountReference
    transaction_date: datetime
    transaction_type: str
    security_id: Optional[str]
    amount: Decimal


class TransactionRepository:
    """
    Storage primitives for ledger rows. Callers own the transaction boundary
    through `transaction()` and `savepoint()`; nothing here commits on its own.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """One atomic unit of work; commits on exit, rolls back on error."""
        async with self.db.begin():
            yield

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """A nested unit that can fail without aborting the enclosing transaction."""
        async with self.db.begin_nested():
            yield

    async def _rollback_after_read_failure(self) -> None:
        if self.db.in_transaction():
            await self.db.rollback()

    @async_timed(repository="TransactionRepository", method="create")
    async def create(self, values: Dict[str, Any]) -> Transaction:
        transaction = Transaction(**values)
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(transaction)
        logger.info("Staged ledger row.", extra={"transaction_id": transaction.id})
        return transaction

    @async_timed(repository="TransactionRepository", method="get_by_id")
    async def get_by_id(
        self, transaction_id: int, scope: Optional[ColumnElement] = None
    ) -> Optional[Transaction]:
        stmt = select(Transaction).where(Transaction.id == transaction_id)
        if scope is not None:
            stmt = stmt.where(scope)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    @async_timed(repository="TransactionRepository", method="find_by_natural_key")
    async def find_by_natural_key(self, key: NaturalKey) -> Optional[Transaction]:
        account_column = getattr(Transaction, key.account.field)
        security_clause = (
            Transaction.security_id.is_(None)
            if key.security_id is None
            else Transaction.security_id == key.security_id
        )
        stmt = (
            select(Transaction)
            .where(
                account_column == key.account.account_id,
                Transaction.transaction_date == key.transaction_date,
                Transaction.transaction_type == key.transaction_type,
                Transaction.amount == key.amount,
                security_clause,
            )
            .order_by(Transaction.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    @retry(**READ_RETRY)
    @async_timed(repository="TransactionRepository", method="list_transactions")
    async def list_transactions(
        self, where: ColumnElement, skip: int, limit: int
    ) -> List[Transaction]:
        stmt = (
            select(Transaction)
            .where(where)
            .order_by(desc(Transaction.transaction_date), desc(Transaction.id))
            .offset(skip)
            .limit(limit)
        )
        try:
            results = await self.db.execute(stmt)
        except OperationalError:
            await self._rollback_after_read_failure()
            raise
        transactions = results.scalars().all()
        logger.info(f"Found {len(transactions)} ledger rows for the given filters.")
        return transactions

    @retry(**READ_RETRY)
    @async_timed(repository="TransactionRepository", method="count_transactions")
    async def count_transactions(self, where: ColumnElement) -> int:
        stmt = select(func.count(Transaction.id)).where(where)
        try:
            count = (await self.db.execute(stmt)).scalar()
        except OperationalError:
            await self._rollback_after_read_failure()
            raise
        return count or 0

    @retry(**READ_RETRY)
    @async_timed(repository="TransactionRepository", method="list_cash_items")
    async def list_cash_items(self, where: ColumnElement) -> List[Tuple[str, Decimal]]:
        stmt = select(Transaction.transaction_type, Transaction.amount).where(where)
        try:
            results = await self.db.execute(stmt)
        except OperationalError:
            await self._rollback_after_read_failure()
            raise
        return [tuple(row) for row in results.all()]

    @async_timed(repository="TransactionRepository", method="update")
    async def update(self, transaction: Transaction, values: Dict[str, Any]) -> Transaction:
        for field, value in values.items():
            setattr(transaction, field, value)
        await self.db.flush()
        await self.db.refresh(transaction)
        return transaction

    @async_timed(repository="TransactionRepository", method="update_many")
    async def update_many(self, where: ColumnElement, values: Dict[str, Any]) -> int:
        stmt = (
            update(Transaction)
            .where(where if where is not None else true())
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0

    @async_timed(repository="TransactionRepository", method="delete")
    async def delete(self, transaction: Transaction) -> None:
        await self.db.delete(transaction)
        await self.db.flush()

    @async_timed(repository="TransactionRepository", method="delete_many")
    async def delete_many(self, where: ColumnElement) -> int:
        stmt = (
            delete(Transaction)
            .where(where if where is not None else true())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0
