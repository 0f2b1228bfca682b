# tests/integration/services/ledger_service/test_ledger_postgres.py
import os
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ledger_common.database_models import (
    ClientAccount,
    ClientProfile,
    MasterAccount,
    Security,
    User,
)
from ledger_common.db_base import Base
from ledger_common.exceptions import ConflictError
from ledger_common.transaction_domain import (
    ClientProfileRef,
    Principal,
    PrincipalLevel,
    TransactionDraft,
)

from src.services.ledger_service.app.repositories.principal_repository import PrincipalRepository
from src.services.ledger_service.app.repositories.transaction_repository import TransactionRepository
from src.services.ledger_service.app.services.bulk_ledger_service import (
    ROW_CONFLICT_MESSAGE,
    BulkLedgerService,
    BulkOutcome,
)
from src.services.ledger_service.app.services.ledger_service import LedgerService
from src.services.ledger_service.app.services.permission_filters import TransactionFilters

DATABASE_URL = os.getenv("LEDGER_TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.asyncio,
    pytest.mark.integration,
    pytest.mark.skipif(not DATABASE_URL, reason="LEDGER_TEST_DATABASE_URL is not set"),
]

CLIENT = Principal(
    id="U-CLIENT",
    level=PrincipalLevel.L2_CLIENT,
    client_profile=ClientProfileRef(id="CP-1", level="L2_CLIENT", organization_id="ORG-1"),
)
OTHER_CLIENT = Principal(
    id="U-OTHER",
    level=PrincipalLevel.L2_CLIENT,
    client_profile=ClientProfileRef(id="CP-9", level="L2_CLIENT", organization_id="ORG-2"),
)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        async with session.begin():
            session.add_all(
                [
                    ClientProfile(id="CP-1", level="L2_CLIENT", organization_id="ORG-1"),
                    ClientProfile(id="CP-9", level="L2_CLIENT", organization_id="ORG-2"),
                ]
            )
            await session.flush()
            session.add_all(
                [
                    User(id="U-CLIENT", auth_subject="sub-client", level="L2_CLIENT", client_profile_id="CP-1"),
                    MasterAccount(id="MA-1", account_number="M-001", account_name="Main", client_profile_id="CP-1"),
                    ClientAccount(id="CA-9", account_number="C-009", account_name="Other", client_profile_id="CP-9"),
                    Security(id="SEC-AAPL", symbol="AAPL", name="Apple Inc."),
                ]
            )

    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


def _buy(**overrides) -> dict:
    row = {
        "transaction_date": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "transaction_type": "BUY",
        "security_id": "SEC-AAPL",
        "quantity": "100",
        "price": "150.50",
        "master_account_id": "MA-1",
        "client_profile_id": "CP-1",
    }
    row.update(overrides)
    return row


async def test_principal_lookup_loads_profile(session_factory):
    async with session_factory() as session:
        principal = await PrincipalRepository(session).get_by_auth_subject("sub-client")

    assert principal.id == "U-CLIENT"
    assert principal.client_profile.id == "CP-1"


async def test_create_round_trip_and_duplicate_advisory(session_factory):
    async with session_factory() as session:
        service = LedgerService(TransactionRepository(session))
        first = await service.create_transaction(CLIENT, TransactionDraft.model_validate(_buy()))

    assert first.transaction.amount == Decimal("15050.00")
    assert first.transaction.trade_date == date(2024, 1, 15)
    assert first.transaction.settlement_date == date(2024, 1, 17)
    assert first.transaction.entry_status == "DRAFT"
    assert first.duplicate.is_duplicate is False

    async with session_factory() as session:
        service = LedgerService(TransactionRepository(session))
        second = await service.create_transaction(CLIENT, TransactionDraft.model_validate(_buy()))

    assert second.duplicate.is_duplicate is True
    assert second.duplicate.existing_transaction_id == first.transaction.id


async def test_bulk_create_isolates_row_conflicts(session_factory):
    rows = [_buy(), _buy(security_id="SEC-UNKNOWN"), _buy(quantity="10")]

    async with session_factory() as session:
        result = await BulkLedgerService(TransactionRepository(session)).bulk_create(CLIENT, rows)

    assert result.outcome == BulkOutcome.PARTIAL_SUCCESS
    assert [success.row for success in result.successful] == [1, 3]
    assert result.failed[0].row == 2
    assert result.failed[0].errors == [ROW_CONFLICT_MESSAGE]

    async with session_factory() as session:
        page = await LedgerService(TransactionRepository(session)).list_transactions(CLIENT)
    assert page.total == 2


async def test_scope_hides_other_profiles_and_blocks_posted_delete(session_factory):
    async with session_factory() as session:
        service = LedgerService(TransactionRepository(session))
        created = await service.create_transaction(
            OTHER_CLIENT,
            TransactionDraft.model_validate(
                _buy(master_account_id=None, client_account_id="CA-9", client_profile_id="CP-9", entry_status="POSTED")
            ),
        )

    async with session_factory() as session:
        service = LedgerService(TransactionRepository(session))
        page = await service.list_transactions(CLIENT, TransactionFilters())
        assert page.total == 0
        balance = await service.cash_balance(OTHER_CLIENT)
        assert balance == Decimal("-15050.00")

    async with session_factory() as session:
        with pytest.raises(ConflictError):
            await LedgerService(TransactionRepository(session)).delete_transaction(
                OTHER_CLIENT, created.transaction.id
            )
