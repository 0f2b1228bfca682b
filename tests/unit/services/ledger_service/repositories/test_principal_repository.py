# tests/unit/services/ledger_service/repositories/test_principal_repository.py
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_common.database_models import ClientProfile, User
from ledger_common.transaction_domain import PrincipalLevel

from src.services.ledger_service.app.repositories.principal_repository import PrincipalRepository

pytestmark = pytest.mark.asyncio


@asynccontextmanager
async def _noop_transaction():
    yield


def _session_returning(user) -> AsyncMock:
    session = AsyncMock(spec=AsyncSession)
    result = MagicMock()
    result.scalars.return_value.first.return_value = user
    session.execute = AsyncMock(return_value=result)
    session.begin = MagicMock(side_effect=lambda: _noop_transaction())
    return session


async def test_resolves_user_with_client_profile():
    profile = ClientProfile(id="CP-2", level="L3_SUBCLIENT", organization_id="ORG-1", parent_client_id="CP-1")
    user = User(id="U-1", auth_subject="idp|123", level="L3_SUBCLIENT", client_profile=profile)
    session = _session_returning(user)

    principal = await PrincipalRepository(session).get_by_auth_subject("idp|123")

    assert principal.id == "U-1"
    assert principal.level == PrincipalLevel.L3_SUBCLIENT
    assert principal.client_profile.parent_client_id == "CP-1"
    executed_stmt = session.execute.call_args[0][0]
    assert "users.auth_subject = 'idp|123'" in str(
        executed_stmt.compile(compile_kwargs={"literal_binds": True})
    )
    session.begin.assert_called_once()


async def test_unknown_subject_resolves_to_none():
    session = _session_returning(None)
    assert await PrincipalRepository(session).get_by_auth_subject("idp|missing") is None
