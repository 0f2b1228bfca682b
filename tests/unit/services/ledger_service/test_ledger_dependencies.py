# tests/unit/services/ledger_service/test_ledger_dependencies.py
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException

from ledger_common.exceptions import AuthenticationMissingError, NotFoundError
from ledger_common.logging_utils import principal_id_var

from src.services.ledger_service.app.dependencies import (
    get_current_principal,
    get_upload_service,
    pagination_params,
    resolve_principal,
    transaction_filter_params,
)
from src.services.ledger_service.app.services.bulk_ledger_service import BulkLedgerService

REPOSITORY_PATH = "src.services.ledger_service.app.dependencies.PrincipalRepository"


def test_pagination_params_passthrough():
    assert pagination_params(page=3, limit=900) == {"page": 3, "limit": 900}


def test_transaction_filter_params_builds_filters():
    filters = transaction_filter_params(
        account_id="client_CA-1",
        start_date=None,
        end_date=None,
        transaction_type=None,
        entry_status=None,
        security_id="SEC-1",
    )
    assert filters.account_id == "client_CA-1"
    assert filters.security_id == "SEC-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("subject", [None, ""])
async def test_resolve_principal_requires_subject(subject):
    with pytest.raises(AuthenticationMissingError):
        await resolve_principal(AsyncMock(), subject)


@pytest.mark.asyncio
async def test_resolve_principal_unknown_subject():
    with patch(REPOSITORY_PATH) as repository_cls:
        repository_cls.return_value.get_by_auth_subject = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError, match="User not found"):
            await resolve_principal(AsyncMock(), "sub-unknown")


@pytest.mark.asyncio
async def test_get_current_principal_sets_log_context(client_principal):
    with patch(REPOSITORY_PATH) as repository_cls:
        repository_cls.return_value.get_by_auth_subject = AsyncMock(return_value=client_principal)
        token = principal_id_var.set("<not-set>")
        try:
            principal = await get_current_principal(subject="sub-client", db=AsyncMock())
            assert principal is client_principal
            assert principal_id_var.get() == "U-CLIENT"
        finally:
            principal_id_var.reset(token)
    repository_cls.return_value.get_by_auth_subject.assert_awaited_once_with("sub-client")


@pytest.mark.asyncio
async def test_get_current_principal_missing_header_is_401():
    with pytest.raises(HTTPException) as exc_info:
        await get_current_principal(subject=None, db=AsyncMock())
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == {"error": "Unauthorized"}


def test_get_upload_service_wraps_bulk_service():
    bulk_service = MagicMock(spec=BulkLedgerService)
    upload_service = get_upload_service(bulk_service=bulk_service)
    assert upload_service._bulk_service is bulk_service
