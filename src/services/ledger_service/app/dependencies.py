# src/services/ledger_service/app/dependencies.py
import logging
from datetime import date
from typing import Dict, Optional

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ledger_common.config import (
    AUTHENTICATED_SUBJECT_HEADER,
    LEDGER_LIST_DEFAULT_LIMIT,
)
from ledger_common.db import get_async_db_session
from ledger_common.exceptions import AuthenticationMissingError, NotFoundError
from ledger_common.logging_utils import principal_id_var
from ledger_common.transaction_domain import EntryStatus, Principal, TransactionType

from .error_mapping import to_http_exception
from .repositories.principal_repository import PrincipalRepository
from .repositories.transaction_repository import TransactionRepository
from .services.bulk_ledger_service import BulkLedgerService
from .services.ledger_service import LedgerService
from .services.permission_filters import TransactionFilters
from .services.upload_service import LedgerUploadService

logger = logging.getLogger(__name__)


def pagination_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(
        LEDGER_LIST_DEFAULT_LIMIT,
        ge=1,
        description="Maximum number of records to return; values above the configured maximum are clamped",
    ),
) -> Dict[str, int]:
    """
    A dependency that provides standardized pagination query parameters.
    """
    return {"page": page, "limit": limit}


def transaction_filter_params(
    account_id: Optional[str] = Query(None, description="Type-tagged account id: 'master_<id>' or 'client_<id>'."),
    start_date: Optional[date] = Query(None, description="Start of the transaction date range (inclusive)."),
    end_date: Optional[date] = Query(None, description="End of the transaction date range (inclusive)."),
    transaction_type: Optional[TransactionType] = Query(None),
    entry_status: Optional[EntryStatus] = Query(None),
    security_id: Optional[str] = Query(None),
) -> TransactionFilters:
    return TransactionFilters(
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
        transaction_type=transaction_type,
        entry_status=entry_status,
        security_id=security_id,
    )


async def resolve_principal(db: AsyncSession, subject: Optional[str]) -> Principal:
    if not subject:
        raise AuthenticationMissingError("Unauthorized")
    principal = await PrincipalRepository(db).get_by_auth_subject(subject)
    if principal is None:
        raise NotFoundError("User not found")
    return principal


async def get_current_principal(
    subject: Optional[str] = Header(
        None,
        alias=AUTHENTICATED_SUBJECT_HEADER,
        description="Subject verified by the upstream identity gateway.",
    ),
    db: AsyncSession = Depends(get_async_db_session),
) -> Principal:
    try:
        principal = await resolve_principal(db, subject)
    except (AuthenticationMissingError, NotFoundError) as exc:
        raise to_http_exception(exc)
    principal_id_var.set(principal.id)
    return principal


def get_ledger_service(db: AsyncSession = Depends(get_async_db_session)) -> LedgerService:
    return LedgerService(TransactionRepository(db))


def get_bulk_ledger_service(db: AsyncSession = Depends(get_async_db_session)) -> BulkLedgerService:
    return BulkLedgerService(TransactionRepository(db))


def get_upload_service(
    bulk_service: BulkLedgerService = Depends(get_bulk_ledger_service),
) -> LedgerUploadService:
    return LedgerUploadService(bulk_service)
