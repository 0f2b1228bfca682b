# src/services/ledger_service/app/services/permission_filters.py
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from ledger_common.database_models import ClientProfile, Transaction
from ledger_common.exceptions import AuthorizationDeniedError
from ledger_common.transaction_domain import (
    EntryStatus,
    Principal,
    PrincipalLevel,
    TransactionType,
    parse_account_reference,
)

ScopeStrategy = Callable[[Principal], Optional[ColumnElement]]


@dataclass(frozen=True)
class TransactionFilters:
    account_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    transaction_type: Optional[TransactionType] = None
    entry_status: Optional[EntryStatus] = None
    security_id: Optional[str] = None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def _admin_scope(principal: Principal) -> Optional[ColumnElement]:
    return None


def _agent_scope(principal: Principal) -> Optional[ColumnElement]:
    profile = principal.client_profile
    if profile.organization_id:
        return Transaction.client_profile.has(ClientProfile.organization_id == profile.organization_id)
    return Transaction.client_profile_id == profile.id


def _subclient_scope(principal: Principal) -> Optional[ColumnElement]:
    profile_id = principal.client_profile.id
    # Self and direct children only; grandchildren stay invisible.
    return Transaction.client_profile.has(
        or_(ClientProfile.id == profile_id, ClientProfile.parent_client_id == profile_id)
    )


def _client_scope(principal: Principal) -> Optional[ColumnElement]:
    return Transaction.client_profile_id == principal.client_profile.id


SCOPE_STRATEGIES: Dict[PrincipalLevel, ScopeStrategy] = {
    PrincipalLevel.L5_ADMIN: _admin_scope,
    PrincipalLevel.L4_AGENT: _agent_scope,
    PrincipalLevel.L3_SUBCLIENT: _subclient_scope,
    PrincipalLevel.L2_CLIENT: _client_scope,
}


def build_scope_predicate(principal: Principal) -> Optional[ColumnElement]:
    """
    The rows a principal may see, or None when nothing restricts them.
    A non-admin without a client profile matches nothing.
    """
    if principal.is_admin:
        return None
    if principal.client_profile is None:
        return false()
    return SCOPE_STRATEGIES[principal.level](principal)


def build_transaction_filters(
    principal: Principal, filters: Optional[TransactionFilters] = None
) -> ColumnElement:
    """
    Combines the principal's visibility scope with the caller's narrowing
    filters into one predicate over Transaction.
    """
    filters = filters or TransactionFilters()
    clauses: List[ColumnElement] = []

    scope = build_scope_predicate(principal)
    if scope is not None:
        clauses.append(scope)

    account = parse_account_reference(filters.account_id)
    if account is not None:
        clauses.append(getattr(Transaction, account.field) == account.account_id)

    if filters.start_date:
        clauses.append(Transaction.transaction_date >= start_of_day(filters.start_date))
    if filters.end_date:
        clauses.append(Transaction.transaction_date <= end_of_day(filters.end_date))
    if filters.transaction_type:
        clauses.append(Transaction.transaction_type == TransactionType(filters.transaction_type).value)
    if filters.entry_status:
        clauses.append(Transaction.entry_status == EntryStatus(filters.entry_status).value)
    if filters.security_id:
        clauses.append(Transaction.security_id == filters.security_id)

    if not clauses:
        return true()
    return and_(*clauses)


OTHER_PROFILE_MESSAGE = "Cannot create transactions for other client profiles"


def ensure_write_ownership(principal: Principal, client_profile_id: Optional[str]) -> None:
    """Non-admins may only write rows booked against their own client profile."""
    if principal.is_admin:
        return
    if principal.client_profile_id is None or client_profile_id != principal.client_profile_id:
        raise AuthorizationDeniedError(OTHER_PROFILE_MESSAGE)
