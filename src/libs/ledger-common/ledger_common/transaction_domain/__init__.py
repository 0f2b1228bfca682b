"""Ledger transaction domain: types, calculators and validators."""

from .account_reference import (
    CLIENT_ACCOUNT_PREFIX,
    MASTER_ACCOUNT_PREFIX,
    AccountReference,
    account_reference_of,
    parse_account_reference,
)
from .business_calendar import (
    CALENDARS,
    BusinessDayCalendar,
    add_business_days,
    add_business_days_legacy,
    resolve_calendar,
)
from .cash_balance import CASH_INFLOW_TYPES, CASH_OUTFLOW_TYPES, calculate_cash_balance
from .field_calculator import calculate_transaction_fields, trade_amount
from .models import (
    QUANTITY_REQUIRED_TYPES,
    SECURITY_REQUIRED_TYPES,
    TRADE_TYPES,
    ClientProfileRef,
    EntryStatus,
    Principal,
    PrincipalLevel,
    TransactionDraft,
    TransactionType,
)
from .reason_codes import TransactionValidationReasonCode
from .validation import (
    AMOUNT_TOLERANCE,
    MAX_STORABLE_MAGNITUDE,
    TransactionValidationIssue,
    transaction_validation_messages,
    validate_transaction,
)

__all__ = [
    "AMOUNT_TOLERANCE",
    "MAX_STORABLE_MAGNITUDE",
    "AccountReference",
    "BusinessDayCalendar",
    "CALENDARS",
    "CASH_INFLOW_TYPES",
    "CASH_OUTFLOW_TYPES",
    "CLIENT_ACCOUNT_PREFIX",
    "ClientProfileRef",
    "EntryStatus",
    "MASTER_ACCOUNT_PREFIX",
    "Principal",
    "PrincipalLevel",
    "QUANTITY_REQUIRED_TYPES",
    "SECURITY_REQUIRED_TYPES",
    "TRADE_TYPES",
    "TransactionDraft",
    "TransactionType",
    "TransactionValidationIssue",
    "TransactionValidationReasonCode",
    "account_reference_of",
    "add_business_days",
    "add_business_days_legacy",
    "calculate_cash_balance",
    "calculate_transaction_fields",
    "parse_account_reference",
    "resolve_calendar",
    "trade_amount",
    "transaction_validation_messages",
    "validate_transaction",
]
