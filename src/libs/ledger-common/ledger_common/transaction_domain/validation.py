from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from .models import (
    QUANTITY_REQUIRED_TYPES,
    SECURITY_REQUIRED_TYPES,
    TRADE_TYPES,
    TransactionDraft,
)
from .reason_codes import TransactionValidationReasonCode

AMOUNT_TOLERANCE = Decimal("0.01")
# Numeric(18, 10) columns keep eight integer digits.
MAX_STORABLE_MAGNITUDE = Decimal("100000000")
BOUNDED_FIELDS = ("quantity", "price", "amount", "fee", "tax")


@dataclass(frozen=True)
class TransactionValidationIssue:
    code: TransactionValidationReasonCode
    field: str
    message: str


def _is_number(value: Optional[Decimal]) -> bool:
    return value is not None and value.is_finite()


def _is_storable(value: Optional[Decimal]) -> bool:
    return _is_number(value) and abs(value) < MAX_STORABLE_MAGNITUDE


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def validate_transaction(
    txn: TransactionDraft, *, today: Optional[date] = None
) -> List[TransactionValidationIssue]:
    """
    Checks a calculated draft against every ledger invariant. All checks run;
    the returned issues keep a stable order so messages can be shown as-is.
    """
    issues: List[TransactionValidationIssue] = []
    txn_type = txn.transaction_type
    type_label = txn_type.value if txn_type is not None else ""

    if txn.transaction_date is None:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_TRANSACTION_DATE,
                field="transaction_date",
                message="Transaction date is required",
            )
        )

    if txn_type is None:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_TRANSACTION_TYPE,
                field="transaction_type",
                message="Transaction type is required",
            )
        )

    if not _is_number(txn.amount):
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.INVALID_AMOUNT,
                field="amount",
                message="Valid amount is required",
            )
        )

    if not txn.master_account_id and not txn.client_account_id:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_ACCOUNT,
                field="master_account_id",
                message="Account is required",
            )
        )
    elif txn.master_account_id and txn.client_account_id:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.AMBIGUOUS_ACCOUNT,
                field="client_account_id",
                message="Transaction cannot belong to both master and client account",
            )
        )

    if not txn.client_profile_id:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_CLIENT_PROFILE,
                field="client_profile_id",
                message="Client profile is required",
            )
        )

    if txn_type in SECURITY_REQUIRED_TYPES and not txn.security_id:
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_SECURITY,
                field="security_id",
                message=f"Security is required for {type_label} transactions",
            )
        )

    if txn_type in QUANTITY_REQUIRED_TYPES and not _is_number(txn.quantity):
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.MISSING_QUANTITY,
                field="quantity",
                message=f"Valid quantity is required for {type_label} transactions",
            )
        )

    if txn_type in TRADE_TYPES:
        if not _is_number(txn.price):
            issues.append(
                TransactionValidationIssue(
                    code=TransactionValidationReasonCode.MISSING_PRICE,
                    field="price",
                    message=f"Valid price is required for {type_label} transactions",
                )
            )

        quantity = txn.quantity if _is_storable(txn.quantity) else Decimal(0)
        price = txn.price if _is_storable(txn.price) else Decimal(0)
        amount = txn.amount if _is_storable(txn.amount) else Decimal(0)
        expected = quantity * price
        if abs(amount - expected) > AMOUNT_TOLERANCE:
            issues.append(
                TransactionValidationIssue(
                    code=TransactionValidationReasonCode.AMOUNT_MISMATCH,
                    field="amount",
                    message=(
                        f"Amount ({amount}) should equal quantity ({quantity}) "
                        f"x price ({price}) = {expected}"
                    ),
                )
            )

    for field_name in BOUNDED_FIELDS:
        value = getattr(txn, field_name)
        if _is_number(value) and not _is_storable(value):
            issues.append(
                TransactionValidationIssue(
                    code=TransactionValidationReasonCode.VALUE_OUT_OF_RANGE,
                    field=field_name,
                    message=f"{field_name.capitalize()} must be less than 100,000,000 in magnitude",
                )
            )

    if txn.transaction_date is not None:
        current_day = today or datetime.now(timezone.utc).date()
        if txn.transaction_date > _end_of_day(current_day):
            issues.append(
                TransactionValidationIssue(
                    code=TransactionValidationReasonCode.FUTURE_TRANSACTION_DATE,
                    field="transaction_date",
                    message="Transaction date cannot be in the future",
                )
            )

    if (
        txn.trade_date is not None
        and txn.settlement_date is not None
        and txn.trade_date > txn.settlement_date
    ):
        issues.append(
            TransactionValidationIssue(
                code=TransactionValidationReasonCode.INVALID_DATE_ORDER,
                field="trade_date",
                message="Trade date cannot be after settlement date",
            )
        )

    return issues


def transaction_validation_messages(issues: Iterable[TransactionValidationIssue]) -> List[str]:
    return [issue.message for issue in issues]
