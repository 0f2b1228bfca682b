from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import Any, Dict, Optional

from ..config import LEDGER_SETTLEMENT_CALENDAR, LEDGER_SETTLEMENT_LAG_DAYS
from .business_calendar import BusinessDayCalendar, resolve_calendar
from .models import TRADE_TYPES, TransactionDraft

CENT = Decimal("0.01")


def trade_amount(quantity: Decimal, price: Decimal) -> Optional[Decimal]:
    """quantity x price to the cent, or None when the product has too many digits to quantize."""
    try:
        return (quantity * price).quantize(CENT, rounding=ROUND_HALF_UP)
    except DecimalException:
        return None


def calculate_transaction_fields(
    draft: TransactionDraft,
    *,
    calendar: Optional[BusinessDayCalendar] = None,
    settlement_lag_days: int = LEDGER_SETTLEMENT_LAG_DAYS,
) -> TransactionDraft:
    """
    Derives the fields a caller may omit. Supplied values are never
    overwritten, so applying the calculation twice gives the same draft.
    """
    updates: Dict[str, Any] = {}
    is_trade = draft.transaction_type in TRADE_TYPES

    if (
        is_trade
        and draft.amount is None
        and draft.quantity is not None
        and draft.price is not None
    ):
        amount = trade_amount(draft.quantity, draft.price)
        if amount is not None:
            updates["amount"] = amount

    trade_date = draft.trade_date
    if trade_date is None and draft.transaction_date is not None:
        trade_date = draft.transaction_date.date()
        updates["trade_date"] = trade_date

    if is_trade and draft.settlement_date is None and trade_date is not None:
        advance = calendar or resolve_calendar(LEDGER_SETTLEMENT_CALENDAR)
        updates["settlement_date"] = advance(trade_date, settlement_lag_days)

    if not updates:
        return draft
    return draft.model_copy(update=updates)
