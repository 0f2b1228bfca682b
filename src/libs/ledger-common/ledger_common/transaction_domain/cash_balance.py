from decimal import Decimal
from typing import Any, Iterable, Mapping

from .models import TransactionType

CASH_OUTFLOW_TYPES = frozenset({
    TransactionType.BUY.value,
    TransactionType.FEE.value,
    TransactionType.TAX.value,
    TransactionType.TRANSFER_OUT.value,
})

CASH_INFLOW_TYPES = frozenset({
    TransactionType.SELL.value,
    TransactionType.DIVIDEND.value,
    TransactionType.INTEREST.value,
    TransactionType.TRANSFER_IN.value,
})


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _as_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _type_code(value: Any) -> str:
    if isinstance(value, TransactionType):
        return value.value
    return str(value) if value is not None else ""


def calculate_cash_balance(items: Iterable[Any]) -> Decimal:
    """
    Net cash effect of a set of ledger rows. Items are mappings or objects
    exposing `transaction_type` and `amount`; the result does not depend on
    their order.
    """
    balance = Decimal(0)
    for item in items:
        amount = _as_decimal(_field(item, "amount"))
        txn_type = _type_code(_field(item, "transaction_type"))
        if txn_type in CASH_OUTFLOW_TYPES:
            balance -= amount
        else:
            # Inflow types and unknown types both add the signed amount.
            balance += amount
    return balance
