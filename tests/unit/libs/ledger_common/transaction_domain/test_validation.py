# tests/unit/libs/ledger_common/transaction_domain/test_validation.py
from datetime import date, datetime, timezone

from ledger_common.transaction_domain import (
    TransactionDraft,
    TransactionValidationReasonCode as Code,
    transaction_validation_messages,
    validate_transaction,
)

TODAY = date(2024, 6, 1)


def _draft(**overrides) -> TransactionDraft:
    payload = {
        "transaction_date": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "transaction_type": "BUY",
        "security_id": "SEC-AAPL",
        "quantity": "100",
        "price": "150.50",
        "amount": "15050.00",
        "trade_date": "2024-01-15",
        "settlement_date": "2024-01-17",
        "master_account_id": "MA-1",
        "client_profile_id": "CP-1",
    }
    payload.update(overrides)
    return TransactionDraft.model_validate(payload)


def _codes(issues):
    return [issue.code for issue in issues]


def test_valid_buy_has_no_issues():
    assert validate_transaction(_draft(), today=TODAY) == []


def test_empty_draft_reports_every_missing_field_in_order():
    issues = validate_transaction(TransactionDraft(), today=TODAY)

    assert transaction_validation_messages(issues) == [
        "Transaction date is required",
        "Transaction type is required",
        "Valid amount is required",
        "Account is required",
        "Client profile is required",
    ]


def test_both_accounts_set_is_a_distinct_issue():
    issues = validate_transaction(_draft(client_account_id="CA-1"), today=TODAY)

    assert _codes(issues) == [Code.AMBIGUOUS_ACCOUNT]
    assert issues[0].message == "Transaction cannot belong to both master and client account"


def test_buy_without_security_quantity_and_price():
    """
    GIVEN a BUY missing security, quantity and price
    WHEN validated
    THEN each requirement is reported, followed by the amount consistency check.
    """
    issues = validate_transaction(
        _draft(security_id=None, quantity=None, price=None), today=TODAY
    )

    assert _codes(issues) == [
        Code.MISSING_SECURITY,
        Code.MISSING_QUANTITY,
        Code.MISSING_PRICE,
        Code.AMOUNT_MISMATCH,
    ]
    assert issues[0].message == "Security is required for BUY transactions"
    assert issues[1].message == "Valid quantity is required for BUY transactions"
    assert issues[2].message == "Valid price is required for BUY transactions"


def test_amount_within_tolerance_passes():
    assert validate_transaction(_draft(amount="15050.01"), today=TODAY) == []
    assert validate_transaction(_draft(amount="15049.99"), today=TODAY) == []


def test_amount_outside_tolerance_fails():
    issues = validate_transaction(_draft(amount="15050.02"), today=TODAY)

    assert _codes(issues) == [Code.AMOUNT_MISMATCH]
    assert issues[0].message.startswith("Amount (15050.02) should equal quantity (100)")


def test_zero_quantity_and_amount_count_as_present():
    issues = validate_transaction(_draft(quantity="0", amount="0"), today=TODAY)
    assert issues == []


def test_split_requires_security_and_quantity_but_not_price():
    issues = validate_transaction(
        _draft(transaction_type="SPLIT", security_id=None, quantity=None, price=None, amount="0"),
        today=TODAY,
    )
    assert _codes(issues) == [Code.MISSING_SECURITY, Code.MISSING_QUANTITY]


def test_cash_types_need_no_security():
    issues = validate_transaction(
        _draft(transaction_type="INTEREST", security_id=None, quantity=None, price=None, amount="12.5"),
        today=TODAY,
    )
    assert issues == []


def test_transaction_later_today_is_allowed():
    late_today = datetime(2024, 6, 1, 23, 59, 59, tzinfo=timezone.utc)
    assert validate_transaction(_draft(transaction_date=late_today), today=TODAY) == []


def test_future_transaction_date_is_rejected():
    tomorrow = datetime(2024, 6, 2, 0, 0, 1, tzinfo=timezone.utc)

    issues = validate_transaction(_draft(transaction_date=tomorrow), today=TODAY)

    assert _codes(issues) == [Code.FUTURE_TRANSACTION_DATE]


def test_trade_date_after_settlement_date():
    issues = validate_transaction(
        _draft(trade_date="2024-01-18", settlement_date="2024-01-17"), today=TODAY
    )

    assert _codes(issues) == [Code.INVALID_DATE_ORDER]
    assert issues[0].message == "Trade date cannot be after settlement date"


def test_issue_carries_field_name():
    issues = validate_transaction(_draft(client_profile_id=None), today=TODAY)
    assert [(issue.code, issue.field) for issue in issues] == [
        (Code.MISSING_CLIENT_PROFILE, "client_profile_id")
    ]


def test_values_beyond_column_precision_are_out_of_range():
    issues = validate_transaction(
        _draft(quantity="1e20", price="1e10", amount=None), today=TODAY
    )

    assert _codes(issues) == [Code.INVALID_AMOUNT, Code.VALUE_OUT_OF_RANGE, Code.VALUE_OUT_OF_RANGE]
    assert [issue.field for issue in issues[1:]] == ["quantity", "price"]
    assert issues[1].message == "Quantity must be less than 100,000,000 in magnitude"


def test_amount_just_below_the_bound_is_accepted():
    issues = validate_transaction(
        _draft(
            transaction_type="TRANSFER_IN",
            security_id=None,
            quantity=None,
            price=None,
            amount="99999999.99",
        ),
        today=TODAY,
    )
    assert issues == []


def test_large_fee_is_out_of_range():
    issues = validate_transaction(_draft(fee="-150000000"), today=TODAY)
    assert [(issue.code, issue.field) for issue in issues] == [(Code.VALUE_OUT_OF_RANGE, "fee")]
