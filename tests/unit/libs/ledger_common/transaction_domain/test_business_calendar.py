# tests/unit/libs/ledger_common/transaction_domain/test_business_calendar.py
from datetime import date

import pytest

from ledger_common.transaction_domain import (
    add_business_days,
    add_business_days_legacy,
    resolve_calendar,
)

MONDAY = date(2024, 1, 15)
THURSDAY = date(2024, 1, 18)
FRIDAY = date(2024, 1, 19)


@pytest.mark.parametrize(
    "start, expected",
    [
        (MONDAY, date(2024, 1, 17)),
        (THURSDAY, date(2024, 1, 22)),
        (FRIDAY, date(2024, 1, 23)),
        (date(2024, 1, 20), date(2024, 1, 23)),
    ],
)
def test_add_business_days_skips_weekends(start, expected):
    assert add_business_days(start, 2) == expected


def test_legacy_calendar_reproduces_historical_thursday_settlement():
    assert add_business_days_legacy(THURSDAY, 2) == date(2024, 1, 20)


def test_calendars_agree_when_no_weekend_is_crossed():
    assert add_business_days_legacy(MONDAY, 2) == add_business_days(MONDAY, 2) == date(2024, 1, 17)


def test_zero_days_returns_start():
    assert add_business_days(FRIDAY, 0) == FRIDAY
    assert add_business_days_legacy(FRIDAY, 0) == FRIDAY


def test_resolve_calendar_by_name():
    assert resolve_calendar("business") is add_business_days
    assert resolve_calendar("LEGACY") is add_business_days_legacy


def test_resolve_calendar_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown settlement calendar"):
        resolve_calendar("lunar")
