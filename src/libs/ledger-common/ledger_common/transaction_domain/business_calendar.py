"""
Business-day calendars used to derive settlement dates.

A calendar is any callable ``(start, days) -> date``. Holidays are not
modelled; only Saturday and Sunday are non-business days.
"""
from datetime import date, timedelta
from typing import Callable, Dict

BusinessDayCalendar = Callable[[date, int], date]

_SATURDAY = 5


def _is_weekend(day: date) -> bool:
    return day.weekday() >= _SATURDAY


def add_business_days(start: date, days: int) -> date:
    """Advances one day at a time, counting only days that land on a weekday."""
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if not _is_weekend(current):
            remaining -= 1
    return current


def add_business_days_legacy(start: date, days: int) -> date:
    """
    Reproduces the settlement dates the ledger historically stored.

    The weekend test is applied to the day being left rather than the day
    being reached, so a Thursday trade settles on Saturday while trades that
    do not cross a weekend match add_business_days.
    """
    current = start
    remaining = days
    while remaining > 0:
        previous = current
        current += timedelta(days=1)
        if not _is_weekend(previous):
            remaining -= 1
    return current


CALENDARS: Dict[str, BusinessDayCalendar] = {
    "business": add_business_days,
    "legacy": add_business_days_legacy,
}


def resolve_calendar(name: str) -> BusinessDayCalendar:
    try:
        return CALENDARS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown settlement calendar '{name}'. Expected one of: {', '.join(sorted(CALENDARS))}."
        ) from None
