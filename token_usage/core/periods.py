"""
Reporting Periods
=================
Map period keywords to the first calendar day they cover.
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum


class Period(str, Enum):
    """Named aggregation windows, all ending today."""

    WEEK = "week"
    MONTH = "month"
    LIFETIME = "lifetime"


VALID_PERIODS = tuple(p.value for p in Period)


class InvalidPeriodError(ValueError):
    """Raised for a period keyword outside ``VALID_PERIODS``."""

    def __init__(self, period: str):
        self.period = period
        super().__init__("Invalid period. Use 'week', 'month' or 'lifetime'")


def parse_period(value: str) -> Period:
    try:
        return Period(value)
    except ValueError as e:
        raise InvalidPeriodError(value) from e


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def period_start(period: Period, today: date | None = None) -> date | None:
    """
    Return the first day included in ``period``.

    Weeks start on Sunday. ``None`` means no lower bound (lifetime).
    """
    today = today or utc_today()

    if period is Period.WEEK:
        # date.weekday() is 0 for Monday, 6 for Sunday
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period is Period.MONTH:
        return today.replace(day=1)
    return None
