"""
Core Helpers
============
Retry policy and reporting period arithmetic.
"""

from token_usage.core.periods import (
    VALID_PERIODS,
    InvalidPeriodError,
    Period,
    parse_period,
    period_start,
)
from token_usage.core.retry import retry_with_backoff

__all__ = [
    "Period",
    "VALID_PERIODS",
    "InvalidPeriodError",
    "parse_period",
    "period_start",
    "retry_with_backoff",
]
