"""
Pydantic Schemas
================
Request/Response models for API validation.
"""

from token_usage.schemas.usage import (
    MessageResponse,
    PeriodTotalResponse,
    TokenUsageRecord,
    UsageLookupResponse,
    UsageReport,
)

__all__ = [
    "UsageReport",
    "TokenUsageRecord",
    "MessageResponse",
    "UsageLookupResponse",
    "PeriodTotalResponse",
]
