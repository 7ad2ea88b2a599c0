"""
Usage Schemas
=============
Pydantic models for the token usage API.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class UsageReport(BaseModel):
    """
    Token usage reported for one model on one day.
    Replaces any earlier report for the same date and model.
    """

    date: date
    model: str = Field(..., min_length=1, max_length=255)
    # stored in a 32-bit INTEGER column
    total_tokens: int = Field(..., ge=-(2**31), le=2**31 - 1)


class TokenUsageRecord(BaseModel):
    """Stored usage row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    model: str
    total_tokens: int


class MessageResponse(BaseModel):
    """Plain confirmation or error message."""

    message: str


class UsageLookupResponse(BaseModel):
    """
    Result of a single (date, model) lookup.
    status is 1 when a row was found, 0 otherwise.
    """

    status: int
    total_tokens: int | None = None
    message: str | None = None


class PeriodTotalResponse(BaseModel):
    """Summed tokens for a model over a period."""

    total_tokens: int
