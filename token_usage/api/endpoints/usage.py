"""
Usage Endpoints
===============
API endpoints for recording and querying daily token usage per model.
"""

import re
from datetime import date, datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.convertors import Convertor, register_url_convertor

from token_usage.api.errors import error_detail
from token_usage.core.periods import InvalidPeriodError
from token_usage.database import get_session
from token_usage.schemas.usage import (
    MessageResponse,
    PeriodTotalResponse,
    TokenUsageRecord,
    UsageLookupResponse,
    UsageReport,
)
from token_usage.services.usage import RecordOutcome, UsageService

router = APIRouter()
logger = structlog.get_logger()


class DateSegmentConvertor(Convertor):
    """
    Matches path segments shaped like a date (digits-digits-digits).

    Lets /{date}/{model} and /{model}/{period} share a path shape: anything
    date-like is a day lookup and gets parsed strictly by the handler.
    """

    regex = r"\d+-\d+-\d+"

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("date_segment", DateSegmentConvertor())

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_date(value: str) -> date:
    """Parse a zero-padded YYYY-MM-DD path segment."""
    try:
        if not ISO_DATE.fullmatch(value):
            raise ValueError(f"date {value!r} is not in YYYY-MM-DD form")
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        logger.warning("Invalid date format", date=value, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("Invalid date format", e),
        ) from e


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report token usage",
    description="Record the token count for a model on a day, replacing any earlier report",
    responses={status.HTTP_200_OK: {"model": MessageResponse}},
)
async def record_token_usage(
    report: UsageReport,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MessageResponse:
    """
    Report token usage for a (date, model) pair.

    - 201 when this is the first report for the pair
    - 200 when an earlier report was overwritten
    """
    try:
        service = UsageService(session)
        outcome = await service.record_usage(report)
    except SQLAlchemyError as e:
        logger.error(
            "Failed to record token usage",
            date=str(report.date),
            model=report.model,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("Failed to record token usage", e),
        ) from e

    if outcome is RecordOutcome.UPDATED:
        response.status_code = status.HTTP_200_OK
        return MessageResponse(message="Token usage updated successfully")
    return MessageResponse(message="Token usage recorded successfully")


@router.get(
    "",
    response_model=list[TokenUsageRecord],
    summary="List token usage",
    description="Return every stored usage record",
)
async def list_token_usage(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[TokenUsageRecord]:
    try:
        service = UsageService(session)
        rows = await service.list_usage()
    except SQLAlchemyError as e:
        logger.error("Failed to list token usage", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("Database query error", e),
        ) from e

    return [TokenUsageRecord.model_validate(row) for row in rows]


@router.get(
    "/{usage_date:date_segment}/{model}",
    response_model=UsageLookupResponse,
    response_model_exclude_none=True,
    summary="Get token usage for a day",
    description="Look up the reported token count for a model on a given date",
)
async def get_token_usage_by_date_and_model(
    usage_date: str,
    model: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> UsageLookupResponse:
    """
    Look up usage for one day.

    A missing record is not an error: the response has status 0 and
    no token count.
    """
    day = parse_date(usage_date)

    try:
        service = UsageService(session)
        total_tokens = await service.get_usage(day, model)
    except SQLAlchemyError as e:
        logger.error(
            "Failed to look up token usage",
            date=str(day),
            model=model,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("Database query error", e),
        ) from e

    if total_tokens is None:
        return UsageLookupResponse(
            status=0,
            message="No token usage data found for this date and model",
        )
    return UsageLookupResponse(status=1, total_tokens=total_tokens)


@router.get(
    "/{model}/{period}",
    response_model=PeriodTotalResponse,
    summary="Get token usage for a period",
    description="Sum a model's token usage over the current week, current month or lifetime",
    responses={status.HTTP_404_NOT_FOUND: {"model": MessageResponse}},
)
async def get_token_usage_by_period(
    model: str,
    period: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PeriodTotalResponse:
    """
    Sum usage for a model over a period.

    Supported periods:
    - week (since the most recent Sunday)
    - month (since the first of the current month)
    - lifetime

    A zero total is reported as 404, whether or not rows exist.
    """
    try:
        service = UsageService(session)
        total_tokens = await service.get_period_total(model, period)
    except InvalidPeriodError as e:
        logger.warning("Invalid period", model=model, period=period)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except SQLAlchemyError as e:
        logger.error(
            "Failed to sum token usage",
            model=model,
            period=period,
            error=str(e),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("Database query error", e),
        ) from e

    if total_tokens == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No token usage data found for this model",
        )
    return PeriodTotalResponse(total_tokens=total_tokens)
