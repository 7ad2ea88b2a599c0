"""
Usage Service
=============
Business logic for recording and querying token usage.
"""

from datetime import date
from enum import Enum

import structlog
from prometheus_client import Counter
from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from token_usage.core.periods import parse_period, period_start
from token_usage.models.usage import TokenUsage
from token_usage.schemas.usage import UsageReport

logger = structlog.get_logger()

USAGE_REPORTS = Counter(
    "token_usage_reports_total",
    "Usage reports accepted, by whether they created or updated a row",
    ["outcome"],
)

UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RecordOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class UsageService:
    """Service for managing per-day, per-model token counters."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        # connect_store only accepts backends listed in UPSERT_INSERTS
        return UPSERT_INSERTS[self.session.get_bind().dialect.name]

    async def record_usage(self, report: UsageReport) -> RecordOutcome:
        """
        Store the latest token count for (date, model).

        The insert skips on a (date, model) conflict, in which case the
        existing row is updated inside the same transaction. Concurrent
        first reports therefore never produce duplicate rows.
        """
        logger.info(
            "Received token usage",
            date=str(report.date),
            model=report.model,
            total_tokens=report.total_tokens,
        )

        insert_stmt = (
            self._insert()(TokenUsage)
            .values(
                date=report.date,
                model=report.model,
                total_tokens=report.total_tokens,
            )
            .on_conflict_do_nothing(index_elements=["date", "model"])
            .returning(TokenUsage.id)
        )
        result = await self.session.execute(insert_stmt)
        created_id = result.scalar_one_or_none()

        if created_id is not None:
            outcome = RecordOutcome.CREATED
        else:
            await self.session.execute(
                update(TokenUsage)
                .where(TokenUsage.date == report.date, TokenUsage.model == report.model)
                .values(total_tokens=report.total_tokens)
            )
            outcome = RecordOutcome.UPDATED

        await self.session.commit()
        USAGE_REPORTS.labels(outcome=outcome.value).inc()

        logger.info(
            "Recorded token usage",
            outcome=outcome.value,
            date=str(report.date),
            model=report.model,
            total_tokens=report.total_tokens,
        )
        return outcome

    async def list_usage(self) -> list[TokenUsage]:
        """Return every stored row, in storage order."""
        result = await self.session.execute(select(TokenUsage))
        return list(result.scalars().all())

    async def get_usage(self, usage_date: date, model: str) -> int | None:
        """Return total_tokens for (date, model), or None if nothing was reported."""
        stmt = select(TokenUsage.total_tokens).where(
            TokenUsage.date == usage_date,
            TokenUsage.model == model,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_period_total(
        self,
        model: str,
        period: str,
        today: date | None = None,
    ) -> int:
        """
        Sum total_tokens for a model over a named period.

        Args:
            model: Model name, matched exactly
            period: One of week, month or lifetime
            today: Reference day (defaults to the current UTC day)

        Returns:
            The summed token count, 0 when no rows matched

        Raises:
            InvalidPeriodError: if period is not a known keyword
        """
        start = period_start(parse_period(period), today)

        stmt = select(func.coalesce(func.sum(TokenUsage.total_tokens), 0)).where(
            TokenUsage.model == model
        )
        if start is not None:
            stmt = stmt.where(TokenUsage.date >= start)

        result = await self.session.execute(stmt)
        return int(result.scalar_one())
