"""
Usage Service Tests
===================
Tests for recording and aggregating token usage.
"""

import asyncio
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from token_usage.core.periods import InvalidPeriodError
from token_usage.database import UsageStore
from token_usage.schemas.usage import UsageReport
from token_usage.services.usage import RecordOutcome, UsageService


def report(day: str, model: str, tokens: int) -> UsageReport:
    return UsageReport(date=date.fromisoformat(day), model=model, total_tokens=tokens)


class TestRecordUsage:
    """Tests for UsageService.record_usage."""

    async def test_created_then_updated(self, session: AsyncSession):
        service = UsageService(session)

        assert await service.record_usage(report("2024-01-10", "gpt-4", 100)) is RecordOutcome.CREATED
        assert await service.record_usage(report("2024-01-10", "gpt-4", 150)) is RecordOutcome.UPDATED

        assert await service.get_usage(date(2024, 1, 10), "gpt-4") == 150

    async def test_keys_are_date_and_model(self, session: AsyncSession):
        service = UsageService(session)

        await service.record_usage(report("2024-01-10", "gpt-4", 100))
        assert await service.record_usage(report("2024-01-11", "gpt-4", 200)) is RecordOutcome.CREATED
        assert await service.record_usage(report("2024-01-10", "claude", 300)) is RecordOutcome.CREATED

        rows = await service.list_usage()
        assert len(rows) == 3

    async def test_update_does_not_accumulate(self, session: AsyncSession):
        service = UsageService(session)

        for tokens in (100, 40, 70):
            await service.record_usage(report("2024-01-10", "gpt-4", tokens))

        rows = await service.list_usage()
        assert [(r.date, r.model, r.total_tokens) for r in rows] == [
            (date(2024, 1, 10), "gpt-4", 70)
        ]


    async def test_concurrent_first_reports(self, store: UsageStore):
        """Two sessions racing on the same (date, model) leave a single row."""

        async def record(tokens: int) -> RecordOutcome:
            async with store.session() as session:
                return await UsageService(session).record_usage(report("2024-01-10", "gpt-4", tokens))

        outcomes = await asyncio.gather(record(100), record(150))

        assert sorted(o.value for o in outcomes) == ["created", "updated"]

        async with store.session() as session:
            rows = await UsageService(session).list_usage()
        assert len(rows) == 1
        updated_tokens = 100 if outcomes[0] is RecordOutcome.UPDATED else 150
        assert rows[0].total_tokens == updated_tokens


class TestGetUsage:
    """Tests for UsageService.get_usage."""

    async def test_missing_returns_none(self, session: AsyncSession):
        service = UsageService(session)
        assert await service.get_usage(date(2024, 1, 10), "gpt-4") is None

    async def test_zero_is_found(self, session: AsyncSession):
        service = UsageService(session)
        await service.record_usage(report("2024-01-10", "gpt-4", 0))

        assert await service.get_usage(date(2024, 1, 10), "gpt-4") == 0


class TestPeriodTotal:
    """Tests for UsageService.get_period_total."""

    # Wednesday; the week starts on Sunday 2024-01-14
    TODAY = date(2024, 1, 17)

    @pytest.fixture
    async def service(self, session: AsyncSession) -> UsageService:
        service = UsageService(session)
        await service.record_usage(report("2023-12-20", "gpt-4", 1000))
        await service.record_usage(report("2024-01-03", "gpt-4", 100))
        await service.record_usage(report("2024-01-14", "gpt-4", 30))
        await service.record_usage(report("2024-01-15", "gpt-4", 20))
        await service.record_usage(report("2024-01-15", "claude", 5000))
        return service

    async def test_week_excludes_earlier_days_of_month(self, service: UsageService):
        assert await service.get_period_total("gpt-4", "week", today=self.TODAY) == 50

    async def test_month_includes_them(self, service: UsageService):
        assert await service.get_period_total("gpt-4", "month", today=self.TODAY) == 150

    async def test_lifetime_sums_everything(self, service: UsageService):
        assert await service.get_period_total("gpt-4", "lifetime", today=self.TODAY) == 1150

    async def test_unknown_model_sums_to_zero(self, service: UsageService):
        assert await service.get_period_total("gemini", "lifetime", today=self.TODAY) == 0

    async def test_invalid_period(self, service: UsageService):
        with pytest.raises(InvalidPeriodError):
            await service.get_period_total("gpt-4", "year", today=self.TODAY)
