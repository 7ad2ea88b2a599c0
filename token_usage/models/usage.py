"""
Token Usage Models
==================
Per-day, per-model token counters.
"""

import datetime

from sqlalchemy import Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from token_usage.models.base import Base


class TokenUsage(Base):
    """
    Latest reported token count for one model on one day.
    A later report for the same (date, model) replaces total_tokens.
    """

    __tablename__ = "token_usage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("uq_token_usage_date_model", "date", "model", unique=True),
    )
