"""
Database Models
===============
SQLAlchemy ORM models for token usage counters.
"""

from token_usage.models.base import Base
from token_usage.models.usage import TokenUsage

__all__ = [
    "Base",
    "TokenUsage",
]
