"""
Business Services
=================
Service layer for token usage tracking and reporting.
"""

from token_usage.services.usage import RecordOutcome, UsageService

__all__ = ["RecordOutcome", "UsageService"]
