"""
Token Usage Service
===================
Per-day, per-model token usage counters over HTTP.
"""

__version__ = "1.0.0"
