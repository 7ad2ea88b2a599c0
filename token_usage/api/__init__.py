"""
HTTP API
========
Routers and error handling for the token usage service.
"""

from token_usage.api.errors import register_exception_handlers
from token_usage.api.router import api_router

__all__ = ["api_router", "register_exception_handlers"]
