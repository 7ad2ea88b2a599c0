"""
API Router
==========
Main API router combining all endpoint modules.
"""

from fastapi import APIRouter

from token_usage.api.endpoints import health, usage

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(usage.router, prefix="/token_usage", tags=["Token Usage"])
