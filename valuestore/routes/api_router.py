"""Central API router composition.

This module mounts the individual route modules on the main API router and
provides a single import point for `FastAPI.include_router(...)`.
"""

from fastapi import APIRouter

from .values import router as values_router

router = APIRouter(prefix="/api", tags=["values"])

router.include_router(values_router)
