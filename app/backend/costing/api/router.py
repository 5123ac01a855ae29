"""Top-level API router."""

from fastapi import APIRouter

from costing.api.routes.costing import router as costing_router
from costing.api.routes.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(costing_router)
