"""Aggregate all v1 sub-routers."""

from fastapi import APIRouter

from cherrycap.api.v1.analytics import router as analytics_router
from cherrycap.api.v1.health import router as health_router
from cherrycap.api.v1.sites import router as sites_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["health"])
api_v1_router.include_router(sites_router, prefix="/sites", tags=["sites"])
api_v1_router.include_router(analytics_router, prefix="/analytics", tags=["analytics"])
