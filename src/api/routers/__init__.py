"""HTTP router factory wiring health, metrics, and catalog endpoints."""

from fastapi import APIRouter

from . import apps, health, metrics


def create_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, prefix="/health")
    router.include_router(metrics.router, prefix="/api/metrics")
    router.include_router(apps.router, prefix="/api/apps")
    return router
