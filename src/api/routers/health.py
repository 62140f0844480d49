"""Liveness and readiness endpoints."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from api.dependencies import get_metrics_service


router = APIRouter()


@router.get("", tags=["health"], response_class=PlainTextResponse)
async def liveness() -> str:
    return "OK"


@router.get("/status", tags=["health"])
async def readiness() -> dict:
    service = get_metrics_service()
    status = service.status()
    return {
        "ok": status["running"] and status["cache"]["ready"],
        "metrics": {
            "state": status["state"],
            "ready": status["cache"]["ready"],
            "version": status["cache"]["version"],
            "degraded": status["cache"]["degraded"],
        },
    }
