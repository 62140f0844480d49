"""Host metrics endpoints served from the snapshot cache."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from api.dependencies import metrics_service_dependency
from metrics.errors import NotReadyError
from metrics.service import MetricsService


router = APIRouter()


@router.get("", tags=["metrics"])
async def current_metrics(service: MetricsService = Depends(metrics_service_dependency)):
    try:
        snapshot = service.snapshot()
    except NotReadyError as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": str(exc), "code": "not_ready"},
            headers={"Retry-After": str(max(1, round(service.interval)))},
        )
    return snapshot.to_wire()


@router.get("/status", tags=["metrics"])
async def metrics_status(service: MetricsService = Depends(metrics_service_dependency)) -> dict:
    return service.status()
