"""Shared FastAPI dependencies exposing the service singletons."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException

from catalog.store import CatalogStore
from metrics.service import MetricsService


_metrics_service: Optional[MetricsService] = None
_catalog_store: Optional[CatalogStore] = None


def set_metrics_service(service: Optional[MetricsService]) -> None:
    global _metrics_service
    _metrics_service = service


def set_catalog_store(store: Optional[CatalogStore]) -> None:
    global _catalog_store
    _catalog_store = store


def get_metrics_service() -> MetricsService:
    if _metrics_service is None:
        raise HTTPException(status_code=503, detail="Metrics service not ready")
    return _metrics_service


def get_catalog_store() -> CatalogStore:
    if _catalog_store is None:
        raise HTTPException(status_code=503, detail="Catalog store not ready")
    return _catalog_store


def metrics_service_dependency(service: MetricsService = Depends(get_metrics_service)) -> MetricsService:
    return service


def catalog_store_dependency(store: CatalogStore = Depends(get_catalog_store)) -> CatalogStore:
    return store
