"""FastAPI application entrypoint that boots the metrics service and catalog."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import set_catalog_store, set_metrics_service
from api.routers import create_router
from api.websockets import register_websockets
from catalog.store import CatalogStore, sqlite_url
from configs.env_config import Env
from metrics.service import MetricsService


def create_app(
    service: Optional[MetricsService] = None,
    store: Optional[CatalogStore] = None,
) -> FastAPI:
    """Build the API; collaborators default to ones configured from the environment.

    :param service: Metrics service started and stopped with the app.
    :param store: Catalog store closed with the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        metrics_service = service or MetricsService()
        catalog_store = store or CatalogStore(sqlite_url(Env.DATABASE_PATH))
        set_metrics_service(metrics_service)
        set_catalog_store(catalog_store)
        await metrics_service.startup()
        try:
            yield
        finally:
            try:
                await metrics_service.shutdown()
            finally:
                catalog_store.close()
                set_metrics_service(None)
                set_catalog_store(None)

    app = FastAPI(title="Homelab Dashboard API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=Env.cors_origins(),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid request body"})

    app.include_router(create_router())
    register_websockets(app)
    return app


app = create_app()
