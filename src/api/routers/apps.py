"""Application catalog CRUD endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from api.dependencies import catalog_store_dependency
from catalog.store import ApplicationNotFound, CatalogStore
from model.application import ApplicationOut, ApplicationRequest


router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("", tags=["apps"], response_model=List[ApplicationOut],
            response_model_exclude_none=True)
def list_apps(store: CatalogStore = Depends(catalog_store_dependency)):
    return store.list()


@router.post("", tags=["apps"], status_code=status.HTTP_201_CREATED, response_model=ApplicationOut,
             response_model_exclude_none=True)
def create_app(payload: ApplicationRequest, store: CatalogStore = Depends(catalog_store_dependency)):
    problem = payload.validation_error()
    if problem:
        return _error(status.HTTP_400_BAD_REQUEST, problem)
    return store.create(payload)


@router.get("/{app_id}", tags=["apps"], response_model=ApplicationOut,
            response_model_exclude_none=True)
def get_app(app_id: str, store: CatalogStore = Depends(catalog_store_dependency)):
    try:
        return store.get(app_id)
    except ApplicationNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Application not found")


@router.put("/{app_id}", tags=["apps"], response_model=ApplicationOut,
            response_model_exclude_none=True)
def update_app(app_id: str, payload: ApplicationRequest, store: CatalogStore = Depends(catalog_store_dependency)):
    problem = payload.validation_error()
    if problem:
        return _error(status.HTTP_400_BAD_REQUEST, problem)
    try:
        return store.update(app_id, payload)
    except ApplicationNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Application not found")


@router.delete("/{app_id}", tags=["apps"], status_code=status.HTTP_204_NO_CONTENT)
def delete_app(app_id: str, store: CatalogStore = Depends(catalog_store_dependency)):
    try:
        store.delete(app_id)
    except ApplicationNotFound:
        return _error(status.HTTP_404_NOT_FOUND, "Application not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
