from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from domain.entities import (
    CatalogEntity,
    EntitySummary,
    EntityType,
    Failure,
    OperationKind,
    OperationRequest,
    OperationResult,
    Redirect,
    Render,
)
from domain.exceptions import NotFoundError
from domain.repositories import CatalogRepository
from domain.use_cases import EntityLifecycleUseCase
from presentation.schemas import ErrorResponse, RenderResponse

router = APIRouter(prefix="/catalog", tags=["catalog"])


def get_catalog_repository(request: Request) -> CatalogRepository:
    """The store handle created once at startup"""
    return request.app.state.repository


def get_lifecycle_use_case(repo: CatalogRepository = Depends(get_catalog_repository)) -> EntityLifecycleUseCase:
    return EntityLifecycleUseCase(repo)


def get_entity_type(entity_type: str) -> EntityType:
    try:
        return EntityType(entity_type)
    except ValueError:
        raise NotFoundError(f"Unknown catalog entity: {entity_type}")


def get_collection_type(collection: str) -> EntityType:
    try:
        return EntityType.from_plural(collection)
    except ValueError:
        raise NotFoundError(f"Unknown catalog collection: {collection}")


def present(value: Any) -> Any:
    """Project domain objects in render data onto JSON-safe values"""
    if isinstance(value, (CatalogEntity, EntitySummary)):
        return value.to_view()
    if isinstance(value, dict):
        return {key: present(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [present(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def to_response(result: OperationResult):
    if isinstance(result, Redirect):
        return RedirectResponse(result.path, status_code=303)
    if isinstance(result, Failure):
        body = ErrorResponse(kind=result.kind, message=result.message)
        return JSONResponse(body.model_dump(), status_code=result.status_code)
    if isinstance(result, Render):
        body = RenderResponse(view=result.view_name, data=present(result.data))
        return JSONResponse(body.model_dump())
    raise TypeError(f"Unexpected operation result: {result!r}")


async def run(
    use_case: EntityLifecycleUseCase,
    kind: OperationKind,
    entity_type: EntityType,
    entity_id: Optional[str] = None,
    fields: Optional[Dict[str, Any]] = None,
):
    request = OperationRequest(kind=kind, entity_type=entity_type, id=entity_id, fields=fields or {})
    return to_response(await use_case.execute(request))


@router.get("")
async def catalog_home(use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case)):
    """Record counts for the catalog home page"""
    return to_response(await use_case.summary())


@router.get("/{collection}")
async def list_entities(
    catalog_type: EntityType = Depends(get_collection_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    """List all records of a type, e.g. /catalog/genres"""
    return await run(use_case, OperationKind.LIST, catalog_type)


@router.get("/{entity_type}/create")
async def create_form(
    catalog_type: EntityType = Depends(get_entity_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    return await run(use_case, OperationKind.CREATE_GET, catalog_type)


@router.post("/{entity_type}/create")
async def create_entity(
    catalog_type: EntityType = Depends(get_entity_type),
    fields: Optional[Dict[str, Any]] = Body(default=None),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    """Create a record; an existing record with the same natural key is reused"""
    return await run(use_case, OperationKind.CREATE_POST, catalog_type, fields=fields)


@router.get("/{entity_type}/{entity_id}")
async def entity_detail(
    entity_id: str,
    catalog_type: EntityType = Depends(get_entity_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    return await run(use_case, OperationKind.DETAIL, catalog_type, entity_id)


@router.get("/{entity_type}/{entity_id}/update")
async def update_form(
    entity_id: str,
    catalog_type: EntityType = Depends(get_entity_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    return await run(use_case, OperationKind.UPDATE_GET, catalog_type, entity_id)


@router.post("/{entity_type}/{entity_id}/update")
async def update_entity(
    entity_id: str,
    catalog_type: EntityType = Depends(get_entity_type),
    fields: Optional[Dict[str, Any]] = Body(default=None),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    return await run(use_case, OperationKind.UPDATE_POST, catalog_type, entity_id, fields)


@router.get("/{entity_type}/{entity_id}/delete")
async def delete_confirmation(
    entity_id: str,
    catalog_type: EntityType = Depends(get_entity_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    return await run(use_case, OperationKind.DELETE_GET, catalog_type, entity_id)


@router.post("/{entity_type}/{entity_id}/delete")
async def delete_entity(
    entity_id: str,
    catalog_type: EntityType = Depends(get_entity_type),
    use_case: EntityLifecycleUseCase = Depends(get_lifecycle_use_case),
):
    """Delete a record unless other records still reference it"""
    return await run(use_case, OperationKind.DELETE_POST, catalog_type, entity_id)


# エクスポート用
catalog_router = router
