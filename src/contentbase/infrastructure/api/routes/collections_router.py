"""Collections API routes.

Provides endpoints for managing collection schemas. Services flush; the
routes commit the request transaction once the service call succeeded.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from contentbase.core.logging import get_logger
from contentbase.infrastructure.api.dependencies import (
    CollectionServiceDep,
    RegistryDep,
    SessionDep,
    commit,
    require_operator,
)
from contentbase.infrastructure.api.schemas import (
    CollectionNameItem,
    CollectionSchemaRequest,
    CollectionSettings,
    DeleteCollectionResponse,
    ErrorResponse,
    FieldSettingsRequest,
    ValidationErrorResponse,
)

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_operator)])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Collection not found"}}
BAD_REQUEST = {400: {"model": ValidationErrorResponse, "description": "Validation error"}}
CONFLICT = {409: {"model": ErrorResponse, "description": "Name or title already taken"}}


@router.get("", status_code=status.HTTP_200_OK, response_model=list[CollectionNameItem])
async def list_collections(service: CollectionServiceDep) -> list[dict[str, str]]:
    """List the name and title of every collection."""
    return await service.get_all_collection_names()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **CONFLICT},
)
async def create_collection(
    request: CollectionSchemaRequest,
    service: CollectionServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    """Create a collection from a schema."""
    schema = await service.create_collection(request.to_schema())
    await commit(session, registry, schema.name)
    return schema.to_dict()


@router.get("/{collection_name}", status_code=status.HTTP_200_OK, responses=NOT_FOUND)
async def get_collection(
    collection_name: str, service: CollectionServiceDep
) -> dict[str, Any]:
    """Get a collection's schema and all of its entries."""
    collection = await service.get_collection(collection_name)
    return {"schema": collection["schema"].to_dict(), "entries": collection["entries"]}


@router.get("/{collection_name}/schema", status_code=status.HTTP_200_OK, responses=NOT_FOUND)
async def get_collection_schema(
    collection_name: str, service: CollectionServiceDep
) -> dict[str, Any]:
    """Get a collection's schema."""
    schema = await service.get_collection_schema(collection_name)
    return schema.to_dict()


@router.put(
    "/{collection_name}",
    status_code=status.HTTP_200_OK,
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT},
)
async def update_collection(
    collection_name: str,
    request: CollectionSchemaRequest,
    service: CollectionServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    """Replace a collection's schema and migrate its entries.

    One change per nesting level: add fields, remove one field or rename one
    field. Anything else is rejected with 400 and nothing is modified.
    """
    new_schema = request.to_schema()
    schema = await service.update_collection(collection_name, new_schema)
    await commit(session, registry, collection_name.lower(), schema.name)
    return schema.to_dict()


@router.delete(
    "/{collection_name}",
    status_code=status.HTTP_200_OK,
    response_model=DeleteCollectionResponse,
    responses=NOT_FOUND,
)
async def delete_collection(
    collection_name: str,
    service: CollectionServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> DeleteCollectionResponse:
    """Delete a collection together with all of its entries."""
    result = await service.delete_collection(collection_name)
    await commit(session, registry, result["collection_name"])
    return DeleteCollectionResponse(**result)


@router.put(
    "/{collection_name}/schema/settings",
    status_code=status.HTTP_200_OK,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_schema_settings(
    collection_name: str,
    request: CollectionSettings,
    service: CollectionServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    """Replace a collection's display settings."""
    schema = await service.update_schema_settings(
        collection_name, request.model_dump(exclude_none=True)
    )
    await commit(session, registry)
    return schema.to_dict()


@router.put(
    "/{collection_name}/schema/fields/{field_name}/settings",
    status_code=status.HTTP_200_OK,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_field_settings(
    collection_name: str,
    field_name: str,
    request: FieldSettingsRequest,
    service: CollectionServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> dict[str, Any]:
    """Update a top-level field's data table visibility and column width."""
    schema = await service.update_field_settings(
        collection_name, field_name, request.model_dump(exclude_none=True)
    )
    await commit(session, registry)
    return schema.to_dict()
