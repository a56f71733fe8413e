"""Entry API routes.

Entries are free-form JSON objects stored in their collection.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from contentbase.core.logging import get_logger
from contentbase.infrastructure.api.dependencies import (
    EntryServiceDep,
    RegistryDep,
    SessionDep,
    commit,
    require_operator,
)
from contentbase.infrastructure.api.schemas import (
    BlobCleanupResponse,
    DeleteEntriesRequest,
    ErrorResponse,
    ValidationErrorResponse,
)

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_operator)])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Collection or entry not found"}}


@router.post(
    "/{collection_name}/entries",
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
)
async def add_entry(
    collection_name: str,
    service: EntryServiceDep,
    session: SessionDep,
    registry: RegistryDep,
    data: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Add an entry to a collection."""
    entry = await service.add_entry(collection_name, data)
    await commit(session, registry)
    return entry


@router.get(
    "/{collection_name}/entries/{entry_id}",
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
)
async def get_entry(
    collection_name: str, entry_id: str, service: EntryServiceDep
) -> dict[str, Any]:
    """Get an entry with signed URLs for its images."""
    return await service.get_entry(collection_name, entry_id)


@router.put(
    "/{collection_name}/entries/{entry_id}",
    status_code=status.HTTP_200_OK,
    responses=NOT_FOUND,
)
async def update_entry(
    collection_name: str,
    entry_id: str,
    service: EntryServiceDep,
    session: SessionDep,
    registry: RegistryDep,
    data: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Set the given top-level keys of an entry."""
    entry = await service.update_entry(collection_name, entry_id, data)
    await commit(session, registry)
    return entry


@router.delete(
    "/{collection_name}/entries",
    status_code=status.HTTP_200_OK,
    response_model=BlobCleanupResponse,
    responses={
        400: {"model": ValidationErrorResponse, "description": "No matching entries"},
        **NOT_FOUND,
    },
)
async def delete_entries(
    collection_name: str,
    request: DeleteEntriesRequest,
    service: EntryServiceDep,
    session: SessionDep,
    registry: RegistryDep,
) -> BlobCleanupResponse:
    """Delete entries and the images they reference."""
    report = await service.delete_entries(collection_name, request.entryIds)
    await commit(session, registry)
    return BlobCleanupResponse(**report.to_dict())
