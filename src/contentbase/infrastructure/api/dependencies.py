"""FastAPI dependencies for services and operator authentication.

Application wide collaborators (entry store registry, object storage,
notifications) live on ``app.state``; services are built per request around
the request's database session.
"""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.core.config import get_settings
from contentbase.core.exceptions import ServerError
from contentbase.core.logging import get_logger
from contentbase.domain.services.collection_service import CollectionService
from contentbase.domain.services.entry_service import EntryService
from contentbase.infrastructure.persistence.database import get_db_session, persistence_errors
from contentbase.infrastructure.persistence.entry_store import EntryStoreRegistry
from contentbase.infrastructure.storage.base import ObjectStorage

logger = get_logger(__name__)


def get_entry_store_registry(request: Request) -> EntryStoreRegistry:
    return request.app.state.entry_store_registry


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.object_storage


async def require_operator(request: Request) -> None:
    """Check the operator API key when one is configured.

    Raises:
        HTTPException: 401 if the key is missing or wrong.
    """
    settings = get_settings()
    if not settings.operator_api_key:
        return

    provided = request.headers.get(settings.api_key_header)
    if provided is None or not secrets.compare_digest(provided, settings.operator_api_key):
        logger.info(
            "Authentication failed: invalid operator API key",
            path=request.url.path,
            header=settings.api_key_header,
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
RegistryDep = Annotated[EntryStoreRegistry, Depends(get_entry_store_registry)]
StorageDep = Annotated[ObjectStorage, Depends(get_object_storage)]


def get_collection_service(
    session: SessionDep, registry: RegistryDep, storage: StorageDep
) -> CollectionService:
    return CollectionService(session, registry, storage=storage)


def get_entry_service(
    session: SessionDep, registry: RegistryDep, storage: StorageDep
) -> EntryService:
    return EntryService(session, registry, storage)


CollectionServiceDep = Annotated[CollectionService, Depends(get_collection_service)]
EntryServiceDep = Annotated[EntryService, Depends(get_entry_service)]


async def commit(
    session: AsyncSession, registry: EntryStoreRegistry, *collection_names: str
) -> None:
    """Commit the request transaction.

    Cached entry stores of ``collection_names`` are dropped when the commit
    fails, since the tables they describe may have been rolled back.
    """
    try:
        with persistence_errors("commit transaction"):
            await session.commit()
    except ServerError:
        for name in collection_names:
            registry.forget(name)
        raise
