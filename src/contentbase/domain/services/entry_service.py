"""Entry service for collection entries.

Handles entry CRUD, signed URL resolution for image fields and best-effort
cleanup of image blobs that entries no longer reference.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.core.exceptions import (
    BadRequestError,
    NotFoundError,
    ServerError,
    ValidationIssue,
)
from contentbase.core.logging import get_logger
from contentbase.domain.entities import (
    entry_image_keys,
    is_image_field,
    normalize_collection_name,
    removed_image_keys,
)
from contentbase.infrastructure.persistence.database import persistence_errors
from contentbase.infrastructure.persistence.entry_store import (
    EntryStore,
    EntryStoreRegistry,
    RESERVED_ID_KEY,
)
from contentbase.infrastructure.persistence.repositories import CollectionRepository
from contentbase.infrastructure.storage.base import ObjectStorage, ObjectStorageError

logger = get_logger(__name__)

SIGNED_URL_KEY = "signedUrl"


@dataclass
class BlobCleanupReport:
    """Result of deleting entries together with their image blobs."""

    deleted_entries: int = 0
    deleted_blobs: list[str] = field(default_factory=list)
    failed_blobs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deletedEntries": self.deleted_entries,
            "deletedBlobs": self.deleted_blobs,
            "failedBlobs": self.failed_blobs,
        }


class EntryService:
    """Service for entry business logic."""

    def __init__(
        self,
        session: AsyncSession,
        registry: EntryStoreRegistry,
        storage: ObjectStorage,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            registry: Application wide entry store registry.
            storage: Object storage holding image blobs.
        """
        self.session = session
        self.registry = registry
        self.storage = storage
        self.repository = CollectionRepository(session)

    async def _store(self, collection_name: str) -> EntryStore:
        name = normalize_collection_name(collection_name)
        with persistence_errors("load collection", collection_name=name):
            if await self.repository.get_by_name(name) is None:
                raise NotFoundError("collectionName", f"Collection '{name}' not found")
            return await self.registry.get_or_create(self.session, name)

    async def get_entry(self, collection_name: str, entry_id: str) -> dict[str, Any]:
        """Get one entry with image fields resolved.

        Raises:
            NotFoundError: If the collection or entry does not exist.
        """
        store = await self._store(collection_name)
        with persistence_errors("get entry", collection_name=store.collection_name):
            entry = await store.find_by_id(self.session, entry_id)
        if entry is None:
            raise NotFoundError("entryId", f"Entry '{entry_id}' not found")
        return await self.resolve_images(entry)

    async def list_entries(self, collection_name: str) -> list[dict[str, Any]]:
        """List every entry of a collection with image fields resolved."""
        store = await self._store(collection_name)
        with persistence_errors("list entries", collection_name=store.collection_name):
            entries = await store.find_all(self.session)
        return list(await asyncio.gather(*(self.resolve_images(e) for e in entries)))

    async def add_entry(self, collection_name: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert an entry. Any keys are accepted except the reserved ``id``."""
        store = await self._store(collection_name)
        with persistence_errors("insert entry", collection_name=store.collection_name):
            entry = await store.insert(self.session, data)
        logger.info(
            "Entry created",
            collection_name=store.collection_name,
            entry_id=entry[RESERVED_ID_KEY],
        )
        return entry

    async def update_entry(
        self, collection_name: str, entry_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Set the given top-level keys of an entry.

        Images dropped from an updated image field are deleted from object
        storage once the entry is written. Storage failures are logged, not
        raised.

        Raises:
            NotFoundError: If the collection or entry does not exist.
        """
        store = await self._store(collection_name)
        with persistence_errors("update entry", collection_name=store.collection_name):
            current = await store.find_by_id(self.session, entry_id)
            if current is None:
                raise NotFoundError("entryId", f"Entry '{entry_id}' not found")
            stale_keys = removed_image_keys(current, data)
            entry = await store.merge_update(self.session, entry_id, data)

        if stale_keys:
            deleted, failed = await self._delete_blobs(stale_keys)
            logger.info(
                "Removed images dropped by entry update",
                collection_name=store.collection_name,
                entry_id=entry_id,
                deleted_blobs=deleted,
                failed_blobs=failed,
            )
        return entry

    async def delete_entries(
        self, collection_name: str, entry_ids: list[str]
    ) -> BlobCleanupReport:
        """Delete entries and the image blobs they reference.

        Blobs are deleted first, concurrently and best effort; failures end
        up in ``failed_blobs`` and do not stop the entry deletion.

        Raises:
            BadRequestError: If ``entry_ids`` is empty or none of them exist.
            NotFoundError: If the collection does not exist.
        """
        if (
            not isinstance(entry_ids, list)
            or not entry_ids
            or not all(isinstance(i, str) and i for i in entry_ids)
        ):
            raise BadRequestError(
                ValidationIssue(path="entryIds", msg="A non-empty list of entry ids is required")
            )

        store = await self._store(collection_name)
        with persistence_errors("load entries", collection_name=store.collection_name):
            entries = await store.find_many(self.session, entry_ids)
        if not entries:
            raise BadRequestError(
                ValidationIssue(path="entryIds", msg="No entries found for the given ids")
            )

        keys: list[str] = []
        for entry in entries:
            keys.extend(entry_image_keys(entry))
        deleted_blobs, failed_blobs = await self._delete_blobs(keys)

        found_ids = [entry[RESERVED_ID_KEY] for entry in entries]
        with persistence_errors("delete entries", collection_name=store.collection_name):
            deleted = await store.delete_many(self.session, found_ids)

        report = BlobCleanupReport(
            deleted_entries=deleted,
            deleted_blobs=deleted_blobs,
            failed_blobs=failed_blobs,
        )
        logger.info(
            "Entries deleted",
            collection_name=store.collection_name,
            deleted_entries=report.deleted_entries,
            deleted_blobs=len(report.deleted_blobs),
            failed_blobs=report.failed_blobs,
        )
        return report

    async def resolve_images(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``entry`` with a ``signedUrl`` on every image object.

        Raises:
            ServerError: If a URL cannot be signed.
        """
        resolved = dict(entry)
        for name, value in entry.items():
            if name == RESERVED_ID_KEY or not value or not is_image_field(value):
                continue
            try:
                urls = await asyncio.gather(
                    *(self.storage.get_signed_url(image["key"]) for image in value)
                )
            except ObjectStorageError as e:
                logger.error("Failed to sign image URL", field=name, error=str(e))
                raise ServerError(f"Failed to sign image URLs for '{name}': {e}") from e
            resolved[name] = [
                {**image, SIGNED_URL_KEY: url} for image, url in zip(value, urls)
            ]
        return resolved

    async def _delete_blobs(self, keys: list[str]) -> tuple[list[str], list[str]]:
        """Delete blobs concurrently.

        Returns:
            Tuple of (deleted keys, failed keys).
        """
        if not keys:
            return [], []
        results = await asyncio.gather(
            *(self.storage.delete_object(key) for key in keys),
            return_exceptions=True,
        )
        deleted: list[str] = []
        failed: list[str] = []
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                logger.warning("Failed to delete image blob", key=key, error=str(result))
                failed.append(key)
            else:
                deleted.append(key)
        return deleted, failed
