"""Collection service for business logic.

Handles collection creation, schema updates with entry migration, settings
updates and deletion. Services flush; callers own the transaction and commit.
"""

import copy
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.core.exceptions import ConflictError, NotFoundError, ServerError
from contentbase.core.logging import get_logger
from contentbase.domain.entities import (
    CollectionSchema,
    find_field,
    normalize_collection_name,
)
from contentbase.domain.services.entry_service import EntryService
from contentbase.domain.services.schema_diff import SchemaDiffer
from contentbase.infrastructure.persistence.database import persistence_errors
from contentbase.infrastructure.persistence.entry_migrator import EntryMigrator
from contentbase.infrastructure.persistence.entry_store import EntryStoreRegistry
from contentbase.infrastructure.persistence.models import CollectionModel
from contentbase.infrastructure.persistence.repositories import CollectionRepository
from contentbase.infrastructure.storage.base import ObjectStorage

logger = get_logger(__name__)

DATA_TABLE_SETTINGS = "dataTable"
DATA_TABLE_FIELD_KEYS = ("visible", "columnWidth")


class CollectionService:
    """Service for collection business logic."""

    def __init__(
        self,
        session: AsyncSession,
        registry: EntryStoreRegistry,
        storage: ObjectStorage | None = None,
        migrator: EntryMigrator | None = None,
        differ: SchemaDiffer | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session: SQLAlchemy async session.
            registry: Application wide entry store registry.
            storage: Object storage, needed to resolve images in ``get_collection``.
            migrator: Applies planned migrations to stored entries.
            differ: Plans migrations from schema changes.
        """
        self.session = session
        self.registry = registry
        self.storage = storage
        self.repository = CollectionRepository(session)
        self.migrator = migrator or EntryMigrator()
        self.differ = differ or SchemaDiffer()

    async def _get_model(self, name: str) -> CollectionModel:
        name = normalize_collection_name(name)
        with persistence_errors("load collection", collection_name=name):
            collection = await self.repository.get_by_name(name)
        if collection is None:
            raise NotFoundError("collectionName", f"Collection '{name}' not found")
        return collection

    async def _ensure_unique(
        self, schema: CollectionSchema, exclude_id: str | None = None
    ) -> None:
        with persistence_errors("check collection uniqueness", collection_name=schema.name):
            name_taken = await self.repository.name_exists(schema.name, exclude_id)
            title_taken = await self.repository.title_exists(schema.title, exclude_id)
        if name_taken:
            raise ConflictError("name", f"Collection '{schema.name}' already exists")
        if title_taken:
            raise ConflictError("title", f"Collection title '{schema.title}' already exists")

    async def create_collection(self, schema: CollectionSchema) -> CollectionSchema:
        """Create a collection and materialize its entry store.

        Raises:
            ConflictError: If the name or title is already taken.
        """
        await self._ensure_unique(schema)

        collection = CollectionModel(
            id=str(uuid.uuid4()),
            name=schema.name,
            title=schema.title,
            schema=schema.to_json(),
            version=1,
        )
        try:
            with persistence_errors("create collection", collection_name=schema.name):
                await self.repository.create(collection)
                await self.registry.get_or_create(self.session, schema.name)
        except Exception:
            self.registry.forget(schema.name)
            raise

        logger.info(
            "Collection created",
            collection_id=collection.id,
            collection_name=schema.name,
            field_count=len(schema.fields),
        )
        return schema

    async def get_collection_schema(self, name: str) -> CollectionSchema:
        """Get a collection's schema.

        Raises:
            NotFoundError: If the collection does not exist.
        """
        collection = await self._get_model(name)
        return CollectionSchema.from_json(collection.schema)

    async def get_collection(self, name: str) -> dict[str, Any]:
        """Get a collection's schema together with all of its entries."""
        schema = await self.get_collection_schema(name)
        if self.storage is None:
            raise ServerError("Object storage is required to resolve collection entries")
        entries = await EntryService(self.session, self.registry, self.storage).list_entries(
            schema.name
        )
        return {"schema": schema, "entries": entries}

    async def get_all_collection_names(self) -> list[dict[str, str]]:
        """List ``{name, title}`` for every collection."""
        with persistence_errors("list collections"):
            collections = await self.repository.list_all()
        return [{"name": c.name, "title": c.title} for c in collections]

    async def update_collection(
        self, name: str, new_schema: CollectionSchema
    ) -> CollectionSchema:
        """Replace a collection's schema, migrating its entries to match.

        The migration is planned before any entry is touched, applied in the
        current transaction, and the stored schema is overwritten only after
        every entry has been migrated.

        Raises:
            NotFoundError: If the collection does not exist.
            ConflictError: If the new name or title belongs to another collection.
            AmbiguousSchemaChangeError: If a level changes in more than one way.
            MigrationError: If entries cannot be rewritten.
        """
        collection = await self._get_model(name)
        old_schema = CollectionSchema.from_json(collection.schema)
        await self._ensure_unique(new_schema, exclude_id=collection.id)

        operations = self.differ.plan(old_schema.fields, new_schema.fields)
        if new_schema.settings is None:
            new_schema.settings = old_schema.settings
        renamed = new_schema.name != old_schema.name

        try:
            with persistence_errors("update collection", collection_name=old_schema.name):
                store = await self.registry.get_or_create(self.session, old_schema.name)
                report = await self.migrator.migrate(self.session, store, operations)
                if renamed:
                    await self.registry.rename(self.session, old_schema.name, new_schema.name)

                collection.name = new_schema.name
                collection.title = new_schema.title
                collection.schema = new_schema.to_json()
                collection.version += 1
                await self.repository.update(collection)
        except Exception:
            self.registry.forget(old_schema.name)
            self.registry.forget(new_schema.name)
            raise

        logger.info(
            "Collection updated",
            collection_name=new_schema.name,
            previous_name=old_schema.name if renamed else None,
            version=collection.version,
            operations=report.operations,
            documents_modified=report.documents_modified,
        )
        return new_schema

    async def delete_collection(self, name: str) -> dict[str, Any]:
        """Delete a collection record and drop its entry table.

        Returns:
            ``{"collection_name", "entries_deleted"}``.
        """
        collection = await self._get_model(name)
        collection_name = collection.name
        try:
            with persistence_errors("delete collection", collection_name=collection_name):
                store = await self.registry.get_or_create(self.session, collection_name)
                entries_deleted = await store.count(self.session)
                await self.repository.delete(collection)
                await self.registry.drop(self.session, collection_name)
        except Exception:
            self.registry.forget(collection_name)
            raise

        logger.info(
            "Collection deleted",
            collection_name=collection_name,
            entries_deleted=entries_deleted,
        )
        return {"collection_name": collection_name, "entries_deleted": entries_deleted}

    async def update_schema_settings(
        self, name: str, settings: dict[str, Any]
    ) -> CollectionSchema:
        """Replace the display settings of a collection schema."""
        collection = await self._get_model(name)
        schema = CollectionSchema.from_json(collection.schema)
        schema.settings = settings
        await self._save(collection, schema)
        logger.info("Collection settings updated", collection_name=schema.name)
        return schema

    async def update_field_settings(
        self, name: str, field_name: str, settings: dict[str, Any]
    ) -> CollectionSchema:
        """Merge data table visibility and column width into a field's settings.

        Only ``dataTable.visible`` and ``dataTable.columnWidth`` are taken from
        ``settings``; keys that are absent keep their stored value.

        Raises:
            NotFoundError: If the collection or top-level field does not exist.
        """
        collection = await self._get_model(name)
        schema = CollectionSchema.from_json(collection.schema)
        field = find_field(schema.fields, field_name)
        if field is None:
            raise NotFoundError("fieldName", f"Field '{field_name}' not found")

        merged = copy.deepcopy(field.settings) if field.settings else {}
        data_table = dict(merged.get(DATA_TABLE_SETTINGS) or {})
        incoming = settings.get(DATA_TABLE_SETTINGS) or {}
        for key in DATA_TABLE_FIELD_KEYS:
            if incoming.get(key) is not None:
                data_table[key] = incoming[key]
        merged[DATA_TABLE_SETTINGS] = data_table
        field.settings = merged

        await self._save(collection, schema)
        logger.info(
            "Field settings updated",
            collection_name=schema.name,
            field_name=field_name,
        )
        return schema

    async def _save(self, collection: CollectionModel, schema: CollectionSchema) -> None:
        collection.schema = schema.to_json()
        collection.version += 1
        with persistence_errors("save collection", collection_name=schema.name):
            await self.repository.update(collection)
