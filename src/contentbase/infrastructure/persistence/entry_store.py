"""Per-collection entry storage.

Every collection owns a physical table ``col_<name>`` holding schemaless
entries as JSON documents. Tables are described with SQLAlchemy Core and kept
in a private ``MetaData`` owned by ``EntryStoreRegistry``, so they never mix
with the ORM models on ``Base.metadata``.
"""

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    delete,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.core.logging import get_logger

logger = get_logger(__name__)

RESERVED_ID_KEY = "id"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_table_name(collection_name: str) -> str:
    """Physical table name for a collection.

    Prefixed with ``col_`` to keep entry tables apart from system tables.
    """
    return f"col_{collection_name.lower()}"


def primary_key_name(table_name: str) -> str:
    """Explicit primary key name, so renaming a table can carry it along.

    PostgreSQL names the backing index after the constraint and keeps it on
    ``ALTER TABLE ... RENAME``; an implicit name would block recreating the
    old table.
    """
    return f"pk_{table_name}"


def strip_reserved(data: dict[str, Any]) -> dict[str, Any]:
    """Drop the reserved ``id`` key from client supplied entry data."""
    return {k: v for k, v in data.items() if k != RESERVED_ID_KEY}


def to_entry(entry_id: str, data: dict[str, Any] | None) -> dict[str, Any]:
    """Expose a stored document as an entry with its id first."""
    return {RESERVED_ID_KEY: entry_id, **(data or {})}


class EntryStore:
    """Data access for the entries of a single collection."""

    def __init__(self, collection_name: str, table: Table) -> None:
        self.collection_name = collection_name
        self.table = table

    @property
    def table_name(self) -> str:
        return self.table.name

    async def find_by_id(self, session: AsyncSession, entry_id: str) -> dict[str, Any] | None:
        result = await session.execute(
            select(self.table.c.id, self.table.c.data).where(self.table.c.id == entry_id)
        )
        row = result.one_or_none()
        return to_entry(row.id, row.data) if row else None

    async def find_all(self, session: AsyncSession) -> list[dict[str, Any]]:
        """All entries in insertion order."""
        result = await session.execute(
            select(self.table.c.id, self.table.c.data).order_by(
                self.table.c.created_at, self.table.c.id
            )
        )
        return [to_entry(row.id, row.data) for row in result]

    async def find_many(self, session: AsyncSession, entry_ids: list[str]) -> list[dict[str, Any]]:
        if not entry_ids:
            return []
        result = await session.execute(
            select(self.table.c.id, self.table.c.data)
            .where(self.table.c.id.in_(entry_ids))
            .order_by(self.table.c.created_at, self.table.c.id)
        )
        return [to_entry(row.id, row.data) for row in result]

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(self.table))
        return int(result.scalar_one())

    async def insert(self, session: AsyncSession, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new entry with a generated id.

        Returns:
            The stored entry including its id.
        """
        entry_id = uuid.uuid4().hex
        document = strip_reserved(data)
        now = _utcnow()
        await session.execute(
            insert(self.table).values(
                id=entry_id, data=document, created_at=now, updated_at=now
            )
        )
        return to_entry(entry_id, document)

    async def merge_update(
        self, session: AsyncSession, entry_id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Set the given top-level keys, keeping every other key.

        Returns:
            The updated entry, or None if it does not exist.
        """
        current = await self.find_by_id(session, entry_id)
        if current is None:
            return None
        document = strip_reserved(current)
        document.update(strip_reserved(data))
        await self.write_document(session, entry_id, document)
        return to_entry(entry_id, document)

    async def write_document(
        self, session: AsyncSession, entry_id: str, document: dict[str, Any]
    ) -> None:
        """Replace the stored document of an entry."""
        await session.execute(
            update(self.table)
            .where(self.table.c.id == entry_id)
            .values(data=document, updated_at=_utcnow())
        )

    async def delete_many(self, session: AsyncSession, entry_ids: list[str]) -> int:
        """Delete entries by id.

        Returns:
            Number of deleted entries.
        """
        if not entry_ids:
            return 0
        result = await session.execute(
            delete(self.table).where(self.table.c.id.in_(entry_ids))
        )
        return result.rowcount or 0

    async def fetch_batch(
        self, session: AsyncSession, batch_size: int, after_id: str | None = None
    ) -> list[tuple[str, dict[str, Any]]]:
        """Fetch one keyset page of ``(id, document)`` pairs."""
        query = select(self.table.c.id, self.table.c.data).order_by(self.table.c.id)
        if after_id is not None:
            query = query.where(self.table.c.id > after_id)
        result = await session.execute(query.limit(batch_size))
        return [(row.id, dict(row.data or {})) for row in result]


class EntryStoreRegistry:
    """Resolves collection names to entry stores, creating tables on demand.

    One registry is owned by the application and shared by every request.
    Table creation is serialized per collection name.
    """

    def __init__(self) -> None:
        self.metadata = MetaData()
        self._stores: dict[str, EntryStore] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _table(self, collection_name: str) -> Table:
        table_name = generate_table_name(collection_name)
        existing = self.metadata.tables.get(table_name)
        if existing is not None:
            return existing
        return Table(
            table_name,
            self.metadata,
            Column("id", String(32), nullable=False),
            Column("data", JSON, nullable=False),
            Column("created_at", DateTime, nullable=False, default=_utcnow),
            Column("updated_at", DateTime, nullable=False, default=_utcnow),
            PrimaryKeyConstraint("id", name=primary_key_name(table_name)),
        )

    async def get_or_create(self, session: AsyncSession, collection_name: str) -> EntryStore:
        """Return the store for a collection, creating its table if missing."""
        store = self._stores.get(collection_name)
        if store is not None:
            return store

        async with self._locks[collection_name]:
            store = self._stores.get(collection_name)
            if store is not None:
                return store

            table = self._table(collection_name)
            await session.run_sync(
                lambda sync_session: table.create(sync_session.connection(), checkfirst=True)
            )
            store = EntryStore(collection_name, table)
            self._stores[collection_name] = store
            logger.debug(
                "Entry store ready",
                collection_name=collection_name,
                table_name=table.name,
            )
            return store

    async def drop(self, session: AsyncSession, collection_name: str) -> None:
        """Drop a collection's table. A missing table is not an error."""
        table = self._table(collection_name)
        await session.run_sync(
            lambda sync_session: table.drop(sync_session.connection(), checkfirst=True)
        )
        self.forget(collection_name)
        logger.info(
            "Entry table dropped",
            collection_name=collection_name,
            table_name=table.name,
        )

    async def rename(self, session: AsyncSession, old_name: str, new_name: str) -> EntryStore:
        """Move a collection's table to its new name, keeping every entry."""
        await self.get_or_create(session, old_name)
        old_table = generate_table_name(old_name)
        new_table = generate_table_name(new_name)
        await session.execute(text(f'ALTER TABLE "{old_table}" RENAME TO "{new_table}"'))
        if session.get_bind().dialect.name == "postgresql":
            await session.execute(
                text(
                    f'ALTER TABLE "{new_table}" RENAME CONSTRAINT '
                    f'"{primary_key_name(old_table)}" TO "{primary_key_name(new_table)}"'
                )
            )
        self.forget(old_name)
        self.forget(new_name)
        logger.info(
            "Entry table renamed",
            old_table=old_table,
            new_table=new_table,
        )
        return await self.get_or_create(session, new_name)

    def forget(self, collection_name: str) -> None:
        """Drop cached state for a collection.

        Used after a drop or rename, and when a transaction that created a
        table is rolled back.
        """
        self._stores.pop(collection_name, None)
        table = self.metadata.tables.get(generate_table_name(collection_name))
        if table is not None:
            self.metadata.remove(table)
