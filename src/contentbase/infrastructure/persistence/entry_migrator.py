"""Applies planned schema migrations to stored entries.

Operations from ``SchemaDiffer`` are applied batch by batch through a keyset
cursor over the collection table, each batch inside its own savepoint.
Everything runs in the caller's transaction: the schema record update and the
entry rewrite commit or roll back together.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.core.config import get_settings
from contentbase.core.exceptions import MigrationError
from contentbase.core.logging import LoggingContext, get_logger
from contentbase.domain.services.document_paths import rename_key, unset_path
from contentbase.domain.services.schema_diff import (
    MigrationOperation,
    RenameField,
    UnsetField,
)
from contentbase.infrastructure.persistence.entry_store import EntryStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class MigrationReport:
    """Outcome of applying a migration to one collection."""

    operations: list[str]
    documents_scanned: int = 0
    documents_modified: int = 0


def apply_operation(document: dict[str, Any], operation: MigrationOperation) -> bool:
    """Apply a single operation to a document in place.

    Returns:
        True if the document changed.
    """
    if isinstance(operation, UnsetField):
        return unset_path(document, operation.path)
    if isinstance(operation, RenameField):
        return rename_key(
            document, operation.parent_path, operation.old_name, operation.new_name
        )
    raise TypeError(f"Unknown migration operation: {operation!r}")


class EntryMigrator:
    """Rewrites a collection's entries for a list of migration operations."""

    def __init__(
        self,
        batch_size: int | None = None,
        max_retries: int | None = None,
        retry_backoff_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self.batch_size = batch_size or settings.migration_batch_size
        self.max_retries = (
            max_retries if max_retries is not None else settings.migration_max_retries
        )
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.migration_retry_backoff_seconds
        )

    async def migrate(
        self,
        session: AsyncSession,
        store: EntryStore,
        operations: list[MigrationOperation],
    ) -> MigrationReport:
        """Apply ``operations`` to every entry of ``store``.

        Raises:
            MigrationError: If reading or writing entries fails.
        """
        report = MigrationReport(operations=[op.describe() for op in operations])
        if not operations:
            return report
        with LoggingContext(collection_name=store.collection_name):
            await self._run(session, store, operations, report)
        return report

    async def _run(
        self,
        session: AsyncSession,
        store: EntryStore,
        operations: list[MigrationOperation],
        report: MigrationReport,
    ) -> None:
        logger.info(
            "Starting entry migration",
            operations=report.operations,
            batch_size=self.batch_size,
        )

        last_id: str | None = None
        batch_number = 0
        try:
            while True:
                scanned, modified, last_id = await self._with_retry(
                    self._migrate_batch, session, store, operations, last_id
                )
                if not scanned:
                    break
                batch_number += 1
                report.documents_scanned += scanned
                report.documents_modified += modified
                logger.debug(
                    "Migrated entry batch",
                    batch=batch_number,
                    scanned=report.documents_scanned,
                    modified=report.documents_modified,
                )
                if scanned < self.batch_size:
                    break
        except SQLAlchemyError as e:
            logger.error(
                "Entry migration failed",
                operations=report.operations,
                documents_scanned=report.documents_scanned,
                error=str(e),
            )
            raise MigrationError(
                f"Failed to migrate entries of '{store.collection_name}': {e}"
            ) from e

        logger.info(
            "Entry migration complete",
            documents_scanned=report.documents_scanned,
            documents_modified=report.documents_modified,
        )

    async def _migrate_batch(
        self,
        session: AsyncSession,
        store: EntryStore,
        operations: list[MigrationOperation],
        after_id: str | None,
    ) -> tuple[int, int, str | None]:
        """Read and rewrite the page after ``after_id`` inside a savepoint.

        A failed attempt rolls the savepoint back, and a retry reads the page
        again, so documents changed in memory by the failed attempt are never
        reused.

        Returns:
            Tuple of (documents scanned, documents modified, last id seen).
        """
        async with session.begin_nested():
            batch = await store.fetch_batch(session, self.batch_size, after_id)
            modified = 0
            for entry_id, document in batch:
                changed = False
                for operation in operations:
                    changed = apply_operation(document, operation) or changed
                if changed:
                    await store.write_document(session, entry_id, document)
                    modified += 1
        return len(batch), modified, batch[-1][0] if batch else after_id

    async def _with_retry(self, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run ``func`` retrying transient ``OperationalError``s with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await func(*args)
            except OperationalError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff_seconds * (2**attempt)
                attempt += 1
                logger.warning(
                    "Transient database error during migration, retrying",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_seconds=delay,
                    error=str(e),
                )
                await asyncio.sleep(delay)
