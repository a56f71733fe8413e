"""Repository for collection operations.

Provides CRUD operations for the collections table.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from contentbase.infrastructure.persistence.models import CollectionModel


class CollectionRepository:
    """Repository for collection database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, collection: CollectionModel) -> CollectionModel:
        """Create a new collection.

        Args:
            collection: The collection model to create.

        Returns:
            The created collection model.
        """
        self.session.add(collection)
        await self.session.flush()
        return collection

    async def get_by_name(self, name: str) -> CollectionModel | None:
        """Get a collection by name.

        Args:
            name: The collection name.

        Returns:
            The collection model if found, None otherwise.
        """
        result = await self.session.execute(
            select(CollectionModel).where(CollectionModel.name == name)
        )
        return result.scalar_one_or_none()

    async def name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        """Check if a collection with the given name exists.

        Args:
            name: The collection name to check.
            exclude_id: Collection ID to ignore (the collection being updated).

        Returns:
            True if the name exists, False otherwise.
        """
        query = select(CollectionModel.id).where(CollectionModel.name == name)
        if exclude_id is not None:
            query = query.where(CollectionModel.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def title_exists(self, title: str, exclude_id: str | None = None) -> bool:
        """Check if a collection with the given title exists."""
        query = select(CollectionModel.id).where(CollectionModel.title == title)
        if exclude_id is not None:
            query = query.where(CollectionModel.id != exclude_id)
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def list_all(self) -> list[CollectionModel]:
        """List every collection ordered by name."""
        result = await self.session.execute(
            select(CollectionModel).order_by(CollectionModel.name)
        )
        return list(result.scalars().all())

    async def update(self, collection: CollectionModel) -> CollectionModel:
        """Flush pending changes on an already loaded collection."""
        await self.session.flush()
        return collection

    async def delete(self, collection: CollectionModel) -> None:
        """Delete a collection record."""
        await self.session.execute(
            delete(CollectionModel).where(CollectionModel.id == collection.id)
        )
        await self.session.flush()
