"""SQLAlchemy model for the collections table.

Each row holds one collection's serialized schema. Entries live in a separate
table per collection, managed by ``EntryStoreRegistry``.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from contentbase.infrastructure.persistence.database import Base


class CollectionModel(Base):
    """SQLAlchemy model for the collections table.

    Attributes:
        id: Primary key (UUID string).
        name: Unique collection name, lowercase.
        title: Unique human readable title.
        schema: Serialized ``CollectionSchema`` (JSON text).
        version: Incremented on every schema update.
        created_at: Timestamp when the collection was created.
        updated_at: Timestamp when the collection was last updated.
    """

    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="Collection ID (UUID)",
    )
    name: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        comment="Collection name, lowercase",
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Human readable collection title",
    )
    schema: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Serialized collection schema (name, title, fields, settings)",
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Schema version, incremented on every update",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, name={self.name}, version={self.version})>"
