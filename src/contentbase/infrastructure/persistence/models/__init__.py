"""SQLAlchemy ORM models."""

from contentbase.infrastructure.persistence.models.collection import CollectionModel

__all__ = ["CollectionModel"]
