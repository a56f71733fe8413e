"""Repositories for data access."""

from contentbase.infrastructure.persistence.repositories.collection_repository import (
    CollectionRepository,
)

__all__ = ["CollectionRepository"]
