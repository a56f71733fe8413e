"""Base abstractions for object storage providers."""

from abc import ABC, abstractmethod


class ObjectStorageError(RuntimeError):
    """An object storage call failed."""


class ObjectStorage(ABC):
    """Abstract base class for the blob store that holds entry images.

    Entries only keep storage keys; uploads happen outside this service.
    """

    @abstractmethod
    async def get_signed_url(self, key: str) -> str:
        """Return a time-limited URL granting read access to ``key``."""
        ...

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        """Delete the object stored at ``key``.

        Raises:
            ObjectStorageError: If the provider rejects the deletion.
        """
        ...

    @abstractmethod
    async def test_connection(self) -> tuple[bool, str | None]:
        """Test provider connectivity and credentials."""
        ...
