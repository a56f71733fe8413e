"""Local filesystem object storage provider.

Objects live under ``storage_path`` and are served by the application at
``<external_url>/files/<key>``. Used for development and tests.
"""

from pathlib import Path
from urllib.parse import quote

from contentbase.core.logging import get_logger
from contentbase.infrastructure.storage.base import ObjectStorage, ObjectStorageError

logger = get_logger(__name__)

FILES_ROUTE = "/files"


class LocalObjectStorage(ObjectStorage):
    """Object storage implementation for the local filesystem."""

    def __init__(self, storage_path: str, external_url: str) -> None:
        self.storage_path = Path(storage_path)
        self.external_url = external_url.rstrip("/")

    def resolve(self, key: str) -> Path:
        """Map a key to a path inside the storage directory.

        Raises:
            ObjectStorageError: If the key escapes the storage directory.
        """
        root = self.storage_path.resolve()
        path = (root / key).resolve()
        if root != path and root not in path.parents:
            raise ObjectStorageError(f"Invalid storage key: '{key}'")
        return path

    async def get_signed_url(self, key: str) -> str:
        self.resolve(key)
        return f"{self.external_url}{FILES_ROUTE}/{quote(key)}"

    async def delete_object(self, key: str) -> None:
        path = self.resolve(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise ObjectStorageError(f"Failed to delete '{key}': {str(e)}") from e
        logger.debug("Deleted local object", key=key)

    async def test_connection(self) -> tuple[bool, str | None]:
        """Verify that the configured local storage path is writable."""
        try:
            self.storage_path.mkdir(parents=True, exist_ok=True)
            probe_file = self.storage_path / ".storage_provider_probe"
            probe_file.write_text("ok", encoding="utf-8")
            probe_file.unlink(missing_ok=True)
            return True, f"Local storage is writable at '{self.storage_path}'."
        except OSError as e:
            return False, f"Local storage test failed: {str(e)}"
