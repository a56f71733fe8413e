"""Unit tests for the local filesystem object storage provider."""

import pytest

from contentbase.infrastructure.storage import LocalObjectStorage, ObjectStorageError


@pytest.fixture
def local_storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(storage_path=str(tmp_path), external_url="http://cms.test/")


@pytest.mark.asyncio
async def test_signed_url_points_at_files_route(local_storage):
    url = await local_storage.get_signed_url("images/my photo.png")

    assert url == "http://cms.test/files/images/my%20photo.png"


@pytest.mark.asyncio
async def test_delete_removes_file(local_storage, tmp_path):
    (tmp_path / "images").mkdir()
    blob = tmp_path / "images" / "a.png"
    blob.write_bytes(b"png")

    await local_storage.delete_object("images/a.png")

    assert not blob.exists()


@pytest.mark.asyncio
async def test_deleting_a_missing_file_succeeds(local_storage):
    await local_storage.delete_object("images/missing.png")


@pytest.mark.asyncio
async def test_keys_cannot_escape_the_storage_directory(local_storage):
    with pytest.raises(ObjectStorageError, match="Invalid storage key"):
        await local_storage.delete_object("../outside.txt")
    with pytest.raises(ObjectStorageError):
        await local_storage.get_signed_url("../../etc/passwd")


@pytest.mark.asyncio
async def test_test_connection_creates_directory(tmp_path):
    storage = LocalObjectStorage(storage_path=str(tmp_path / "files"), external_url="http://x")

    success, message = await storage.test_connection()

    assert success is True
    assert (tmp_path / "files").is_dir()
    assert "writable" in message
