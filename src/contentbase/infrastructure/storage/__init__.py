"""Object storage providers."""

from contentbase.infrastructure.storage.base import ObjectStorage, ObjectStorageError
from contentbase.infrastructure.storage.local_storage_provider import LocalObjectStorage
from contentbase.infrastructure.storage.s3_storage_provider import (
    S3ObjectStorage,
    S3StorageSettings,
)
from contentbase.infrastructure.storage.storage_service import create_object_storage

__all__ = [
    "LocalObjectStorage",
    "ObjectStorage",
    "ObjectStorageError",
    "S3ObjectStorage",
    "S3StorageSettings",
    "create_object_storage",
]
