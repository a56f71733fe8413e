"""Resolves the configured object storage provider."""

from contentbase.core.config import Settings, get_settings
from contentbase.core.logging import get_logger
from contentbase.infrastructure.storage.base import ObjectStorage
from contentbase.infrastructure.storage.local_storage_provider import LocalObjectStorage
from contentbase.infrastructure.storage.s3_storage_provider import (
    S3ObjectStorage,
    S3StorageSettings,
)

logger = get_logger(__name__)


def create_object_storage(settings: Settings | None = None) -> ObjectStorage:
    """Build the object storage provider selected by ``storage_backend``."""
    settings = settings or get_settings()

    if settings.storage_backend == "s3":
        logger.info(
            "Using S3 object storage",
            bucket=settings.s3_bucket,
            region=settings.s3_region,
        )
        return S3ObjectStorage(
            settings=S3StorageSettings(
                bucket=settings.s3_bucket,
                region=settings.s3_region,
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
                endpoint_url=settings.s3_endpoint_url,
                signed_url_expires_seconds=settings.signed_url_expires_seconds,
            )
        )

    logger.info("Using local object storage", storage_path=settings.storage_path)
    return LocalObjectStorage(
        storage_path=settings.storage_path,
        external_url=settings.external_url,
    )
