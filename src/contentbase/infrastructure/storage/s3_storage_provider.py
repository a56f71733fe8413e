"""Amazon S3 object storage provider."""

import asyncio

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict

from contentbase.core.logging import get_logger
from contentbase.infrastructure.storage.base import ObjectStorage, ObjectStorageError

logger = get_logger(__name__)

DEFAULT_SIGNED_URL_EXPIRES_SECONDS = 3600


class S3StorageSettings(BaseModel):
    """Configuration settings for the S3 storage provider.

    Credentials are optional; boto3 falls back to its default credential
    chain when they are not given.
    """

    model_config = ConfigDict(from_attributes=True)

    bucket: str
    region: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint_url: str | None = None
    signed_url_expires_seconds: int = DEFAULT_SIGNED_URL_EXPIRES_SECONDS


class S3ObjectStorage(ObjectStorage):
    """Object storage implementation for Amazon S3 and compatible services."""

    def __init__(self, settings: S3StorageSettings) -> None:
        self.settings = settings
        self._client = None

    def _get_client(self):
        """Get or create the S3 client."""
        if self._client is None:
            client_kwargs = {"region_name": self.settings.region}
            if self.settings.access_key_id and self.settings.secret_access_key:
                client_kwargs["aws_access_key_id"] = self.settings.access_key_id
                client_kwargs["aws_secret_access_key"] = self.settings.secret_access_key
            if self.settings.endpoint_url:
                client_kwargs["endpoint_url"] = self.settings.endpoint_url

            self._client = boto3.client("s3", **client_kwargs)
        return self._client

    async def get_signed_url(self, key: str) -> str:
        try:
            return await asyncio.to_thread(
                self._get_client().generate_presigned_url,
                "get_object",
                Params={"Bucket": self.settings.bucket, "Key": key},
                ExpiresIn=self.settings.signed_url_expires_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(f"Failed to sign S3 URL for '{key}': {str(e)}") from e

    async def delete_object(self, key: str) -> None:
        try:
            await asyncio.to_thread(
                self._get_client().delete_object,
                Bucket=self.settings.bucket,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStorageError(f"Failed to delete '{key}' from S3: {str(e)}") from e
        logger.debug("Deleted object from S3", bucket=self.settings.bucket, key=key)

    async def test_connection(self) -> tuple[bool, str | None]:
        try:
            await asyncio.to_thread(self._get_client().head_bucket, Bucket=self.settings.bucket)
            return True, (
                f"S3 connection successful. Bucket '{self.settings.bucket}' "
                f"is accessible in region '{self.settings.region}'."
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            error_message = e.response.get("Error", {}).get("Message", str(e))
            return False, f"S3 connection failed ({error_code}): {error_message}"
        except BotoCoreError as e:
            return False, f"S3 connection failed: {str(e)}"
