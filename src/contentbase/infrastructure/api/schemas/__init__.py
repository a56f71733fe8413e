"""API Schemas for request/response validation."""

from contentbase.infrastructure.api.schemas.collection_schemas import (
    CollectionNameItem,
    CollectionSchemaRequest,
    CollectionSettings,
    DeleteCollectionResponse,
    ErrorResponse,
    FieldDefinition,
    FieldSettingsRequest,
    ValidationErrorResponse,
    ValidationIssueResponse,
)
from contentbase.infrastructure.api.schemas.entry_schemas import (
    BlobCleanupResponse,
    DeleteEntriesRequest,
)

__all__ = [
    "BlobCleanupResponse",
    "CollectionNameItem",
    "CollectionSchemaRequest",
    "CollectionSettings",
    "DeleteCollectionResponse",
    "DeleteEntriesRequest",
    "ErrorResponse",
    "FieldDefinition",
    "FieldSettingsRequest",
    "ValidationErrorResponse",
    "ValidationIssueResponse",
]
