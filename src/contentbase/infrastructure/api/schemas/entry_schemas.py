"""Pydantic schemas for entry endpoints.

Entry bodies themselves are free-form JSON objects; only the bulk delete
request and the responses have a fixed shape.
"""

from pydantic import BaseModel, Field


class DeleteEntriesRequest(BaseModel):
    """Request body for deleting entries."""

    entryIds: list[str] = Field(..., description="IDs of the entries to delete")


class BlobCleanupResponse(BaseModel):
    """Result of an entry deletion, including image cleanup."""

    deletedEntries: int = Field(..., description="Number of entries deleted")
    deletedBlobs: list[str] = Field(
        default_factory=list, description="Storage keys that were deleted"
    )
    failedBlobs: list[str] = Field(
        default_factory=list, description="Storage keys that could not be deleted"
    )
