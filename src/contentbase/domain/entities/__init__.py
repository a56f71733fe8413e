"""Domain entities for ContentBase.

Entities are pure Python dataclasses that represent core business concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from contentbase.domain.entities.collection_schema import (
    CollectionSchema,
    normalize_collection_name,
)
from contentbase.domain.entities.field import (
    Field,
    FieldType,
    child_fields,
    fields_of,
    find_field,
)
from contentbase.domain.entities.image_reference import (
    entry_image_keys,
    image_keys,
    is_image_field,
    is_image_object,
    removed_image_keys,
)

__all__ = [
    "CollectionSchema",
    "Field",
    "FieldType",
    "child_fields",
    "entry_image_keys",
    "fields_of",
    "find_field",
    "image_keys",
    "is_image_field",
    "is_image_object",
    "normalize_collection_name",
    "removed_image_keys",
]
