"""Image reference values stored inside entries.

An image field holds a list of ``{originalName, key, size}`` objects pointing
into external object storage.
"""

from typing import Any


def is_image_object(value: Any) -> bool:
    """Check for a non-empty ``originalName``/``key`` and a non-zero numeric ``size``."""
    if not isinstance(value, dict):
        return False
    original_name = value.get("originalName")
    key = value.get("key")
    size = value.get("size")
    return (
        isinstance(original_name, str)
        and bool(original_name)
        and isinstance(key, str)
        and bool(key)
        and isinstance(size, (int, float))
        and not isinstance(size, bool)
        and bool(size)
    )


def is_image_field(value: Any) -> bool:
    """A value is an image field when it is a list made only of image objects."""
    return isinstance(value, list) and all(is_image_object(item) for item in value)


def image_keys(value: Any) -> list[str]:
    """Storage keys of an image field value, or an empty list for other values."""
    if not is_image_field(value):
        return []
    return [item["key"] for item in value]


def entry_image_keys(document: dict[str, Any]) -> list[str]:
    """All storage keys referenced by the top-level image fields of a document."""
    keys: list[str] = []
    for value in document.values():
        keys.extend(image_keys(value))
    return keys


def removed_image_keys(old_document: dict[str, Any], update: dict[str, Any]) -> list[str]:
    """Keys dropped by merging ``update`` into ``old_document``.

    Only fields present in the update can lose images; a field that is no
    longer an image list loses all of its previous images.
    """
    removed: list[str] = []
    for name, new_value in update.items():
        old_keys = image_keys(old_document.get(name))
        if not old_keys:
            continue
        kept = set(image_keys(new_value))
        removed.extend(key for key in old_keys if key not in kept)
    return removed
