"""Path based transforms over entry documents.

Paths are dotted (``address.city``). The ``$[]`` segment fans out over every
element of an array (``items.$[].label``). Missing intermediate keys and
non-container values are skipped silently, so a transform only touches the
documents that actually contain the path.
"""

from typing import Any, Callable

ALL_ELEMENTS = "$[]"


def split_path(path: str) -> list[str]:
    """Split a dotted path into segments, ignoring empty ones."""
    return [segment for segment in path.split(".") if segment]


def join_path(parent: str, name: str) -> str:
    """Join a parent path and a child segment."""
    return f"{parent}.{name}" if parent else name


def _targets(node: Any, segments: list[str]) -> list[dict[str, Any]]:
    """Resolve every dict reached by walking ``segments`` from ``node``."""
    if not segments:
        return [node] if isinstance(node, dict) else []

    head, rest = segments[0], segments[1:]
    if head == ALL_ELEMENTS:
        if not isinstance(node, list):
            return []
        found: list[dict[str, Any]] = []
        for element in node:
            found.extend(_targets(element, rest))
        return found

    if not isinstance(node, dict) or head not in node:
        return []
    return _targets(node[head], rest)


def _apply(doc: dict[str, Any], parent_path: str, fn: Callable[[dict[str, Any]], bool]) -> bool:
    modified = False
    for target in _targets(doc, split_path(parent_path)):
        modified = fn(target) or modified
    return modified


def unset_path(doc: dict[str, Any], path: str) -> bool:
    """Remove the key at ``path`` in place.

    Returns:
        True if at least one key was removed.
    """
    segments = split_path(path)
    if not segments:
        raise ValueError("Cannot unset the document root")
    parent, key = segments[:-1], segments[-1]
    if key == ALL_ELEMENTS:
        raise ValueError(f"Path must end with a key: '{path}'")

    def _unset(target: dict[str, Any]) -> bool:
        if key not in target:
            return False
        del target[key]
        return True

    return _apply(doc, ".".join(parent), _unset)


def rename_key(doc: dict[str, Any], parent_path: str, old_name: str, new_name: str) -> bool:
    """Rename ``old_name`` to ``new_name`` in every object at ``parent_path``.

    The renamed key keeps its position among its siblings. An existing key
    named ``new_name`` is overwritten.

    Returns:
        True if at least one key was renamed.
    """
    if old_name == new_name:
        return False

    def _rename(target: dict[str, Any]) -> bool:
        if old_name not in target:
            return False
        items = [
            (new_name if k == old_name else k, v)
            for k, v in target.items()
            if k != new_name
        ]
        target.clear()
        target.update(items)
        return True

    return _apply(doc, parent_path, _rename)
