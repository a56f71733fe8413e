"""Schema diff planner.

Compares an existing field tree with an updated one and produces the list of
document operations needed to keep stored entries in line with the new
schema. Each nesting level may carry at most one structural change: one added
field (or several), one removed field, or one renamed field. Anything else is
rejected as ambiguous before any entry is touched.
"""

from dataclasses import dataclass
from typing import Union

from contentbase.core.exceptions import AmbiguousSchemaChangeError
from contentbase.core.logging import get_logger
from contentbase.domain.entities.field import Field
from contentbase.domain.services.document_paths import ALL_ELEMENTS, join_path

logger = get_logger(__name__)


@dataclass(frozen=True)
class UnsetField:
    """Remove the key at ``path`` from every entry containing it."""

    path: str

    def describe(self) -> str:
        return f"unset {self.path}"


@dataclass(frozen=True)
class RenameField:
    """Rename ``old_name`` to ``new_name`` in every object at ``parent_path``."""

    parent_path: str
    old_name: str
    new_name: str

    @property
    def crosses_array(self) -> bool:
        return ALL_ELEMENTS in self.parent_path

    @property
    def path(self) -> str:
        return join_path(self.parent_path, self.old_name)

    def describe(self) -> str:
        return f"rename {self.path} -> {join_path(self.parent_path, self.new_name)}"


MigrationOperation = Union[UnsetField, RenameField]


def _level_label(parent_path: str) -> str:
    return parent_path or "fields"


class SchemaDiffer:
    """Plans the entry migration implied by a schema update."""

    def plan(
        self,
        old_fields: list[Field],
        new_fields: list[Field],
        parent_path: str = "",
    ) -> list[MigrationOperation]:
        """Plan operations for one nesting level and, when unchanged, its children.

        Args:
            old_fields: Fields currently stored at this level.
            new_fields: Fields requested at this level.
            parent_path: Document path of this level (``""`` for top level).

        Returns:
            Ordered list of operations to apply to every entry.

        Raises:
            AmbiguousSchemaChangeError: If the level changes in more than one way.
        """
        old_names = [f.name for f in old_fields]
        new_names = [f.name for f in new_fields]
        where = _level_label(parent_path)

        if len(new_names) > len(old_names):
            missing = [name for name in old_names if name not in new_names]
            if missing:
                raise AmbiguousSchemaChangeError(
                    where,
                    f"Fields cannot be added and removed or renamed in the same update "
                    f"(missing: {', '.join(missing)})",
                )
            return []

        if len(new_names) < len(old_names):
            return [self._plan_removal(old_names, new_names, parent_path)]

        if old_names != new_names:
            return [self._plan_rename(old_names, new_names, parent_path)]

        operations: list[MigrationOperation] = []
        for old, new in zip(old_fields, new_fields):
            operations.extend(self._plan_unchanged(old, new, parent_path))
        return operations

    def _plan_removal(
        self, old_names: list[str], new_names: list[str], parent_path: str
    ) -> UnsetField:
        removed = [name for name in old_names if name not in new_names]
        introduced = [name for name in new_names if name not in old_names]
        if len(removed) != 1 or introduced:
            raise AmbiguousSchemaChangeError(
                _level_label(parent_path),
                "Only one field can be removed per update, without adding or renaming others",
            )
        return UnsetField(path=join_path(parent_path, removed[0]))

    def _plan_rename(
        self, old_names: list[str], new_names: list[str], parent_path: str
    ) -> RenameField:
        changed = [
            (old, new) for old, new in zip(old_names, new_names) if old != new
        ]
        if len(changed) != 1:
            raise AmbiguousSchemaChangeError(
                _level_label(parent_path),
                "Only one field can be renamed per update and fields cannot be reordered",
            )
        old_name, new_name = changed[0]
        if new_name in old_names:
            raise AmbiguousSchemaChangeError(
                _level_label(parent_path),
                f"Field '{new_name}' already exists at this level",
            )
        return RenameField(parent_path=parent_path, old_name=old_name, new_name=new_name)

    def _plan_unchanged(
        self, old: Field, new: Field, parent_path: str
    ) -> list[MigrationOperation]:
        path = join_path(parent_path, new.name)

        if old.is_composite and new.is_composite:
            return self.plan(old.fields, new.fields, path)

        if old.is_array and new.is_array:
            if old.element is not None and new.element is None:
                return [UnsetField(path=path)]
            if old.is_array_of_composites and new.is_array_of_composites:
                return self.plan(
                    old.element.fields, new.element.fields, f"{path}.{ALL_ELEMENTS}"
                )

        return []


def plan_migration(old_fields: list[Field], new_fields: list[Field]) -> list[MigrationOperation]:
    """Plan the top-level migration between two field lists."""
    operations = SchemaDiffer().plan(old_fields, new_fields)
    if operations:
        logger.debug(
            "Planned schema migration",
            operations=[op.describe() for op in operations],
        )
    return operations
