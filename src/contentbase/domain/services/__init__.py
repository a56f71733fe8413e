"""Domain services for ContentBase.

Services contain business logic that doesn't naturally fit within a single entity.
Only the pure planning helpers are re-exported here; the services that talk to
persistence are imported from their modules.
"""

from contentbase.domain.services.document_paths import (
    ALL_ELEMENTS,
    join_path,
    rename_key,
    split_path,
    unset_path,
)
from contentbase.domain.services.schema_diff import (
    MigrationOperation,
    RenameField,
    SchemaDiffer,
    UnsetField,
    plan_migration,
)

__all__ = [
    "ALL_ELEMENTS",
    "MigrationOperation",
    "RenameField",
    "SchemaDiffer",
    "UnsetField",
    "join_path",
    "plan_migration",
    "rename_key",
    "split_path",
    "unset_path",
]
