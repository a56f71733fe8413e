"""ContentBase - headless CMS with schema-driven collections.

Operators define collections with a JSON field schema; stored entries are
migrated automatically when the schema changes.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
