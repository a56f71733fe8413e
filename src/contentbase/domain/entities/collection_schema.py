"""Collection schema entity.

The schema is persisted as a single JSON document holding the collection name,
title, ordered field tree and display settings.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from contentbase.domain.entities.field import Field


def normalize_collection_name(name: str) -> str:
    """Collection names are trimmed and stored lowercase."""
    return name.strip().lower()


@dataclass
class CollectionSchema:
    """A collection's schema.

    Attributes:
        name: Unique collection name, normalized to lowercase. Used as the
            physical entry store identifier.
        title: Unique human readable title.
        fields: Ordered top-level fields.
        settings: Optional display settings (e.g. ``dataTable.entriesPerPage``).
    """

    name: str
    title: str
    fields: list[Field] = field(default_factory=list)
    settings: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.name = normalize_collection_name(self.name)
        if not self.name:
            raise ValueError("Collection name is required")
        if not self.title:
            raise ValueError("Collection title is required")

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CollectionSchema":
        return cls(
            name=data.get("name", ""),
            title=data.get("title", ""),
            fields=[Field.from_dict(f) for f in data.get("fields", [])],
            settings=data.get("settings"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "title": self.title,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.settings is not None:
            data["settings"] = self.settings
        return data

    @classmethod
    def from_json(cls, raw: str) -> "CollectionSchema":
        return cls.from_dict(json.loads(raw))

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
