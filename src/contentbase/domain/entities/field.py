"""Field entity for collection schemas.

A collection schema is an ordered tree of fields. Leaf fields hold a single
value; a ``CompositeField`` holds an ordered list of child fields (a nested
object); a ``FieldArray`` holds at most one element field (absence means the
array accepts any elements).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class FieldType(str, Enum):
    """Supported field types, matching the ``fieldType`` discriminator."""

    TEXT = "TextField"
    NUMBER = "NumberField"
    BOOLEAN = "BooleanField"
    OPTION = "OptionField"
    IMAGE = "ImageField"
    RICH_TEXT = "RichTextField"
    COMPOSITE = "CompositeField"
    ARRAY = "FieldArray"


# Keys handled explicitly; everything else is a type-specific attribute
_COMMON_KEYS = frozenset(
    {"name", "label", "fieldType", "required", "readOnly", "settings", "fields", "field"}
)


@dataclass
class Field:
    """One named, typed slot in a schema.

    Attributes:
        name: Field name, unique among its siblings.
        field_type: The ``fieldType`` discriminator.
        label: Human readable label.
        required: Whether a value is required (None when not specified).
        read_only: Whether the value is read only (None when not specified).
        settings: Display settings (data table visibility/width, upload limits).
        attributes: Type-specific attributes such as ``defaultValue``,
            ``pattern``, ``min``/``max`` or ``options``, kept verbatim.
        fields: Child fields of a composite field.
        element: Element field of a field array.
    """

    name: str
    field_type: FieldType
    label: str | None = None
    required: bool | None = None
    read_only: bool | None = None
    settings: dict[str, Any] | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    fields: list["Field"] = field(default_factory=list)
    element: "Field | None" = None

    def __post_init__(self) -> None:
        if self.fields and self.field_type is not FieldType.COMPOSITE:
            raise ValueError(f"Only composite fields can have child fields ('{self.name}')")
        if self.element is not None and self.field_type is not FieldType.ARRAY:
            raise ValueError(f"Only field arrays can have an element field ('{self.name}')")

    @property
    def is_composite(self) -> bool:
        return self.field_type is FieldType.COMPOSITE

    @property
    def is_array(self) -> bool:
        return self.field_type is FieldType.ARRAY

    @property
    def is_leaf(self) -> bool:
        return not (self.is_composite or self.is_array)

    @property
    def is_array_of_composites(self) -> bool:
        """True for a ``FieldArray`` whose element is a ``CompositeField``."""
        return self.is_array and self.element is not None and self.element.is_composite

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Field":
        """Build a field tree from its JSON form.

        Raises:
            ValueError: If the field type is unknown or the tree is malformed.
        """
        try:
            field_type = FieldType(data["fieldType"])
        except KeyError as e:
            raise ValueError(f"Field '{data.get('name', '')}' is missing 'fieldType'") from e

        children = data.get("fields")
        element = data.get("field")
        return cls(
            # Array element definitions may omit their name
            name=data.get("name", ""),
            field_type=field_type,
            label=data.get("label"),
            required=data.get("required"),
            read_only=data.get("readOnly"),
            settings=data.get("settings"),
            attributes={k: v for k, v in data.items() if k not in _COMMON_KEYS},
            fields=[cls.from_dict(child) for child in children] if children else [],
            element=cls.from_dict(element) if element else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the JSON form accepted by ``from_dict``."""
        data: dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        if self.label is not None:
            data["label"] = self.label
        data["fieldType"] = self.field_type.value
        if self.required is not None:
            data["required"] = self.required
        if self.read_only is not None:
            data["readOnly"] = self.read_only
        if self.settings is not None:
            data["settings"] = self.settings
        data.update(self.attributes)
        if self.is_composite:
            data["fields"] = [child.to_dict() for child in self.fields]
        if self.element is not None:
            data["field"] = self.element.to_dict()
        return data


def child_fields(field: Field) -> list[Field]:
    """Return the children of a field.

    Composite fields yield their ordered children, field arrays yield their
    single element field if present, every other field yields nothing.
    """
    if field.is_composite:
        return list(field.fields)
    if field.is_array and field.element is not None:
        return [field.element]
    return []


def fields_of(tree: Any) -> list[Field]:
    """Return the ordered field list at the top of ``tree``.

    ``tree`` may be a ``CollectionSchema`` (or anything with a ``fields``
    attribute holding fields), a single ``Field``, or an iterable of fields.
    """
    if isinstance(tree, Field):
        return child_fields(tree)
    if hasattr(tree, "fields"):
        return list(tree.fields)
    if isinstance(tree, Iterable):
        return list(tree)
    raise TypeError(f"Cannot read fields from {type(tree).__name__}")


def find_field(fields: list[Field], name: str) -> Field | None:
    """Find a field by name among siblings."""
    return next((f for f in fields if f.name == name), None)
