"""Pydantic schemas for collection endpoints.

Field definitions form a discriminated union on ``fieldType``. Unknown keys
are rejected so stored schemas only ever contain the attributes below.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contentbase.domain.entities import CollectionSchema

# Field names become document keys: no dots, no leading '$'
FIELD_NAME_PATTERN = r"^[^.$][^.]*$"
# Collection names become table names
COLLECTION_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"


def _check_unique_names(fields: list[Any]) -> list[Any]:
    seen: set[str] = set()
    for field in fields:
        if field.name in seen:
            raise ValueError(f"Duplicate field name '{field.name}'")
        seen.add(field.name)
    return fields


class DataTableSettings(BaseModel):
    """Data table display settings of a field."""

    model_config = ConfigDict(extra="forbid")

    visible: bool | None = None
    columnWidth: float | None = Field(default=None, ge=0)


class UploadSettings(BaseModel):
    """Upload limits of an image field."""

    model_config = ConfigDict(extra="forbid")

    maxSize: float | None = Field(default=None, ge=0)
    allowedTypes: list[str] | None = None
    maxFiles: int | None = Field(default=None, ge=0)


class FieldSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dataTable: DataTableSettings | None = None
    upload: UploadSettings | None = None


class FieldBase(BaseModel):
    """Attributes shared by every field type."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=64, pattern=FIELD_NAME_PATTERN)
    label: str = Field(..., description="Human readable label")
    required: bool | None = None
    readOnly: bool | None = None
    settings: FieldSettings | None = None


class TextFieldDefinition(FieldBase):
    fieldType: Literal["TextField"]
    defaultValue: str | None = None
    pattern: str | None = None
    maxLength: int | None = Field(default=None, ge=0)
    minLength: int | None = Field(default=None, ge=0)


class NumberFieldDefinition(FieldBase):
    fieldType: Literal["NumberField"]
    defaultValue: float | None = None
    min: float | None = None
    max: float | None = None


class BooleanFieldDefinition(FieldBase):
    fieldType: Literal["BooleanField"]
    defaultValue: bool | None = None


class OptionFieldDefinition(FieldBase):
    fieldType: Literal["OptionField"]
    options: list[str]
    defaultSelected: int | None = Field(default=None, ge=0)


class ImageFieldDefinition(FieldBase):
    fieldType: Literal["ImageField"]
    maxLength: int | None = Field(default=None, ge=0)
    minLength: int | None = Field(default=None, ge=0)


class RichTextFieldDefinition(FieldBase):
    fieldType: Literal["RichTextField"]
    defaultValue: dict[str, Any] | None = None


class CompositeFieldDefinition(FieldBase):
    """A nested object made of ordered child fields."""

    fieldType: Literal["CompositeField"]
    fields: list["FieldDefinition"]

    @field_validator("fields")
    @classmethod
    def unique_child_names(cls, v: list[Any]) -> list[Any]:
        return _check_unique_names(v)


class FieldArrayDefinition(FieldBase):
    """An array whose elements follow ``field``; untyped when it is omitted."""

    fieldType: Literal["FieldArray"]
    field: "FieldDefinition | None" = None
    maxLength: int | None = Field(default=None, ge=0)
    minLength: int | None = Field(default=None, ge=0)


FieldDefinition = Annotated[
    Union[
        TextFieldDefinition,
        NumberFieldDefinition,
        BooleanFieldDefinition,
        OptionFieldDefinition,
        ImageFieldDefinition,
        RichTextFieldDefinition,
        CompositeFieldDefinition,
        FieldArrayDefinition,
    ],
    Field(discriminator="fieldType"),
]

CompositeFieldDefinition.model_rebuild()
FieldArrayDefinition.model_rebuild()


class CollectionDataTableSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    entriesPerPage: int | None = Field(default=None, ge=1)


class CollectionSettings(BaseModel):
    """Display settings of a collection."""

    model_config = ConfigDict(extra="forbid")

    dataTable: CollectionDataTableSettings | None = None


class CollectionSchemaRequest(BaseModel):
    """Request body for creating or replacing a collection schema."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(
        ...,
        min_length=1,
        max_length=55,
        pattern=COLLECTION_NAME_PATTERN,
        description="Collection name (letters, digits and underscores, stored lowercase)",
    )
    title: str = Field(..., min_length=1, max_length=255)
    fields: list[FieldDefinition] = Field(default_factory=list)
    settings: CollectionSettings | None = None

    @field_validator("name", "title", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("fields")
    @classmethod
    def unique_field_names(cls, v: list[Any]) -> list[Any]:
        return _check_unique_names(v)

    def to_schema(self) -> CollectionSchema:
        """Convert to the domain schema, dropping unset attributes."""
        return CollectionSchema.from_dict(self.model_dump(exclude_none=True))


class FieldSettingsRequest(BaseModel):
    """Request body for updating one field's data table settings."""

    model_config = ConfigDict(extra="forbid")

    dataTable: DataTableSettings


class CollectionNameItem(BaseModel):
    name: str
    title: str


class DeleteCollectionResponse(BaseModel):
    message: str = "Collection deleted successfully"
    collection_name: str
    entries_deleted: int


class ValidationIssueResponse(BaseModel):
    path: str
    msg: str


class ValidationErrorResponse(BaseModel):
    """Body of a 400 response."""

    errors: list[ValidationIssueResponse]


class ErrorResponse(BaseModel):
    """Body of 404, 409 and 500 responses."""

    error: str
    message: str
    path: str | None = None
