"""Schemas for data-model entities: custom objects, fields and associations."""

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from src.strategist.schemas.common import SNAKE_NAME_PATTERN, DocumentModel, UuidStr, now_utc

_SNAKE_NAME_RE = re.compile(SNAKE_NAME_PATTERN)

DataType = Literal[
    "text",
    "multiline_text",
    "number",
    "currency",
    "date",
    "datetime",
    "boolean",
    "enumeration",
    "email",
    "phone",
    "url",
]
FieldType = Literal["standard", "calculated", "lookup"]
CalculationType = Literal[
    "sum", "count", "average", "date_difference", "concatenate", "lookup", "custom"
]
AssociationType = Literal["one_to_one", "one_to_many", "many_to_many"]


def generate_api_name(name: str, project_id: str = "client") -> str:
    """Build the export API name for an object, e.g. ``p_client_member_object``."""
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return f"p_{project_id}_{slug}"


def normalize_object_name(name: str) -> str:
    """Lowercase and replace anything outside ``[a-z0-9_]`` with ``_``."""
    return re.sub(r"[^a-z0-9_]", "_", name.lower())


class EnumerationOption(DocumentModel):
    """One choice of an enumeration field.

    Blank labels/values parse here and are rejected as a whole-list problem
    by ``ValidationService.validate_field`` so the error lands on ``options``.
    """

    label: str = ""
    value: str = ""
    is_default: bool = False


class CalculatedFieldConfig(DocumentModel):
    """How a calculated field derives its value."""

    calculation_type: CalculationType
    source_object_id: str | None = None
    source_field_id: str | None = None
    formula: str | None = None


class CustomField(DocumentModel):
    """A typed attribute of a custom object."""

    id: UuidStr
    name: str = Field(min_length=2, max_length=100)
    label: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=500)
    data_type: DataType
    field_type: FieldType = "standard"
    required: bool = False
    unique: bool = False
    indexed: bool = False
    default_value: Any = None
    options: list[EnumerationOption] | None = None
    calculation: CalculatedFieldConfig | None = None
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _SNAKE_NAME_RE.match(v):
            raise ValueError(
                "Field name must be lowercase, start with a letter, "
                "and contain only letters, numbers, and underscores"
            )
        return v


class Association(DocumentModel):
    """A typed, directed relation between two custom objects."""

    id: UuidStr
    from_object_id: UuidStr
    to_object_id: UuidStr
    type: AssociationType
    label: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=now_utc)


class CustomObject(DocumentModel):
    """A user-modeled entity (roughly a table in the target system)."""

    id: UuidStr
    name: str = Field(min_length=2, max_length=100)
    label: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    api_name: str = Field(min_length=5)
    icon: str = "Database"
    fields: list[CustomField] = Field(default_factory=list)
    associations: list[Association] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)
    is_template: bool = False
    template_id: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _SNAKE_NAME_RE.match(v):
            raise ValueError(
                "Object name must be lowercase, start with a letter, "
                "and contain only letters, numbers, and underscores"
            )
        return v

    @field_validator("api_name")
    @classmethod
    def validate_api_name(cls, v: str) -> str:
        if not _SNAKE_NAME_RE.match(v):
            raise ValueError(
                "API name must be lowercase and contain only letters, numbers, and underscores"
            )
        return v


def validate_object_name(name: str | None, existing_objects: list[dict] | None = None) -> list[str]:
    """Live-typing check for the object form. Returns error messages (empty if OK)."""
    errors: list[str] = []

    if not name or len(name.strip()) < 2:
        errors.append("Object name must be at least 2 characters")

    if name and len(name) > 100:
        errors.append("Object name must be less than 100 characters")

    if name:
        normalized = normalize_object_name(name)
        if any(obj.get("name", "").lower() == normalized for obj in existing_objects or []):
            errors.append("An object with this name already exists")

    return errors


def validate_api_name(api_name: str | None) -> list[str]:
    """Live-typing check for the API name input."""
    errors: list[str] = []

    if not api_name:
        errors.append("API name is required")
        return errors

    if not _SNAKE_NAME_RE.match(api_name):
        errors.append(
            "API name must be lowercase and contain only letters, numbers, and underscores"
        )

    if len(api_name) < 5:
        errors.append("API name must be at least 5 characters")

    return errors
