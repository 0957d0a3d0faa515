"""Shared schema building blocks."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Lowercase identifier used for object, field and API names
SNAKE_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
# Tag names are PascalCase-ish: uppercase first letter
TAG_NAME_PATTERN = r"^[A-Z][A-Za-z0-9_]*$"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _validate_uuid(v: str) -> str:
    try:
        UUID(v)
    except ValueError:
        raise ValueError("Invalid uuid") from None
    return v


# UUIDs stay strings so validated documents remain JSON-ready
UuidStr = Annotated[str, AfterValidator(_validate_uuid)]


def now_utc() -> datetime:
    """Timezone-aware current time, the default for document timestamps."""
    return datetime.now(UTC)


class DocumentModel(BaseModel):
    """Base for schemas of JSON documents stored with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Dump using the stored (camelCase) key names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
