"""Project payload schemas.

Only the envelope is checked here. ``dataModel`` is validated entity by entity
by ``ValidationService`` and ``clientProfile``/``journeys`` are opaque.
"""

from typing import Any

from pydantic import Field, field_validator

from src.strategist.models.enums import ProjectStatus
from src.strategist.schemas.common import DocumentModel

# Top-level project keys an update may merge into the stored document
UPDATABLE_PROJECT_KEYS = ("name", "status", "clientProfile", "dataModel", "tags", "journeys")


def empty_data_model() -> dict[str, list]:
    return {"objects": [], "fields": [], "mappings": [], "associations": []}


def empty_tags() -> dict[str, list]:
    return {"library": [], "custom": []}


class ProjectCreate(DocumentModel):
    """Schema for creating a project."""

    id: str | None = Field(default=None, min_length=1)
    name: str = Field(min_length=1, max_length=200)
    status: ProjectStatus = ProjectStatus.DRAFT
    client_profile: dict[str, Any] = Field(default_factory=dict)
    data_model: dict[str, Any] = Field(default_factory=empty_data_model)
    tags: dict[str, Any] = Field(default_factory=empty_tags)
    journeys: list[Any] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty or whitespace only")
        return v

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ProjectUpdate(DocumentModel):
    """Schema for a partial project update. Unset keys are left untouched."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    status: ProjectStatus | None = None
    client_profile: dict[str, Any] | None = None
    data_model: dict[str, Any] | None = None
    tags: dict[str, Any] | None = None
    journeys: list[Any] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Project name cannot be empty or whitespace only")
        return v

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True, mode="json")
