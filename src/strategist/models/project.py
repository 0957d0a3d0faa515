"""Remote project storage tables.

One row per project in ``implementations``; the whole project document
(client profile, data model, tags, journeys) lives in the ``data`` JSON column.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.strategist.models.base import generate_id, utc_now
from src.strategist.models.enums import ProjectStatus


class Implementation(SQLModel, table=True):
    """A project row. ``owner_id`` is the user who created it."""

    __tablename__ = "implementations"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    owner_id: str = Field(index=True, max_length=64)
    name: str = Field(max_length=200)
    status: str = Field(default=ProjectStatus.DRAFT.value, max_length=20)
    data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False),
    )
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True), index=True
    )


class ProjectPermission(SQLModel, table=True):
    """Grants a user a role on a project other than through ownership."""

    __tablename__ = "project_permissions"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_permission"),)

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=64)
    project_id: str = Field(
        foreign_key="implementations.id", ondelete="CASCADE", index=True, max_length=64
    )
    user_id: str = Field(index=True, max_length=64)
    role: str = Field(max_length=20)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
