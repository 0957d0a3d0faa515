"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class ProjectRole(str, Enum):
    """User role on a project. Ordered from least to most privileged."""

    NONE = "none"
    VIEWER = "viewer"
    EDITOR = "editor"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def satisfies(self, required: "ProjectRole") -> bool:
        """True if this role is at least as privileged as ``required``."""
        return self.rank >= required.rank


_ROLE_RANK = {
    ProjectRole.NONE: 0,
    ProjectRole.VIEWER: 1,
    ProjectRole.EDITOR: 2,
    ProjectRole.OWNER: 3,
}
