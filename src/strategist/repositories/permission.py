"""Repository for ProjectPermission rows."""

from sqlalchemy import delete
from sqlmodel import select

from src.strategist.models import ProjectPermission
from src.strategist.models.base import utc_now
from src.strategist.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[ProjectPermission]):
    """Repository for per-project role grants."""

    model = ProjectPermission

    async def get_permission(self, project_id: str, user_id: str) -> ProjectPermission | None:
        """Get the grant for a user on a project."""
        result = await self.session.execute(
            select(ProjectPermission).where(
                ProjectPermission.project_id == project_id,
                ProjectPermission.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(self, project_id: str, user_id: str, role: str) -> ProjectPermission:
        """Create or update the grant for a user (add to session, no commit)."""
        permission = await self.get_permission(project_id, user_id)
        if permission is None:
            permission = ProjectPermission(project_id=project_id, user_id=user_id, role=role)
            self.session.add(permission)
        else:
            permission.role = role
            permission.updated_at = utc_now()
        return permission

    async def delete_for_project(self, project_id: str) -> None:
        """Remove every grant on a project (no commit)."""
        await self.session.execute(
            delete(ProjectPermission).where(ProjectPermission.project_id == project_id)  # type: ignore[arg-type]
        )
