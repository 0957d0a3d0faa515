"""Repository for Implementation (project) rows."""

from sqlmodel import select

from src.strategist.models import Implementation
from src.strategist.repositories.base import BaseRepository


class ImplementationRepository(BaseRepository[Implementation]):
    """Repository for project rows. Every signed-in user can read every row."""

    model = Implementation

    async def list_all(self) -> list[Implementation]:
        """List all projects, most recently updated first."""
        result = await self.session.execute(
            select(Implementation).order_by(Implementation.updated_at.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())
