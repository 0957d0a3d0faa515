"""Repository layer - row access for the remote store."""

from src.strategist.repositories.base import BaseRepository
from src.strategist.repositories.implementation import ImplementationRepository
from src.strategist.repositories.permission import PermissionRepository

__all__ = [
    "BaseRepository",
    "ImplementationRepository",
    "PermissionRepository",
]
