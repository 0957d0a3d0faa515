"""Model exports.

Import from here: `from src.strategist.models import Implementation, ProjectPermission`
"""

from src.strategist.models.enums import ProjectRole, ProjectStatus
from src.strategist.models.project import Implementation, ProjectPermission

__all__ = [
    # Enums
    "ProjectRole",
    "ProjectStatus",
    # Tables
    "Implementation",
    "ProjectPermission",
]
