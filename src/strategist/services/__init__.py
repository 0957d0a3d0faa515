from src.strategist.services.migration_service import MigrationService, MigrationStatus
from src.strategist.services.project_repository import ProjectRepository
from src.strategist.services.validation_service import ValidationService

__all__ = [
    "MigrationService",
    "MigrationStatus",
    "ProjectRepository",
    "ValidationService",
]
