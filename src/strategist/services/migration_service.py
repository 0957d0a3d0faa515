"""Move projects from local scratch storage into the remote store."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from src.strategist.adapters.base import StorageAdapter, StorageResult
from src.strategist.adapters.local import LocalStorageAdapter
from src.strategist.core.auth import AuthProvider, SessionUser
from src.strategist.core.exceptions import AuthenticationError, StrategistError
from src.strategist.core.logging import get_logger
from src.strategist.schemas.project import empty_data_model, empty_tags

logger = get_logger(__name__)


class MigrationStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class MigrationProgress:
    """Reported before and after each project is copied."""

    current: int
    total: int
    project_name: str
    status: MigrationStatus


@dataclass
class MigrationReadiness:
    ready: bool
    error: StrategistError | None = None
    user: SessionUser | None = None
    project_count: int = 0


@dataclass
class MigrationReport:
    success: bool = False
    migrated_count: int = 0
    total_projects: int = 0
    errors: list[dict] = field(default_factory=list)


class MigrationService:
    """Copies every local project to the remote adapter, one at a time.

    Local data is never removed by ``migrate_to_remote``; callers decide
    whether to back it up and clear it afterwards.
    """

    def __init__(
        self,
        local_adapter: LocalStorageAdapter,
        remote_adapter: StorageAdapter,
        auth_provider: AuthProvider,
    ):
        self.local_adapter = local_adapter
        self.remote_adapter = remote_adapter
        self.auth_provider = auth_provider
        self.status = MigrationStatus.NOT_STARTED

    async def check_migration_readiness(self) -> MigrationReadiness:
        """A signed-in user is required. Reports how many local projects exist."""
        user = await self.auth_provider.get_current_session_user()
        if user is None:
            return MigrationReadiness(
                ready=False, error=AuthenticationError("User must be authenticated to migrate data")
            )

        local = await self.local_adapter.get_all_projects()
        return MigrationReadiness(ready=True, user=user, project_count=len(local.data or []))

    async def migrate_to_remote(
        self, on_progress: Callable[[MigrationProgress], None] | None = None
    ) -> MigrationReport:
        """Create each local project remotely, collecting per-project failures.

        The migration succeeds if at least one project was copied, or if there
        was nothing to copy.
        """
        report = MigrationReport()

        readiness = await self.check_migration_readiness()
        if not readiness.ready:
            message = readiness.error.message if readiness.error else "Migration not ready"
            report.errors.append({"message": message, "type": "readiness"})
            self.status = MigrationStatus.FAILED
            return report

        local = await self.local_adapter.get_all_projects()
        if local.error is not None:
            report.errors.append({"message": local.error.message, "type": "fetch"})
            self.status = MigrationStatus.FAILED
            return report

        projects = local.data or []
        report.total_projects = len(projects)
        if not projects:
            report.success = True
            self.status = MigrationStatus.COMPLETED
            return report

        self.status = MigrationStatus.IN_PROGRESS
        logger.info("Migration started", project_count=len(projects))

        for index, project in enumerate(projects, start=1):
            name = project.get("name") or "Untitled"
            if on_progress:
                on_progress(MigrationProgress(index, len(projects), name, MigrationStatus.IN_PROGRESS))

            tags = project.get("tags")
            result = await self.remote_adapter.create_project(
                {
                    "name": name,
                    "status": project.get("status") or "draft",
                    "clientProfile": project.get("clientProfile") or {},
                    "dataModel": project.get("dataModel") or empty_data_model(),
                    "tags": tags if isinstance(tags, dict) else empty_tags(),
                    "journeys": project.get("journeys") or [],
                }
            )
            if result.error is not None:
                logger.warning(
                    "Project migration failed",
                    project_id=project.get("id"),
                    error=result.error.message,
                )
                report.errors.append(
                    {
                        "message": f'Failed to migrate project "{name}": {result.error.message}',
                        "type": "migration",
                        "projectId": project.get("id"),
                        "projectName": name,
                    }
                )
                continue

            report.migrated_count += 1
            if on_progress:
                on_progress(MigrationProgress(index, len(projects), name, MigrationStatus.COMPLETED))

        report.success = report.migrated_count > 0
        self.status = MigrationStatus.COMPLETED if report.success else MigrationStatus.FAILED
        logger.info(
            "Migration finished",
            migrated=report.migrated_count,
            failed=len(report.errors),
            status=self.status.value,
        )
        return report

    async def create_backup(self) -> StorageResult:
        return await self.local_adapter.create_backup()

    async def restore_from_backup(self) -> StorageResult:
        result = await self.local_adapter.restore_backup()
        if result.error is None:
            self.status = MigrationStatus.ROLLED_BACK
        return result

    async def clear_local_storage(self) -> StorageResult:
        """Remove local projects after a migration. The backup is kept."""
        return await self.local_adapter.clear()

    async def check_remote_data(self) -> StorageResult:
        """How many projects the remote store already holds, as ``{hasData, projectCount}``."""
        result = await self.remote_adapter.get_all_projects()
        if result.error is not None:
            return StorageResult.failure(result.error)
        count = len(result.data or [])
        return StorageResult(data={"hasData": count > 0, "projectCount": count})
