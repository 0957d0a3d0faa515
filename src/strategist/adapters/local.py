"""Local scratch storage backed by a key-value store.

All projects live in one JSON array under a fixed key. Reads are best-effort:
a missing store or a corrupt value is logged and read as "no projects".
Writes report failures as ``StorageError``.
"""

import json

from redis.exceptions import RedisError

from src.strategist.adapters.base import StorageResult
from src.strategist.adapters.document import (
    DocumentStorageAdapter,
    new_project_document,
    parse_project_create,
    parse_project_update,
)
from src.strategist.core.config import get_settings
from src.strategist.core.exceptions import NotFoundError, StorageError, ValidationFailedError
from src.strategist.core.logging import get_logger
from src.strategist.core.redis import get_redis
from src.strategist.models.base import utc_now_iso

logger = get_logger(__name__)

BACKUP_VERSION = "1.0"


class LocalStorageAdapter(DocumentStorageAdapter):
    """Stores every project in a single serialized array."""

    def __init__(
        self,
        storage_key: str | None = None,
        backup_key: str | None = None,
        current_project_key: str | None = None,
    ):
        settings = get_settings()
        self.storage_key = storage_key or settings.local_storage_key
        self.backup_key = backup_key or settings.local_backup_key
        self.current_project_key = current_project_key or settings.local_current_project_key

    async def _read_projects(self) -> list[dict]:
        redis = await get_redis()
        if not redis:
            logger.warning("Local storage unavailable, reading no projects", key=self.storage_key)
            return []

        try:
            raw = await redis.get(self.storage_key)
        except RedisError as e:
            logger.warning("Failed to read local storage", key=self.storage_key, error=str(e))
            return []

        if not raw:
            return []

        try:
            projects = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Corrupt local storage, reading no projects", key=self.storage_key, error=str(e))
            return []

        if not isinstance(projects, list):
            logger.warning("Unexpected local storage shape, reading no projects", key=self.storage_key)
            return []
        return projects

    async def _write_projects(self, projects: list[dict]) -> StorageError | None:
        redis = await get_redis()
        if not redis:
            return StorageError("Local storage is unavailable")

        try:
            await redis.set(self.storage_key, json.dumps(projects))
        except RedisError as e:
            logger.error("Failed to write local storage", key=self.storage_key, error=str(e))
            return StorageError(f"Failed to write local storage: {e}", cause=e)
        return None

    async def get_all_projects(self) -> StorageResult:
        return StorageResult(data=await self._read_projects())

    async def get_project(self, project_id: str) -> StorageResult:
        projects = await self._read_projects()
        for project in projects:
            if project.get("id") == project_id:
                return StorageResult(data=project)
        return StorageResult.failure(NotFoundError("Project", project_id))

    async def create_project(self, project_data: dict) -> StorageResult:
        payload = parse_project_create(project_data)
        if isinstance(payload, StorageResult):
            return payload

        projects = await self._read_projects()
        if payload.id is not None and any(p.get("id") == payload.id for p in projects):
            duplicate = ValidationFailedError(f"Project already exists: {payload.id}")
            return StorageResult.failure(duplicate)

        project = new_project_document(payload)
        projects.append(project)

        if error := await self._write_projects(projects):
            return StorageResult.failure(error)

        logger.info("Project created", project_id=project["id"], storage="local")
        return StorageResult(data=project)

    async def update_project(self, project_id: str, updates: dict) -> StorageResult:
        changes = parse_project_update(updates)
        if isinstance(changes, StorageResult):
            return changes

        projects = await self._read_projects()
        for index, project in enumerate(projects):
            if project.get("id") == project_id:
                break
        else:
            return StorageResult.failure(NotFoundError("Project", project_id))

        projects[index] = {**project, **changes, "id": project_id, "updatedAt": utc_now_iso()}

        if error := await self._write_projects(projects):
            return StorageResult.failure(error)
        return StorageResult(data=projects[index])

    async def delete_project(self, project_id: str) -> StorageResult:
        projects = await self._read_projects()
        remaining = [p for p in projects if p.get("id") != project_id]
        if len(remaining) == len(projects):
            return StorageResult.failure(NotFoundError("Project", project_id))

        deleted = next(p for p in projects if p.get("id") == project_id)
        if error := await self._write_projects(remaining):
            return StorageResult.failure(error)

        logger.info("Project deleted", project_id=project_id, storage="local")
        return StorageResult(data=deleted)

    # ------------------------------------------------------------------
    # Backup / maintenance
    # ------------------------------------------------------------------

    async def create_backup(self) -> StorageResult:
        """Copy all projects to the backup key with a timestamp and format version."""
        backup = {
            "timestamp": utc_now_iso(),
            "projects": await self._read_projects(),
            "version": BACKUP_VERSION,
        }

        redis = await get_redis()
        if not redis:
            return StorageResult.failure(StorageError("Local storage is unavailable"))
        try:
            await redis.set(self.backup_key, json.dumps(backup))
        except RedisError as e:
            return StorageResult.failure(StorageError(f"Failed to write backup: {e}", cause=e))

        logger.info("Local backup created", project_count=len(backup["projects"]))
        return StorageResult(data=backup)

    async def restore_backup(self) -> StorageResult:
        """Replace the stored projects with the ones from the last backup."""
        redis = await get_redis()
        if not redis:
            return StorageResult.failure(StorageError("Local storage is unavailable"))

        try:
            raw = await redis.get(self.backup_key)
        except RedisError as e:
            return StorageResult.failure(StorageError(f"Failed to read backup: {e}", cause=e))
        if not raw:
            return StorageResult.failure(NotFoundError("Backup", self.backup_key))

        try:
            backup = json.loads(raw)
        except json.JSONDecodeError as e:
            return StorageResult.failure(StorageError("Backup is corrupt", cause=e))

        projects = (backup.get("projects") or []) if isinstance(backup, dict) else []
        if error := await self._write_projects(projects):
            return StorageResult.failure(error)

        logger.info("Local backup restored", project_count=len(projects))
        return StorageResult(data=projects)

    async def clear(self) -> StorageResult:
        """Remove stored projects and the current-project pointer. The backup is kept."""
        redis = await get_redis()
        if not redis:
            return StorageResult.failure(StorageError("Local storage is unavailable"))
        try:
            await redis.delete(self.storage_key, self.current_project_key)
        except RedisError as e:
            return StorageResult.failure(StorageError(f"Failed to clear local storage: {e}", cause=e))
        return StorageResult(data=True)
