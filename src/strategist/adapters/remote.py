"""Remote project storage in a relational database.

One ``implementations`` row per project holds the project document in a JSON
column; ``project_permissions`` grants other users a role on a project.

Every call needs a signed-in user. Any signed-in user may read every project.
Content edits need ``editor`` or above, deleting a project needs ``owner``.
"""

from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.strategist.adapters.base import StorageResult
from src.strategist.adapters.document import (
    DocumentStorageAdapter,
    new_project_document,
    parse_project_create,
    parse_project_update,
)
from src.strategist.core.auth import AuthProvider, SessionUser
from src.strategist.core.db import get_session_factory
from src.strategist.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StorageError,
    StrategistError,
    ValidationFailedError,
)
from src.strategist.core.logging import get_logger
from src.strategist.models import Implementation, ProjectRole
from src.strategist.models.base import to_iso, utc_now
from src.strategist.repositories import ImplementationRepository, PermissionRepository
from src.strategist.schemas.project import empty_data_model, empty_tags
from src.strategist.schemas.tag import Tag

logger = get_logger(__name__)

_DOCUMENT_KEYS = ("clientProfile", "dataModel", "tags", "journeys")
_TAG_COLLECTIONS = ("library", "custom")
_GRANTABLE_ROLES = (ProjectRole.OWNER, ProjectRole.EDITOR, ProjectRole.VIEWER)


def sanitize_tags(tags: Any, project_id: str) -> tuple[dict[str, list], list[dict]]:
    """Drop tags that no longer match the Tag schema.

    Returns the cleaned collections and one warning per collection that lost
    tags, so the rest of the project stays readable.
    """
    if not isinstance(tags, dict):
        if tags:
            logger.warning("Unexpected tags shape, ignoring", project_id=project_id)
        return empty_tags(), []

    cleaned: dict[str, list] = {}
    warnings: list[dict] = []
    for collection in _TAG_COLLECTIONS:
        kept = []
        for tag in tags.get(collection) or []:
            try:
                Tag.model_validate(tag)
            except ValidationError as e:
                logger.warning(
                    "Dropping malformed tag",
                    project_id=project_id,
                    collection=collection,
                    tag_id=tag.get("id") if isinstance(tag, dict) else None,
                    error_count=e.error_count(),
                )
                continue
            kept.append(tag)

        dropped = len(tags.get(collection) or []) - len(kept)
        if dropped:
            warnings.append({"projectId": project_id, "collection": collection, "count": dropped})
        cleaned[collection] = kept

    return cleaned, warnings


def row_to_document(row: Implementation) -> tuple[dict[str, Any], list[dict]]:
    """Flatten a row into the project document shape used by the client."""
    data = row.data or {}
    tags, warnings = sanitize_tags(data.get("tags"), row.id)
    document = {
        "id": row.id,
        "ownerId": row.owner_id,
        "name": row.name,
        "status": row.status,
        "clientProfile": data.get("clientProfile") or {},
        "dataModel": data.get("dataModel") or empty_data_model(),
        "tags": tags,
        "journeys": data.get("journeys") or [],
        "createdAt": to_iso(row.created_at),
        "updatedAt": to_iso(row.updated_at),
    }
    return document, warnings


def _storage_failure(action: str, error: SQLAlchemyError) -> StorageResult:
    logger.error("Remote storage error", action=action, error=str(error))
    return StorageResult.failure(StorageError(f"Database error during {action}", cause=error))


class RemoteStorageAdapter(DocumentStorageAdapter):
    """Project storage with per-user authentication and role checks."""

    def __init__(
        self,
        auth_provider: AuthProvider,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        self.auth_provider = auth_provider
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def _current_user(self) -> SessionUser | AuthenticationError:
        user = await self.auth_provider.get_current_session_user()
        if user is None:
            return AuthenticationError("No active session. Please log in.")
        return user

    @staticmethod
    async def _resolve_role(session: AsyncSession, row: Implementation, user_id: str) -> ProjectRole:
        """Owner by ownership, otherwise whatever the permission table grants."""
        if row.owner_id == user_id:
            return ProjectRole.OWNER
        permission = await PermissionRepository(session).get_permission(row.id, user_id)
        if permission is None:
            return ProjectRole.NONE
        try:
            return ProjectRole(permission.role)
        except ValueError:
            logger.warning("Unknown role in permission table", project_id=row.id, role=permission.role)
            return ProjectRole.NONE

    async def _check_role(
        self, session: AsyncSession, row: Implementation, user: SessionUser, required: ProjectRole
    ) -> AuthorizationError | None:
        role = await self._resolve_role(session, row, user.id)
        if role.satisfies(required):
            return None
        logger.warning(
            "Permission denied",
            project_id=row.id,
            user_id=user.id,
            role=role.value,
            required=required.value,
        )
        return AuthorizationError(
            f"Permission denied: {required.value} role required, you are {role.value}"
        )

    async def _authorize_edit(self, project_id: str) -> StrategistError | None:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return user
        try:
            async with self.session_factory() as session:
                row = await ImplementationRepository(session).get_by_id(project_id)
                if row is None:
                    return NotFoundError("Project", project_id)
                return await self._check_role(session, row, user, ProjectRole.EDITOR)
        except SQLAlchemyError as e:
            return _storage_failure("authorize", e).error

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_all_projects(self) -> StorageResult:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        try:
            async with self.session_factory() as session:
                rows = await ImplementationRepository(session).list_all()
        except SQLAlchemyError as e:
            return _storage_failure("list projects", e)

        projects, warnings = [], []
        for row in rows:
            document, row_warnings = row_to_document(row)
            projects.append(document)
            warnings.extend(row_warnings)
        return StorageResult(data=projects, warnings=warnings)

    async def get_project(self, project_id: str) -> StorageResult:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        try:
            async with self.session_factory() as session:
                row = await ImplementationRepository(session).get_by_id(project_id)
        except SQLAlchemyError as e:
            return _storage_failure("get project", e)

        if row is None:
            return StorageResult.failure(NotFoundError("Project", project_id))
        document, warnings = row_to_document(row)
        return StorageResult(data=document, warnings=warnings)

    async def create_project(self, project_data: dict) -> StorageResult:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        payload = parse_project_create(project_data)
        if isinstance(payload, StorageResult):
            return payload

        document = new_project_document(payload)
        row = Implementation(
            id=document["id"],
            owner_id=user.id,
            name=document["name"],
            status=document["status"],
            data={key: document[key] for key in _DOCUMENT_KEYS},
        )

        try:
            async with self.session_factory() as session:
                ImplementationRepository(session).add(row)
                await session.commit()
        except SQLAlchemyError as e:
            return _storage_failure("create project", e)

        logger.info("Project created", project_id=row.id, storage="remote")
        created, warnings = row_to_document(row)
        return StorageResult(data=created, warnings=warnings)

    async def update_project(self, project_id: str, updates: dict) -> StorageResult:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        changes = parse_project_update(updates)
        if isinstance(changes, StorageResult):
            return changes

        try:
            async with self.session_factory() as session:
                row = await ImplementationRepository(session).get_by_id(project_id)
                if row is None:
                    return StorageResult.failure(NotFoundError("Project", project_id))
                if denied := await self._check_role(session, row, user, ProjectRole.EDITOR):
                    return StorageResult.failure(denied)

                if "name" in changes:
                    row.name = changes["name"]
                if "status" in changes:
                    row.status = changes["status"]
                # New dict so the JSON column is flagged dirty
                row.data = {
                    **(row.data or {}),
                    **{key: changes[key] for key in _DOCUMENT_KEYS if key in changes},
                }
                row.updated_at = utc_now()
                await session.commit()
        except SQLAlchemyError as e:
            return _storage_failure("update project", e)

        document, warnings = row_to_document(row)
        return StorageResult(data=document, warnings=warnings)

    async def delete_project(self, project_id: str) -> StorageResult:
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        try:
            async with self.session_factory() as session:
                projects = ImplementationRepository(session)
                row = await projects.get_by_id(project_id)
                if row is None:
                    return StorageResult.failure(NotFoundError("Project", project_id))
                if denied := await self._check_role(session, row, user, ProjectRole.OWNER):
                    return StorageResult.failure(denied)

                document, _ = row_to_document(row)
                await PermissionRepository(session).delete_for_project(project_id)
                await projects.delete(row)
                await session.commit()
        except SQLAlchemyError as e:
            return _storage_failure("delete project", e)

        logger.info("Project deleted", project_id=project_id, storage="remote")
        return StorageResult(data=document)

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def get_user_role(self, project_id: str) -> StorageResult:
        """The signed-in user's role on a project (``none`` if not granted)."""
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        try:
            async with self.session_factory() as session:
                row = await ImplementationRepository(session).get_by_id(project_id)
                if row is None:
                    return StorageResult.failure(NotFoundError("Project", project_id))
                role = await self._resolve_role(session, row, user.id)
        except SQLAlchemyError as e:
            return _storage_failure("get role", e)

        return StorageResult(data=role)

    async def set_permission(
        self, project_id: str, user_id: str, role: ProjectRole | str
    ) -> StorageResult:
        """Grant ``role`` to ``user_id`` on a project. Only the owner may do this."""
        user = await self._current_user()
        if isinstance(user, AuthenticationError):
            return StorageResult.failure(user)

        try:
            role = ProjectRole(role)
        except ValueError:
            role = ProjectRole.NONE
        if role not in _GRANTABLE_ROLES:
            return StorageResult.failure(
                ValidationFailedError("Role must be one of: owner, editor, viewer")
            )

        try:
            async with self.session_factory() as session:
                row = await ImplementationRepository(session).get_by_id(project_id)
                if row is None:
                    return StorageResult.failure(NotFoundError("Project", project_id))
                if denied := await self._check_role(session, row, user, ProjectRole.OWNER):
                    return StorageResult.failure(denied)

                await PermissionRepository(session).upsert(project_id, user_id, role.value)
                await session.commit()
        except SQLAlchemyError as e:
            return _storage_failure("set permission", e)

        logger.info("Permission granted", project_id=project_id, grantee=user_id, role=role.value)
        return StorageResult(data={"projectId": project_id, "userId": user_id, "role": role.value})
