"""Project store: client state plus the actions the UI calls.

Data-model edits are optimistic. The change is applied locally, the
repository is called, and the change is either reconciled with the stored
value or reverted. Errors reach the UI only as sanitized messages.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.strategist.adapters.base import StorageResult
from src.strategist.core.errors import log_error, to_user_message
from src.strategist.core.exceptions import StrategistError
from src.strategist.core.logging import bind_project_context, get_logger
from src.strategist.models.base import generate_id, utc_now_iso
from src.strategist.services.project_repository import ProjectRepository
from src.strategist.state.mutation import PendingMutation
from src.strategist.state.reducer import (
    Action,
    AddField,
    AddObject,
    CreateProjectAction,
    DeleteField,
    DeleteObject,
    DeleteProjectAction,
    LoadProject,
    LoadProjects,
    ProjectState,
    SetCorruptData,
    SetError,
    SetLoading,
    UpdateClientProfile,
    UpdateField,
    UpdateJourneys,
    UpdateObject,
    UpdateProjectInList,
    UpdateSavedAt,
    UpdateTags,
    project_reducer,
)

logger = get_logger(__name__)

COMPONENT = "ProjectStore"


@dataclass
class ActionResult:
    """What a store action reports back to the UI.

    ``error`` is the technical error (for logs and branching); ``message`` is
    the user-facing text derived from it.
    """

    data: Any = None
    error: StrategistError | None = None
    message: str | None = None
    validation_errors: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def _find(items: list[dict], item_id: str) -> tuple[int | None, dict | None]:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index, item
    return None, None


class ProjectStore:
    """Holds ``ProjectState`` and runs user actions against a repository."""

    def __init__(self, repository: ProjectRepository, state: ProjectState | None = None):
        self.repository = repository
        self.state = state or ProjectState()
        self._subscribers: list[Callable[[ProjectState], None]] = []

    def subscribe(self, callback: Callable[[ProjectState], None]) -> Callable[[], None]:
        """Call ``callback`` after every state change. Returns an unsubscribe function."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def dispatch(self, action: Action) -> ProjectState:
        self.state = project_reducer(self.state, action)
        for callback in list(self._subscribers):
            callback(self.state)
        return self.state

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fail(
        self, action: str, error: StrategistError, validation_errors: list | None = None
    ) -> ActionResult:
        log_error(COMPONENT, action, error)
        message = to_user_message(error)
        validation_errors = list(validation_errors or [])
        self.dispatch(SetError(message, validation_errors))
        return ActionResult(error=error, message=message, validation_errors=validation_errors)

    def _no_project(self, action: str) -> ActionResult:
        return self._fail(action, StrategistError("No project selected"))

    def _report_warnings(self, result: StorageResult) -> None:
        if result.warnings:
            logger.warning("Corrupt data detected on read", warnings=result.warnings)
            self.dispatch(SetCorruptData(result.warnings))

    async def _run_optimistic(
        self,
        action: str,
        mutation: PendingMutation,
        operation: Callable[[], Any],
        reconcile: Callable[[Any], Action | None] | None = None,
    ) -> ActionResult:
        mutation.begin(self.dispatch)
        try:
            result: StorageResult = await operation()
        except Exception:
            mutation.rollback(self.dispatch)
            raise

        if result.error is not None:
            mutation.rollback(self.dispatch)
            return self._fail(action, result.error, result.validation_errors)

        mutation.commit(self.dispatch, reconcile(result.data) if reconcile else None)
        return ActionResult(data=result.data)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def load_projects(self) -> ActionResult:
        self.dispatch(SetLoading(True))
        result = await self.repository.get_all_projects()
        if result.error is not None:
            return self._fail("load_projects", result.error)

        self.dispatch(LoadProjects(result.data or []))
        self._report_warnings(result)
        return ActionResult(data=result.data)

    async def create_project(self, project_data: dict) -> ActionResult:
        self.dispatch(SetLoading(True))
        result = await self.repository.create_project(project_data)
        if result.error is not None:
            return self._fail("create_project", result.error, result.validation_errors)

        self.dispatch(CreateProjectAction(result.data))
        bind_project_context(result.data["id"])
        return ActionResult(data=result.data)

    async def load_project(self, project_id: str) -> ActionResult:
        self.dispatch(SetLoading(True))
        result = await self.repository.get_project(project_id)
        if result.error is not None:
            return self._fail("load_project", result.error)

        self.dispatch(LoadProject(result.data))
        bind_project_context(project_id)
        self._report_warnings(result)
        return ActionResult(data=result.data)

    async def save_project(self) -> ActionResult:
        """Persist the in-memory client profile, data model, tags and journeys."""
        if not self.state.current_project:
            return self._no_project("save_project")

        updates = {
            "clientProfile": self.state.client_profile,
            "dataModel": self.state.data_model,
            "tags": self.state.tags,
            "journeys": self.state.journeys,
        }
        result = await self.repository.update_project(self.state.current_project, updates)
        if result.error is not None:
            return self._fail("save_project", result.error, result.validation_errors)

        self.dispatch(UpdateSavedAt(utc_now_iso()))
        self.dispatch(UpdateProjectInList(result.data))
        return ActionResult(data=result.data)

    async def delete_project(self, project_id: str) -> ActionResult:
        self.dispatch(SetLoading(True))
        result = await self.repository.delete_project(project_id)
        if result.error is not None:
            return self._fail("delete_project", result.error)

        self.dispatch(DeleteProjectAction(project_id))
        return ActionResult(data=result.data)

    # ------------------------------------------------------------------
    # Local-only edits (persisted by save_project / auto-save)
    # ------------------------------------------------------------------

    def update_client_profile(self, changes: dict) -> ProjectState:
        return self.dispatch(UpdateClientProfile(changes))

    def update_tags(self, changes: dict) -> ProjectState:
        return self.dispatch(UpdateTags(changes))

    def update_journeys(self, journeys: list) -> ProjectState:
        return self.dispatch(UpdateJourneys(journeys))

    # ------------------------------------------------------------------
    # Custom objects
    # ------------------------------------------------------------------

    async def add_custom_object(self, object_data: dict) -> ActionResult:
        if not self.state.current_project:
            return self._no_project("add_custom_object")

        project_id = self.state.current_project
        obj = {**object_data, "id": object_data.get("id") or generate_id()}
        mutation = PendingMutation(
            "add_custom_object",
            apply=AddObject(obj),
            revert=lambda _: DeleteObject(obj["id"]),
        )
        return await self._run_optimistic(
            "add_custom_object",
            mutation,
            lambda: self.repository.add_custom_object(project_id, obj),
            reconcile=UpdateObject,
        )

    async def update_custom_object(self, object_id: str, updates: dict) -> ActionResult:
        if not self.state.current_project:
            return self._no_project("update_custom_object")

        project_id = self.state.current_project
        _, original = _find(self.state.data_model.get("objects") or [], object_id)
        optimistic = {**(original or {}), **updates, "id": object_id}
        mutation = PendingMutation(
            "update_custom_object",
            apply=UpdateObject(optimistic),
            revert=lambda pre: UpdateObject(pre) if pre else None,
            pre_image=original,
        )
        return await self._run_optimistic(
            "update_custom_object",
            mutation,
            lambda: self.repository.update_custom_object(project_id, object_id, updates),
            reconcile=UpdateObject,
        )

    async def delete_custom_object(self, object_id: str) -> ActionResult:
        """Remove an object (and its associations) locally, restoring both on failure."""
        if not self.state.current_project:
            return self._no_project("delete_custom_object")

        project_id = self.state.current_project
        index, original = _find(self.state.data_model.get("objects") or [], object_id)
        linked = [
            a
            for a in self.state.data_model.get("associations") or []
            if object_id in (a.get("fromObjectId"), a.get("toObjectId"))
        ]
        mutation = PendingMutation(
            "delete_custom_object",
            apply=DeleteObject(object_id),
            revert=lambda pre: AddObject(pre["obj"], pre["index"], pre["associations"])
            if pre["obj"]
            else None,
            pre_image={"obj": original, "index": index, "associations": linked},
        )
        return await self._run_optimistic(
            "delete_custom_object",
            mutation,
            lambda: self.repository.delete_custom_object(project_id, object_id),
        )

    async def duplicate_custom_object(self, object_id: str) -> ActionResult:
        """Not optimistic: the copy's ids come from storage."""
        if not self.state.current_project:
            return self._no_project("duplicate_custom_object")

        result = await self.repository.duplicate_custom_object(self.state.current_project, object_id)
        if result.error is not None:
            return self._fail("duplicate_custom_object", result.error)

        self.dispatch(AddObject(result.data))
        return ActionResult(data=result.data)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    async def add_field(self, object_id: str, field_data: dict) -> ActionResult:
        if not self.state.current_project:
            return self._no_project("add_field")

        project_id = self.state.current_project
        new_field = {**field_data, "id": field_data.get("id") or generate_id()}
        mutation = PendingMutation(
            "add_field",
            apply=AddField(object_id, new_field),
            revert=lambda _: DeleteField(object_id, new_field["id"]),
        )
        return await self._run_optimistic(
            "add_field",
            mutation,
            lambda: self.repository.add_field(project_id, object_id, new_field),
            reconcile=lambda stored: UpdateField(object_id, stored),
        )

    async def update_field(self, object_id: str, field_id: str, updates: dict) -> ActionResult:
        if not self.state.current_project:
            return self._no_project("update_field")

        project_id = self.state.current_project
        _, obj = _find(self.state.data_model.get("objects") or [], object_id)
        _, original = _find((obj or {}).get("fields") or [], field_id)
        optimistic = {**(original or {}), **updates, "id": field_id}
        mutation = PendingMutation(
            "update_field",
            apply=UpdateField(object_id, optimistic),
            revert=lambda pre: UpdateField(object_id, pre) if pre else None,
            pre_image=original,
        )
        return await self._run_optimistic(
            "update_field",
            mutation,
            lambda: self.repository.update_field(project_id, object_id, field_id, updates),
            reconcile=lambda stored: UpdateField(object_id, stored),
        )

    async def delete_field(self, object_id: str, field_id: str) -> ActionResult:
        if not self.state.current_project:
            return self._no_project("delete_field")

        project_id = self.state.current_project
        _, obj = _find(self.state.data_model.get("objects") or [], object_id)
        index, original = _find((obj or {}).get("fields") or [], field_id)
        mutation = PendingMutation(
            "delete_field",
            apply=DeleteField(object_id, field_id),
            revert=lambda pre: AddField(object_id, pre["field"], pre["index"])
            if pre["field"]
            else None,
            pre_image={"field": original, "index": index},
        )
        return await self._run_optimistic(
            "delete_field",
            mutation,
            lambda: self.repository.delete_field(project_id, object_id, field_id),
        )
