"""Client-side project state and the pure reducer that evolves it.

``ProjectState`` is never mutated: every action produces a new state whose
changed containers are fresh copies, so earlier states can be kept as
snapshots.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from src.strategist.schemas.project import empty_data_model, empty_tags


def empty_client_profile() -> dict[str, dict]:
    return {"basicInfo": {}, "integrationSpecs": {}}


@dataclass(frozen=True)
class ProjectState:
    current_project: str | None = None
    projects: list[dict] = field(default_factory=list)
    client_profile: dict[str, Any] = field(default_factory=empty_client_profile)
    data_model: dict[str, Any] = field(default_factory=empty_data_model)
    tags: dict[str, Any] = field(default_factory=empty_tags)
    journeys: list[Any] = field(default_factory=list)
    saved_at: str | None = None
    loading: bool = False
    error: str | None = None
    validation_errors: list[Any] = field(default_factory=list)
    # Non-fatal read warnings (e.g. malformed tags dropped by the remote store)
    corrupt_data: list[dict] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class SetError:
    error: str
    validation_errors: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ClearError:
    pass


@dataclass(frozen=True)
class LoadProjects:
    projects: list[dict]


@dataclass(frozen=True)
class CreateProjectAction:
    project: dict


@dataclass(frozen=True)
class LoadProject:
    project: dict


@dataclass(frozen=True)
class UpdateProjectInList:
    project: dict


@dataclass(frozen=True)
class DeleteProjectAction:
    project_id: str


@dataclass(frozen=True)
class UpdateClientProfile:
    changes: dict


@dataclass(frozen=True)
class AddObject:
    """Insert an object (at ``index`` when restoring) and any associations it had."""

    obj: dict
    index: int | None = None
    associations: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateObject:
    """Replace the object with the same id."""

    obj: dict


@dataclass(frozen=True)
class DeleteObject:
    object_id: str


@dataclass(frozen=True)
class AddField:
    object_id: str
    field: dict
    index: int | None = None


@dataclass(frozen=True)
class UpdateField:
    """Replace the field with the same id."""

    object_id: str
    field: dict


@dataclass(frozen=True)
class DeleteField:
    object_id: str
    field_id: str


@dataclass(frozen=True)
class UpdateTags:
    changes: dict


@dataclass(frozen=True)
class UpdateJourneys:
    journeys: list[Any]


@dataclass(frozen=True)
class UpdateSavedAt:
    saved_at: str


@dataclass(frozen=True)
class SetCorruptData:
    warnings: list[dict]


Action = (
    SetLoading
    | SetError
    | ClearError
    | LoadProjects
    | CreateProjectAction
    | LoadProject
    | UpdateProjectInList
    | DeleteProjectAction
    | UpdateClientProfile
    | AddObject
    | UpdateObject
    | DeleteObject
    | AddField
    | UpdateField
    | DeleteField
    | UpdateTags
    | UpdateJourneys
    | UpdateSavedAt
    | SetCorruptData
)


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------


def _with_objects(state: ProjectState, objects: list[dict], **extra: Any) -> ProjectState:
    return replace(state, data_model={**state.data_model, "objects": objects, **extra})


def _map_fields(state: ProjectState, object_id: str, update) -> ProjectState:
    objects = [
        {**obj, "fields": update(list(obj.get("fields") or []))} if obj.get("id") == object_id else obj
        for obj in state.data_model.get("objects") or []
    ]
    return _with_objects(state, objects)


def _insert(items: list, item: Any, index: int | None) -> list:
    if index is None or index > len(items):
        return [*items, item]
    return [*items[:index], item, *items[index:]]


def project_reducer(state: ProjectState, action: Action) -> ProjectState:
    """Return the state after ``action``. Unknown actions leave the state as is."""
    objects = state.data_model.get("objects") or []

    match action:
        case SetLoading(loading=loading):
            return replace(state, loading=loading, error=None)

        case SetError(error=error, validation_errors=validation_errors):
            return replace(
                state, loading=False, error=error, validation_errors=list(validation_errors)
            )

        case ClearError():
            return replace(state, error=None, validation_errors=[])

        case LoadProjects(projects=projects):
            return replace(state, projects=list(projects), loading=False, error=None)

        case CreateProjectAction(project=project):
            return replace(
                state,
                projects=[*state.projects, project],
                current_project=project["id"],
                loading=False,
                error=None,
            )

        case LoadProject(project=project):
            return replace(
                state,
                current_project=project["id"],
                client_profile=project.get("clientProfile") or empty_client_profile(),
                data_model=project.get("dataModel") or empty_data_model(),
                tags=project.get("tags") or empty_tags(),
                journeys=project.get("journeys") or [],
                loading=False,
                error=None,
            )

        case UpdateProjectInList(project=project):
            return replace(
                state,
                projects=[project if p.get("id") == project.get("id") else p for p in state.projects],
            )

        case DeleteProjectAction(project_id=project_id):
            return replace(
                state,
                projects=[p for p in state.projects if p.get("id") != project_id],
                current_project=None if state.current_project == project_id else state.current_project,
                loading=False,
                error=None,
            )

        case UpdateClientProfile(changes=changes):
            return replace(state, client_profile={**state.client_profile, **changes})

        case AddObject(obj=obj, index=index, associations=associations):
            restored = [*(state.data_model.get("associations") or []), *associations]
            return _with_objects(state, _insert(list(objects), obj, index), associations=restored)

        case UpdateObject(obj=obj):
            return _with_objects(
                state, [obj if o.get("id") == obj.get("id") else o for o in objects]
            )

        case DeleteObject(object_id=object_id):
            associations = [
                a
                for a in state.data_model.get("associations") or []
                if a.get("fromObjectId") != object_id and a.get("toObjectId") != object_id
            ]
            return _with_objects(
                state,
                [o for o in objects if o.get("id") != object_id],
                associations=associations,
            )

        case AddField(object_id=object_id, field=new_field, index=index):
            return _map_fields(state, object_id, lambda fields: _insert(fields, new_field, index))

        case UpdateField(object_id=object_id, field=updated):
            return _map_fields(
                state,
                object_id,
                lambda fields: [updated if f.get("id") == updated.get("id") else f for f in fields],
            )

        case DeleteField(object_id=object_id, field_id=field_id):
            return _map_fields(
                state, object_id, lambda fields: [f for f in fields if f.get("id") != field_id]
            )

        case UpdateTags(changes=changes):
            return replace(state, tags={**state.tags, **changes})

        case UpdateJourneys(journeys=journeys):
            return replace(state, journeys=list(journeys))

        case UpdateSavedAt(saved_at=saved_at):
            return replace(state, saved_at=saved_at)

        case SetCorruptData(warnings=warnings):
            return replace(state, corrupt_data=list(warnings))

    return state
