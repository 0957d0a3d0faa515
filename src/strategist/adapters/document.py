"""Shared behavior for adapters that store a project as one JSON document.

Objects and fields are not independently addressable: every nested operation
reads the project, edits its ``dataModel`` and writes it back through
``update_project``. Subclasses only implement project-level CRUD.
"""

import copy
from typing import Any

from pydantic import ValidationError

from src.strategist.adapters.base import StorageAdapter, StorageResult
from src.strategist.core.exceptions import NotFoundError, StrategistError, ValidationFailedError
from src.strategist.core.logging import get_logger
from src.strategist.models.base import generate_id, utc_now_iso
from src.strategist.schemas.project import (
    UPDATABLE_PROJECT_KEYS,
    ProjectCreate,
    ProjectUpdate,
    empty_data_model,
)
from src.strategist.schemas.validation import format_validation_errors

logger = get_logger(__name__)


def _index_of(items: list[dict], item_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index
    return None


def parse_project_create(project_data: dict) -> ProjectCreate | StorageResult:
    """Parse a create payload, or return the rejection as a result."""
    try:
        return ProjectCreate.model_validate(project_data)
    except ValidationError as e:
        return StorageResult.failure(
            ValidationFailedError("Invalid project data"), format_validation_errors(e)
        )


def parse_project_update(updates: dict) -> dict | StorageResult:
    """Keep only the updatable top-level keys of ``updates`` and check them."""
    candidate = {k: v for k, v in updates.items() if k in UPDATABLE_PROJECT_KEYS}
    try:
        return ProjectUpdate.model_validate(candidate).to_document()
    except ValidationError as e:
        return StorageResult.failure(
            ValidationFailedError("Invalid project update"), format_validation_errors(e)
        )


def new_project_document(payload: ProjectCreate) -> dict[str, Any]:
    """A fresh project document with a generated id (unless supplied) and timestamps."""
    now = utc_now_iso()
    document = payload.to_document()
    document["id"] = payload.id or generate_id()
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


class DocumentStorageAdapter(StorageAdapter):
    """Implements the nested object/field operations on top of project CRUD."""

    async def _authorize_edit(self, project_id: str) -> StrategistError | None:
        """Hook for adapters that gate content edits. None means allowed."""
        return None

    async def _load_data_model(self, project_id: str) -> dict | StorageResult:
        denied = await self._authorize_edit(project_id)
        if denied is not None:
            return StorageResult.failure(denied)

        result = await self.get_project(project_id)
        if result.error is not None:
            return StorageResult.failure(result.error)

        data_model = copy.deepcopy(result.data.get("dataModel") or empty_data_model())
        data_model.setdefault("objects", [])
        data_model.setdefault("associations", [])
        return data_model

    async def _save_data_model(self, project_id: str, data_model: dict) -> StorageResult | None:
        result = await self.update_project(project_id, {"dataModel": data_model})
        if result.error is not None:
            return StorageResult.failure(result.error, result.validation_errors)
        return None

    # ------------------------------------------------------------------
    # Custom objects
    # ------------------------------------------------------------------

    async def add_custom_object(self, project_id: str, object_data: dict) -> StorageResult:
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        now = utc_now_iso()
        new_object = {
            **object_data,
            "id": object_data.get("id") or generate_id(),
            "fields": object_data.get("fields") or [],
            "createdAt": now,
            "updatedAt": now,
        }
        data_model["objects"].append(new_object)

        if failed := await self._save_data_model(project_id, data_model):
            return failed

        logger.info("Custom object added", project_id=project_id, object_id=new_object["id"])
        return StorageResult(data=new_object)

    async def update_custom_object(
        self, project_id: str, object_id: str, updates: dict
    ) -> StorageResult:
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        updated = {
            **data_model["objects"][index],
            **updates,
            "id": object_id,
            "updatedAt": utc_now_iso(),
        }
        data_model["objects"][index] = updated

        if failed := await self._save_data_model(project_id, data_model):
            return failed
        return StorageResult(data=updated)

    async def delete_custom_object(self, project_id: str, object_id: str) -> StorageResult:
        """Remove an object, its fields and every association touching it."""
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        deleted = data_model["objects"].pop(index)
        before = len(data_model["associations"])
        data_model["associations"] = [
            assoc
            for assoc in data_model["associations"]
            if assoc.get("fromObjectId") != object_id and assoc.get("toObjectId") != object_id
        ]

        if failed := await self._save_data_model(project_id, data_model):
            return failed

        logger.info(
            "Custom object deleted",
            project_id=project_id,
            object_id=object_id,
            associations_removed=before - len(data_model["associations"]),
        )
        return StorageResult(data=deleted)

    async def duplicate_custom_object(self, project_id: str, object_id: str) -> StorageResult:
        """Copy an object as ``<name>_copy`` with new ids for it and its fields."""
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        source = data_model["objects"][index]
        now = utc_now_iso()
        duplicate = {
            **copy.deepcopy(source),
            "id": generate_id(),
            "name": f"{source.get('name')}_copy",
            "label": f"{source.get('label')} (Copy)",
            "fields": [
                {**copy.deepcopy(f), "id": generate_id(), "createdAt": now, "updatedAt": now}
                for f in source.get("fields") or []
            ],
        }
        return await self.add_custom_object(project_id, duplicate)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    async def add_field(self, project_id: str, object_id: str, field_data: dict) -> StorageResult:
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        obj = data_model["objects"][index]
        now = utc_now_iso()
        new_field = {
            **field_data,
            "id": field_data.get("id") or generate_id(),
            "createdAt": now,
            "updatedAt": now,
        }
        obj["fields"] = [*(obj.get("fields") or []), new_field]
        obj["updatedAt"] = now

        if failed := await self._save_data_model(project_id, data_model):
            return failed
        return StorageResult(data=new_field)

    async def update_field(
        self, project_id: str, object_id: str, field_id: str, updates: dict
    ) -> StorageResult:
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        obj = data_model["objects"][index]
        fields = obj.get("fields") or []
        field_index = _index_of(fields, field_id)
        if field_index is None:
            return StorageResult.failure(NotFoundError("Field", field_id))

        now = utc_now_iso()
        fields[field_index] = {**fields[field_index], **updates, "id": field_id, "updatedAt": now}
        obj["fields"] = fields
        obj["updatedAt"] = now

        if failed := await self._save_data_model(project_id, data_model):
            return failed
        return StorageResult(data=fields[field_index])

    async def delete_field(self, project_id: str, object_id: str, field_id: str) -> StorageResult:
        data_model = await self._load_data_model(project_id)
        if isinstance(data_model, StorageResult):
            return data_model

        index = _index_of(data_model["objects"], object_id)
        if index is None:
            return StorageResult.failure(NotFoundError("Object", object_id))

        obj = data_model["objects"][index]
        fields = obj.get("fields") or []
        field_index = _index_of(fields, field_id)
        if field_index is None:
            return StorageResult.failure(NotFoundError("Field", field_id))

        deleted = fields.pop(field_index)
        obj["fields"] = fields
        obj["updatedAt"] = utc_now_iso()

        if failed := await self._save_data_model(project_id, data_model):
            return failed
        return StorageResult(data=deleted)
