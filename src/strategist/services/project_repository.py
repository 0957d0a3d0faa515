"""Project repository.

The entry point for every project read and write. It enforces
validate-then-persist ordering and holds the active storage adapter, which can
be swapped at runtime (e.g. from local to remote storage after sign-in).
"""

from src.strategist.adapters.base import StorageAdapter, StorageResult
from src.strategist.core.exceptions import DuplicateNameError, NotFoundError, ValidationFailedError
from src.strategist.core.logging import get_logger
from src.strategist.models.base import generate_id
from src.strategist.schemas.validation import FieldError
from src.strategist.services.validation_service import ValidationService

logger = get_logger(__name__)


class ProjectRepository:
    """Validates intent, then delegates to the active storage adapter.

    Validation failures come back as ``StorageResult(error=..., validation_errors=[...])``
    and never reach the adapter.
    """

    def __init__(self, adapter: StorageAdapter, validator: ValidationService | None = None):
        self.adapter = adapter
        self.validator = validator or ValidationService()

    def set_adapter(self, adapter: StorageAdapter) -> None:
        """Redirect all further calls to another backing store."""
        logger.info(
            "Storage adapter switched",
            previous=type(self.adapter).__name__,
            current=type(adapter).__name__,
        )
        self.adapter = adapter

    def _check_data_model(self, data_model: dict) -> StorageResult | None:
        validation = self.validator.validate_data_model(data_model)
        if not validation.valid:
            return StorageResult.failure(
                ValidationFailedError("Data model validation failed"), validation.errors
            )

        integrity = self.validator.validate_referential_integrity(data_model)
        if not integrity.valid:
            return StorageResult.failure(
                ValidationFailedError("Referential integrity check failed"), integrity.errors
            )
        return None

    async def _find_object(self, project_id: str, object_id: str) -> dict | StorageResult:
        result = await self.adapter.get_project(project_id)
        if result.error is not None:
            return StorageResult.failure(result.error)

        objects = (result.data.get("dataModel") or {}).get("objects") or []
        for obj in objects:
            if obj.get("id") == object_id:
                return obj
        return StorageResult.failure(NotFoundError("Object", object_id))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_all_projects(self) -> StorageResult:
        return await self.adapter.get_all_projects()

    async def get_project(self, project_id: str) -> StorageResult:
        return await self.adapter.get_project(project_id)

    async def create_project(self, project_data: dict) -> StorageResult:
        if project_data.get("dataModel"):
            if rejected := self._check_data_model(project_data["dataModel"]):
                return rejected
        return await self.adapter.create_project(project_data)

    async def update_project(self, project_id: str, updates: dict) -> StorageResult:
        if updates.get("dataModel"):
            if rejected := self._check_data_model(updates["dataModel"]):
                return rejected
        return await self.adapter.update_project(project_id, updates)

    async def delete_project(self, project_id: str) -> StorageResult:
        return await self.adapter.delete_project(project_id)

    # ------------------------------------------------------------------
    # Custom objects
    # ------------------------------------------------------------------

    async def add_custom_object(self, project_id: str, object_data: dict) -> StorageResult:
        """Validate, reject sibling name collisions, then persist.

        A name collision is reported as ``DuplicateNameError`` rather than
        folded into the generic validation failure, even when the name also
        breaks the naming pattern (``Member_Object`` next to ``member_object``).
        An object without an identifier gets a generated one.
        """
        object_data = {**object_data, "id": object_data.get("id") or generate_id()}
        validation = self.validator.validate_custom_object(object_data)
        name_rejected = any(err.field == "name" for err in validation.errors)
        if not validation.valid and not name_rejected:
            return StorageResult.failure(
                ValidationFailedError("Custom object validation failed"), validation.errors
            )

        project = await self.adapter.get_project(project_id)
        if project.error is not None:
            return StorageResult.failure(project.error)

        name = object_data.get("name")
        existing_objects = (project.data.get("dataModel") or {}).get("objects") or []
        if isinstance(name, str) and not self.validator.is_object_name_unique(
            name, object_data.get("id"), existing_objects
        ):
            logger.info("Duplicate object name rejected", project_id=project_id, name=name)
            return StorageResult.failure(
                DuplicateNameError("An object with this name already exists"),
                [FieldError("name", "An object with this name already exists in this project")],
            )

        if not validation.valid:
            return StorageResult.failure(
                ValidationFailedError("Custom object validation failed"), validation.errors
            )

        normalized = self.validator.normalize_date_fields(validation.data)
        return await self.adapter.add_custom_object(project_id, normalized)

    async def update_custom_object(
        self, project_id: str, object_id: str, updates: dict
    ) -> StorageResult:
        return await self.adapter.update_custom_object(project_id, object_id, updates)

    async def delete_custom_object(self, project_id: str, object_id: str) -> StorageResult:
        return await self.adapter.delete_custom_object(project_id, object_id)

    async def duplicate_custom_object(self, project_id: str, object_id: str) -> StorageResult:
        return await self.adapter.duplicate_custom_object(project_id, object_id)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    async def add_field(self, project_id: str, object_id: str, field_data: dict) -> StorageResult:
        obj = await self._find_object(project_id, object_id)
        if isinstance(obj, StorageResult):
            return obj

        field_data = {**field_data, "id": field_data.get("id") or generate_id()}
        validation = self.validator.validate_field(field_data, obj.get("fields") or [])
        if not validation.valid:
            return StorageResult.failure(
                ValidationFailedError("Field validation failed"), validation.errors
            )

        normalized = self.validator.normalize_date_fields(validation.data)
        return await self.adapter.add_field(project_id, object_id, normalized)

    async def update_field(
        self, project_id: str, object_id: str, field_id: str, updates: dict
    ) -> StorageResult:
        """Merge ``updates`` onto the stored field and validate the result as a whole."""
        obj = await self._find_object(project_id, object_id)
        if isinstance(obj, StorageResult):
            return obj

        existing_fields = obj.get("fields") or []
        current = next((f for f in existing_fields if f.get("id") == field_id), None)
        if current is None:
            return StorageResult.failure(NotFoundError("Field", field_id))

        merged = {**current, **updates, "id": field_id}
        validation = self.validator.validate_field(merged, existing_fields)
        if not validation.valid:
            return StorageResult.failure(
                ValidationFailedError("Field validation failed"), validation.errors
            )

        normalized = self.validator.normalize_date_fields(validation.data)
        return await self.adapter.update_field(project_id, object_id, field_id, normalized)

    async def delete_field(self, project_id: str, object_id: str, field_id: str) -> StorageResult:
        return await self.adapter.delete_field(project_id, object_id, field_id)
