"""Storage adapter contract.

Every backing store implements the same twelve coroutines. None of them raise
for ordinary failures (not found, denied, transport errors); they return a
``StorageResult`` whose ``error`` is set instead.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from src.strategist.core.exceptions import StrategistError


@dataclass
class StorageResult:
    """Outcome of a storage or repository call.

    Attributes:
        data: The stored document (or list of documents) on success.
        error: The failure, if any. ``data`` is None whenever this is set.
        validation_errors: ``FieldError``/``ErrorGroup`` entries for rejected input.
        warnings: Non-fatal anomalies, e.g. ``{"collection": "custom", "count": 2}``
            when malformed tags were dropped on read.
    """

    data: Any = None
    error: StrategistError | None = None
    validation_errors: list[Any] = field(default_factory=list)
    warnings: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls, error: StrategistError, validation_errors: list[Any] | None = None
    ) -> "StorageResult":
        return cls(data=None, error=error, validation_errors=list(validation_errors or []))


class StorageAdapter(ABC):
    """CRUD for projects plus nested CRUD for custom objects and their fields."""

    @abstractmethod
    async def get_all_projects(self) -> StorageResult: ...

    @abstractmethod
    async def get_project(self, project_id: str) -> StorageResult: ...

    @abstractmethod
    async def create_project(self, project_data: dict) -> StorageResult: ...

    @abstractmethod
    async def update_project(self, project_id: str, updates: dict) -> StorageResult: ...

    @abstractmethod
    async def delete_project(self, project_id: str) -> StorageResult: ...

    @abstractmethod
    async def add_custom_object(self, project_id: str, object_data: dict) -> StorageResult: ...

    @abstractmethod
    async def update_custom_object(
        self, project_id: str, object_id: str, updates: dict
    ) -> StorageResult: ...

    @abstractmethod
    async def delete_custom_object(self, project_id: str, object_id: str) -> StorageResult: ...

    @abstractmethod
    async def duplicate_custom_object(self, project_id: str, object_id: str) -> StorageResult: ...

    @abstractmethod
    async def add_field(self, project_id: str, object_id: str, field_data: dict) -> StorageResult: ...

    @abstractmethod
    async def update_field(
        self, project_id: str, object_id: str, field_id: str, updates: dict
    ) -> StorageResult: ...

    @abstractmethod
    async def delete_field(self, project_id: str, object_id: str, field_id: str) -> StorageResult: ...
