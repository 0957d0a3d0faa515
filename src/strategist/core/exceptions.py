"""Error taxonomy for the persistence layer.

Adapters and the repository never raise these for ordinary failures; they
return them inside a ``StorageResult`` so callers can branch on ``result.error``.
Anything outside this hierarchy is a programming error and propagates.
"""


class StrategistError(Exception):
    """Base class for all expected persistence-layer failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(StrategistError):
    """Structural (schema) or business-rule rejection."""


class DuplicateNameError(ValidationFailedError):
    """A sibling entity already uses this name (case-insensitive)."""


class NotFoundError(StrategistError):
    """An identifier did not resolve to a stored entity."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class AuthenticationError(StrategistError):
    """No signed-in user for an operation that requires one."""


class AuthorizationError(StrategistError):
    """The signed-in user's role does not allow the operation."""


class StorageError(StrategistError):
    """Transport or storage failure (network, quota, driver error)."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
