"""Result types shared by the validation service, repository and adapters."""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import ValidationError


@dataclass(frozen=True)
class FieldError:
    """One rejected value. ``field`` is a dotted path into the candidate."""

    field: str
    message: str


@dataclass(frozen=True)
class ErrorGroup:
    """All errors for one entity of a collection, e.g. ``objects[2]``."""

    path: str
    errors: list[FieldError]
    object_name: str | None = None
    tag_name: str | None = None


@dataclass
class ValidationResult:
    valid: bool
    data: Any = None
    errors: list[Any] = field(default_factory=list)

    @classmethod
    def ok(cls, data: Any) -> "ValidationResult":
        return cls(valid=True, data=data, errors=[])

    @classmethod
    def failed(cls, errors: list) -> "ValidationResult":
        return cls(valid=False, data=None, errors=list(errors))


@dataclass
class TagValidationContext:
    """Sibling data a tag is checked against. Either list may be omitted."""

    existing_tags: list[dict] | None = None
    available_objects: list[dict] | None = None


ComplexityLevel = Literal["none", "simple", "moderate", "complex"]


@dataclass(frozen=True)
class ComplexityAnalysis:
    score: int
    level: ComplexityLevel
    warnings: list[str]


def format_validation_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten pydantic errors into ``{field, message}`` pairs.

    ``field`` joins the error location with dots, e.g. ``fields.0.name``.
    Messages raised from our own validators are reported without pydantic's
    ``Value error, `` prefix.
    """
    errors = []
    for err in exc.errors():
        field_path = ".".join(str(part) for part in err["loc"]) or "unknown"
        ctx_error = (err.get("ctx") or {}).get("error")
        if err["type"] == "value_error" and ctx_error is not None:
            message = str(ctx_error)
        else:
            message = err["msg"]
        errors.append(FieldError(field=field_path, message=message))
    return errors
