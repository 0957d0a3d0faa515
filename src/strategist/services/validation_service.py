"""Validation service.

The single place where "is this data acceptable to persist" is decided. Every
check combines a structural pass (pydantic schema) with the contextual rules a
schema cannot see: sibling names, cross-references and the tag graph.

Ordinary rejections are returned as ``ValidationResult(valid=False, ...)``.
Only exceptions other than ``pydantic.ValidationError`` propagate.
"""

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from src.strategist.core.logging import get_logger
from src.strategist.models.base import to_iso
from src.strategist.schemas.custom_object import (
    Association,
    CustomField,
    CustomObject,
    normalize_object_name,
)
from src.strategist.schemas.tag import (
    QualificationRules,
    Tag,
    TagLibrary,
    qualification_rules_adapter,
)
from src.strategist.schemas.validation import (
    ComplexityAnalysis,
    ErrorGroup,
    FieldError,
    TagValidationContext,
    ValidationResult,
    format_validation_errors,
)
from src.strategist.services import tag_rules

logger = get_logger(__name__)

_TIMESTAMP_KEYS = ("createdAt", "updatedAt")
_NESTED_ENTITY_KEYS = ("fields", "associations")


def _as_document(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    return value


class ValidationService:
    """Structural and business-rule validation for data-model entities and tags."""

    # ------------------------------------------------------------------
    # Data model
    # ------------------------------------------------------------------

    def validate_custom_object(self, candidate: Any) -> ValidationResult:
        try:
            obj = CustomObject.model_validate(_as_document(candidate))
        except ValidationError as e:
            return ValidationResult.failed(format_validation_errors(e))
        return ValidationResult.ok(obj.to_document())

    def validate_field(self, candidate: Any, existing_fields: Iterable[dict] = ()) -> ValidationResult:
        """Validate a field against its siblings.

        A sibling with the same identifier is the field itself (an update) and
        never counts as a duplicate.
        """
        try:
            field = CustomField.model_validate(_as_document(candidate))
        except ValidationError as e:
            return ValidationResult.failed(format_validation_errors(e))

        if not self.is_field_name_unique(field.name, field.id, existing_fields):
            return ValidationResult.failed(
                [FieldError("name", "A field with this name already exists in this object")]
            )

        if field.data_type == "enumeration":
            if not field.options:
                return ValidationResult.failed(
                    [FieldError("options", "Enumeration fields must have at least one option")]
                )
            if any(not opt.label or not opt.value for opt in field.options):
                return ValidationResult.failed(
                    [FieldError("options", "All options must have both a label and value")]
                )

        return ValidationResult.ok(field.to_document())

    def validate_association(self, candidate: Any) -> ValidationResult:
        try:
            association = Association.model_validate(_as_document(candidate))
        except ValidationError as e:
            return ValidationResult.failed(format_validation_errors(e))
        return ValidationResult.ok(association.to_document())

    def validate_data_model(self, data_model: dict) -> ValidationResult:
        """Validate every object and association, one error group per failing entity."""
        groups: list[ErrorGroup] = []
        objects: list[dict] = []
        associations: list[dict] = []

        for index, obj in enumerate(data_model.get("objects") or []):
            result = self.validate_custom_object(obj)
            if result.valid:
                objects.append(result.data)
                continue
            display = obj if isinstance(obj, dict) else {}
            groups.append(
                ErrorGroup(
                    path=f"objects[{index}]",
                    object_name=display.get("label") or display.get("name") or "Unknown",
                    errors=result.errors,
                )
            )

        for index, association in enumerate(data_model.get("associations") or []):
            result = self.validate_association(association)
            if result.valid:
                associations.append(result.data)
            else:
                groups.append(ErrorGroup(path=f"associations[{index}]", errors=result.errors))

        if groups:
            logger.debug("Data model validation failed", failing_entities=len(groups))
            return ValidationResult.failed(groups)

        return ValidationResult.ok({"objects": objects, "associations": associations})

    def validate_referential_integrity(self, data_model: dict) -> ValidationResult:
        """Every association end must name an object of the same data model."""
        object_ids = {obj.get("id") for obj in data_model.get("objects") or []}
        errors: list[FieldError] = []

        for index, association in enumerate(data_model.get("associations") or []):
            for end in ("fromObjectId", "toObjectId"):
                ref = association.get(end)
                if ref not in object_ids:
                    errors.append(
                        FieldError(
                            f"associations[{index}].{end}",
                            f"Association references non-existent object: {ref}",
                        )
                    )

        return ValidationResult(valid=not errors, data=None, errors=errors)

    def normalize_date_fields(self, entity: dict) -> dict:
        """Serialize native timestamps to ISO-8601 strings.

        Recurses through nested ``fields`` and ``associations``. Strings are
        left as they are, so applying this twice changes nothing.
        """
        normalized = dict(entity)

        for key in _TIMESTAMP_KEYS:
            value = normalized.get(key)
            if isinstance(value, datetime):
                normalized[key] = to_iso(value)
            elif isinstance(value, date):
                normalized[key] = value.isoformat()

        for key in _NESTED_ENTITY_KEYS:
            nested = normalized.get(key)
            if isinstance(nested, list):
                normalized[key] = [
                    self.normalize_date_fields(item) if isinstance(item, dict) else item
                    for item in nested
                ]

        return normalized

    # ------------------------------------------------------------------
    # Uniqueness predicates
    # ------------------------------------------------------------------

    def is_field_name_unique(
        self, field_name: str, field_id: str | None, existing_fields: Iterable[dict] = ()
    ) -> bool:
        normalized = field_name.lower()
        return not any(
            f.get("id") != field_id and str(f.get("name", "")).lower() == normalized
            for f in existing_fields
        )

    def is_object_name_unique(
        self, object_name: str, object_id: str | None, existing_objects: Iterable[dict] = ()
    ) -> bool:
        normalized = normalize_object_name(object_name)
        return not any(
            obj.get("id") != object_id and str(obj.get("name", "")).lower() == normalized
            for obj in existing_objects
        )

    def is_tag_name_unique(
        self, tag_name: str, tag_id: str | None, existing_tags: Iterable[dict] = ()
    ) -> bool:
        normalized = tag_name.lower()
        return not any(
            tag.get("id") != tag_id and str(tag.get("name", "")).lower() == normalized
            for tag in existing_tags
        )

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def validate_tag(
        self, candidate: Any, context: TagValidationContext | None = None
    ) -> ValidationResult:
        """Schema-check a tag, then apply name, rule and dependency checks.

        Checks that need context are skipped when the context omits their data.
        """
        context = context or TagValidationContext()
        try:
            tag = Tag.model_validate(_as_document(candidate))
        except ValidationError as e:
            return ValidationResult.failed(format_validation_errors(e))

        document = tag.to_document()
        errors: list[FieldError] = []

        if context.existing_tags is not None:
            errors.extend(
                FieldError("name", msg)
                for msg in tag_rules.validate_tag_name(tag.name, context.existing_tags, tag.id)
            )

        if context.available_objects is not None:
            errors.extend(
                FieldError("qualificationRules", msg)
                for msg in tag_rules.validate_qualification_rules(
                    tag.qualification_rules, context.available_objects
                )
            )

        if tag.dependencies and context.existing_tags is not None:
            # The candidate's own edges take part in the graph even before it is stored
            graph = [t for t in context.existing_tags if t.get("id") != tag.id]
            graph.append(document)
            errors.extend(
                FieldError("dependencies", msg)
                for msg in tag_rules.validate_tag_dependencies(tag.id, tag.dependencies, graph)
            )

        if errors:
            return ValidationResult.failed(errors)
        return ValidationResult.ok(document)

    def validate_tag_library(self, library: Any) -> ValidationResult:
        try:
            validated = TagLibrary.model_validate(_as_document(library))
        except ValidationError as e:
            return ValidationResult.failed(format_validation_errors(e))
        return ValidationResult.ok(validated.to_document())

    def validate_all_tags(
        self, tags: list[dict], available_objects: list[dict] | None = None
    ) -> ValidationResult:
        """Validate each tag of a collection against the rest of that collection."""
        context = TagValidationContext(existing_tags=tags, available_objects=available_objects or [])
        groups: list[ErrorGroup] = []
        validated: list[dict] = []

        for index, tag in enumerate(tags):
            result = self.validate_tag(tag, context)
            if result.valid:
                validated.append(result.data)
            else:
                name = tag.get("name") if isinstance(tag, dict) else None
                groups.append(
                    ErrorGroup(path=f"tags[{index}]", tag_name=name or "Unknown", errors=result.errors)
                )

        if groups:
            return ValidationResult.failed(groups)
        return ValidationResult.ok(validated)

    def analyze_tag_complexity(self, rules: QualificationRules | dict | None) -> ComplexityAnalysis:
        if isinstance(rules, dict):
            try:
                rules = qualification_rules_adapter.validate_python(rules)
            except ValidationError:
                return ComplexityAnalysis(score=0, level="none", warnings=[])
        return tag_rules.analyze_rule_complexity(rules)

    def validate_color(self, color: str | None) -> ValidationResult:
        errors = [FieldError("color", msg) for msg in tag_rules.validate_tag_color(color)]
        return ValidationResult(valid=not errors, data=None, errors=errors)

