"""Business rules for tags that a schema cannot express on its own.

Each helper returns a list of human-readable messages (empty when the input is
acceptable) so the same checks back both live form feedback and the
``ValidationService`` pre-write path.
"""

import re
from collections.abc import Iterable
from typing import assert_never

from src.strategist.schemas.common import HEX_COLOR_PATTERN
from src.strategist.schemas.tag import (
    ActivityRules,
    AssociationRules,
    PropertyRules,
    QualificationRules,
    ScoreRules,
)
from src.strategist.schemas.validation import ComplexityAnalysis

_HEX_COLOR_RE = re.compile(HEX_COLOR_PATTERN)

COMPLEX_THRESHOLD = 10
MODERATE_THRESHOLD = 5
MAX_NESTED_FILTERS = 5


def validate_tag_name(
    name: str | None,
    existing_tags: Iterable[dict] = (),
    current_tag_id: str | None = None,
) -> list[str]:
    """Length and case-insensitive uniqueness, ignoring the tag being edited."""
    errors: list[str] = []

    if not name or len(name.strip()) < 2:
        errors.append("Tag name must be at least 2 characters")

    if name and len(name) > 100:
        errors.append("Tag name must be less than 100 characters")

    if name:
        normalized = name.lower()
        if any(
            tag.get("id") != current_tag_id and str(tag.get("name", "")).lower() == normalized
            for tag in existing_tags
        ):
            errors.append("A tag with this name already exists")

    return errors


def validate_tag_color(color: str | None) -> list[str]:
    errors: list[str] = []

    if not color:
        errors.append("Color is required")
    elif not _HEX_COLOR_RE.match(color):
        errors.append("Color must be a valid hex color code (e.g., #1D4ED8)")

    return errors


def validate_qualification_rules(
    rules: QualificationRules | None,
    available_objects: Iterable[dict] = (),
) -> list[str]:
    """Check that property conditions point at objects and fields that exist.

    Objects and fields are matched by their internal ``name``.
    """
    if rules is None or not rules.conditions:
        return ["At least one qualification rule condition is required"]

    errors: list[str] = []
    match rules:
        case PropertyRules():
            objects = {obj.get("name"): obj for obj in available_objects}
            for index, condition in enumerate(rules.conditions, start=1):
                obj = objects.get(condition.object)
                if obj is None:
                    errors.append(
                        f'Condition {index}: Object "{condition.object}" does not exist in data model'
                    )
                    continue
                field_names = {f.get("name") for f in obj.get("fields") or []}
                if condition.field not in field_names:
                    errors.append(
                        f'Condition {index}: Field "{condition.field}" does not exist '
                        f'in object "{condition.object}"'
                    )
        case ActivityRules() | AssociationRules() | ScoreRules():
            # Event types, association types and score fields are not modeled
            pass
        case _:
            assert_never(rules)

    return errors


def validate_tag_dependencies(
    tag_id: str,
    dependencies: Iterable[str] | None,
    all_tags: Iterable[dict] = (),
) -> list[str]:
    """Dependencies must exist and must not lead back into a cycle."""
    dependencies = list(dependencies or [])
    if not dependencies:
        return []

    tags_by_id = {tag.get("id"): tag for tag in all_tags}

    def has_cycle(current_id: str, visited: frozenset[str]) -> bool:
        if current_id in visited:
            return True
        current = tags_by_id.get(current_id)
        if current is None:
            return False
        # Each branch gets its own copy of the path
        branch = visited | {current_id}
        return any(has_cycle(dep_id, branch) for dep_id in current.get("dependencies") or [])

    errors: list[str] = []
    for dep_id in dependencies:
        dependency = tags_by_id.get(dep_id)
        if dependency is None:
            errors.append(f'Dependency tag "{dep_id}" does not exist')
        elif has_cycle(dep_id, frozenset()):
            errors.append(f'Circular dependency detected with tag "{dependency.get("name")}"')

    return errors


def _condition_weight(rules: QualificationRules) -> tuple[int, list[str]]:
    score = len(rules.conditions)
    warnings: list[str] = []

    match rules:
        case AssociationRules():
            for condition in rules.conditions:
                nested = condition.nested_filters or []
                score += len(nested) * 2
                if len(nested) > MAX_NESTED_FILTERS:
                    warnings.append("Very deep nesting may impact performance")
        case ActivityRules():
            for condition in rules.conditions:
                score += len(condition.filters or [])
        case PropertyRules() | ScoreRules():
            pass
        case _:
            assert_never(rules)

    return score, warnings


def analyze_rule_complexity(rules: QualificationRules | None) -> ComplexityAnalysis:
    """Score a rule group: one per condition, two per nested filter, one per filter."""
    if rules is None or not rules.conditions:
        return ComplexityAnalysis(score=0, level="none", warnings=[])

    score, warnings = _condition_weight(rules)

    if score > COMPLEX_THRESHOLD:
        warnings.append("Consider breaking this into multiple tags")
        return ComplexityAnalysis(score=score, level="complex", warnings=warnings)
    if score > MODERATE_THRESHOLD:
        return ComplexityAnalysis(score=score, level="moderate", warnings=warnings)
    return ComplexityAnalysis(score=score, level="simple", warnings=warnings)
