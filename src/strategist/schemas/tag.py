"""Schemas for the Tag Library.

Tags classify members (end customers) so journeys can be orchestrated from
properties, activities, associations and scores. A tag's qualification rules
are a discriminated union on ``ruleType``; each variant only accepts its own
condition shape.
"""

import re
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, field_validator

from src.strategist.schemas.common import (
    HEX_COLOR_PATTERN,
    TAG_NAME_PATTERN,
    DocumentModel,
    now_utc,
)

_TAG_NAME_RE = re.compile(TAG_NAME_PATTERN)

Number = int | float

PropertyOperator = Literal[
    "equals",
    "not_equals",
    "greater_than",
    "greater_than_or_equal",
    "less_than",
    "less_than_or_equal",
    "contains",
    "not_contains",
    "starts_with",
    "ends_with",
    "in",
    "not_in",
    "between",
    "is_known",
    "is_unknown",
]
ComparisonOperator = Literal[
    "equals",
    "not_equals",
    "greater_than",
    "greater_than_or_equal",
    "less_than",
    "less_than_or_equal",
]
ScoreOperator = Literal[
    "equals",
    "not_equals",
    "greater_than",
    "greater_than_or_equal",
    "less_than",
    "less_than_or_equal",
    "between",
]
TagCategory = Literal["origin", "behavior", "opportunity"]
TagBehavior = Literal["set_once", "dynamic", "evolving"]
RuleLogic = Literal["AND", "OR"]


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


class PropertyCondition(DocumentModel):
    """Compare a field of a data-model object against a value."""

    id: str | None = None
    object: str = Field(min_length=1)
    field: str = Field(min_length=1)
    operator: PropertyOperator
    value: Any = None


class ActivityCondition(DocumentModel):
    """Whether (or how often) an event occurred within a timeframe."""

    event_type: str = Field(min_length=1)
    occurrence: Literal["has_occurred", "has_not_occurred", "count"]
    operator: ComparisonOperator | None = None
    value: Number | None = None
    timeframe: Number | None = Field(default=None, gt=0)  # days
    filters: list[PropertyCondition] | None = None


class AssociationCondition(DocumentModel):
    """Whether the member has related records of a given kind."""

    association_type: str = Field(min_length=1)
    related_object: str = Field(min_length=1)
    condition_type: Literal["has_any", "has_none", "count"]
    operator: ComparisonOperator | None = None
    value: Number | None = None
    nested_filters: list[PropertyCondition] | None = None


class Hysteresis(DocumentModel):
    """Separate add/remove thresholds so scores hovering at a boundary don't flap."""

    add_threshold: Number
    remove_threshold: Number


class ScoreCondition(DocumentModel):
    """Compare a computed score against a threshold."""

    score_field: str = Field(min_length=1)
    operator: ScoreOperator
    threshold: Number | None = None
    value: Number | list[Number] | None = None
    hysteresis: Hysteresis | None = None


# ---------------------------------------------------------------------------
# Rule groups (discriminated on ruleType)
# ---------------------------------------------------------------------------


class _RuleGroup(DocumentModel):
    logic: RuleLogic = "AND"

    @field_validator("conditions", check_fields=False)
    @classmethod
    def validate_conditions(cls, v: list) -> list:
        if not v:
            raise ValueError("At least one condition is required")
        return v


class PropertyRules(_RuleGroup):
    rule_type: Literal["property"]
    conditions: list[PropertyCondition]


class ActivityRules(_RuleGroup):
    rule_type: Literal["activity"]
    conditions: list[ActivityCondition]


class AssociationRules(_RuleGroup):
    rule_type: Literal["association"]
    conditions: list[AssociationCondition]


class ScoreRules(_RuleGroup):
    rule_type: Literal["score"]
    conditions: list[ScoreCondition]


QualificationRules = Annotated[
    PropertyRules | ActivityRules | AssociationRules | ScoreRules,
    Field(discriminator="rule_type"),
]
qualification_rules_adapter: TypeAdapter[QualificationRules] = TypeAdapter(QualificationRules)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class Tag(DocumentModel):
    """A named, rule-based member classifier."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=2, max_length=100)
    category: TagCategory
    description: str = Field(min_length=10, max_length=500)
    icon: str = Field(min_length=1)
    color: str = Field(pattern=HEX_COLOR_PATTERN)
    behavior: TagBehavior
    is_permanent: bool
    qualification_rules: QualificationRules
    dependencies: list[str] = Field(default_factory=list)
    is_custom: bool = False
    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not _TAG_NAME_RE.match(v):
            raise ValueError(
                "Tag name must start with uppercase letter and contain only "
                "letters, numbers, and underscores"
            )
        return v


class TagCategoryCounts(DocumentModel):
    origin: int = Field(ge=0)
    behavior: int = Field(ge=0)
    opportunity: int = Field(ge=0)


class TagLibraryMetadata(DocumentModel):
    version: str
    total_tags: int = Field(gt=0)
    categories: TagCategoryCounts
    last_updated: str


class TagLibrary(DocumentModel):
    """A full pre-built tag library as shipped with the application."""

    tags: list[Tag]
    metadata: TagLibraryMetadata
