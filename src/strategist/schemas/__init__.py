from src.strategist.schemas.custom_object import (
    Association,
    CustomField,
    CustomObject,
    EnumerationOption,
    generate_api_name,
)
from src.strategist.schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    empty_data_model,
    empty_tags,
)
from src.strategist.schemas.tag import (
    ActivityRules,
    AssociationRules,
    PropertyRules,
    QualificationRules,
    ScoreRules,
    Tag,
    TagLibrary,
)
from src.strategist.schemas.validation import (
    ComplexityAnalysis,
    ErrorGroup,
    FieldError,
    TagValidationContext,
    ValidationResult,
)

__all__ = [
    # Data model
    "Association",
    "CustomField",
    "CustomObject",
    "EnumerationOption",
    "generate_api_name",
    # Project
    "ProjectCreate",
    "ProjectUpdate",
    "empty_data_model",
    "empty_tags",
    # Tags
    "ActivityRules",
    "AssociationRules",
    "PropertyRules",
    "QualificationRules",
    "ScoreRules",
    "Tag",
    "TagLibrary",
    # Validation results
    "ComplexityAnalysis",
    "ErrorGroup",
    "FieldError",
    "TagValidationContext",
    "ValidationResult",
]
