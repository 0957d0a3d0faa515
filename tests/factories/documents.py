"""Factories for data-model, tag and project documents."""

from itertools import count

from polyfactory import Use

from src.strategist.schemas.custom_object import (
    Association,
    CustomField,
    CustomObject,
    EnumerationOption,
)
from src.strategist.schemas.project import ProjectCreate, empty_data_model, empty_tags
from src.strategist.schemas.tag import PropertyCondition, PropertyRules, Tag
from tests.factories.base import BaseFactory, generate_id

_sequence = count(1)


def _next(prefix: str) -> str:
    return f"{prefix}_{next(_sequence)}"


class CustomFieldFactory(BaseFactory):
    """Factory for generating text fields. Use ``enumeration()`` for choice fields."""

    __model__ = CustomField

    id = Use(generate_id)
    name = Use(_next, "field")
    label = "Test Field"
    description = ""
    data_type = "text"
    field_type = "standard"
    required = False
    unique = False
    indexed = False
    default_value = None
    options = None
    calculation = None

    @classmethod
    def enumeration(cls, **kwargs):
        """Create an enumeration field with two options."""
        options = [
            EnumerationOption(label="Active", value="active", is_default=True),
            EnumerationOption(label="Closed", value="closed"),
        ]
        return cls.build(data_type="enumeration", options=options, **kwargs)


class CustomObjectFactory(BaseFactory):
    """Factory for generating custom objects with no fields or associations."""

    __model__ = CustomObject

    id = Use(generate_id)
    name = Use(_next, "object")
    label = "Test Object"
    description = ""
    api_name = Use(lambda: f"p_client_{_next('object')}")
    icon = "Database"
    fields = Use(list)
    associations = Use(list)
    is_template = False
    template_id = None


class AssociationFactory(BaseFactory):
    """Factory for associations. ``from_object_id``/``to_object_id`` must be set explicitly."""

    __model__ = Association

    id = Use(generate_id)
    from_object_id = Use(generate_id)
    to_object_id = Use(generate_id)
    type = "one_to_many"
    label = "Has"


class TagFactory(BaseFactory):
    """Factory for custom tags with a single property rule on ``member.status``."""

    __model__ = Tag

    id = Use(lambda: _next("tag"))
    name = Use(_next, "Tag")
    category = "behavior"
    description = "Members matching a test rule"
    icon = "Tag"
    color = "#1D4ED8"
    behavior = "dynamic"
    is_permanent = False
    qualification_rules = Use(
        lambda: PropertyRules(
            rule_type="property",
            conditions=[
                PropertyCondition(object="member", field="status", operator="equals", value="active")
            ],
        )
    )
    dependencies = Use(list)
    is_custom = True


class ProjectCreateFactory(BaseFactory):
    """Factory for project create payloads with empty nested collections."""

    __model__ = ProjectCreate

    id = None
    name = Use(lambda: f"Test Project {_next('p')}")
    status = "draft"
    client_profile = Use(dict)
    data_model = Use(empty_data_model)
    tags = Use(empty_tags)
    journeys = Use(list)
