"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import CustomObjectFactory, TagFactory, ...
"""

from tests.factories.base import BaseFactory, generate_id, utc_now_iso
from tests.factories.documents import (
    AssociationFactory,
    CustomFieldFactory,
    CustomObjectFactory,
    ProjectCreateFactory,
    TagFactory,
)
from tests.factories.users import OTHER_ID, OWNER, OWNER_ID

__all__ = [
    # Base
    "BaseFactory",
    "generate_id",
    "utc_now_iso",
    # Data model
    "AssociationFactory",
    "CustomFieldFactory",
    "CustomObjectFactory",
    # Tags
    "TagFactory",
    # Projects
    "ProjectCreateFactory",
    # Users
    "OWNER",
    "OWNER_ID",
    "OTHER_ID",
]
