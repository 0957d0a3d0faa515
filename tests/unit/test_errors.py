"""Tests for user-facing error messages."""

import pytest

from src.strategist.core import errors
from src.strategist.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateNameError,
    NotFoundError,
    StorageError,
    ValidationFailedError,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (None, errors.MSG_UNEXPECTED),
        (AuthenticationError("No active session. Please log in."), errors.MSG_SESSION),
        (AuthorizationError("Permission denied: owner role required, you are editor"), errors.MSG_PERMISSION),
        (DuplicateNameError("An object with this name already exists"), errors.MSG_DUPLICATE),
        (ValidationFailedError("Field validation failed"), errors.MSG_INVALID),
        (StorageError("Failed to fetch"), errors.MSG_NETWORK),
        (StorageError("Database error during update project"), errors.MSG_SERVER),
        ("duplicate key value violates unique constraint", errors.MSG_DUPLICATE),
        ("Request timed out", errors.MSG_TIMEOUT),
        ("Forbidden", errors.MSG_PERMISSION),
        (NotFoundError("Project", "p1"), errors.MSG_DEFAULT),
        (42, errors.MSG_UNEXPECTED),
    ],
)
def test_to_user_message(error, expected):
    assert errors.to_user_message(error) == expected


def test_technical_detail_never_leaks():
    message = errors.to_user_message(
        StorageError('relation "implementations" does not exist at character 15')
    )

    assert "implementations" not in message


def test_first_matching_rule_wins():
    # "network" precedes "permission" in the rule order
    assert errors.to_user_message("network permission problem") == errors.MSG_NETWORK
