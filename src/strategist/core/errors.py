"""User-facing error messages.

Maps technical error text to generic copy so that schema details, driver
messages and identifiers never reach the UI.
"""

from src.strategist.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateNameError,
)
from src.strategist.core.logging import get_logger

logger = get_logger(__name__)

MSG_UNEXPECTED = "An unexpected error occurred. Please try again."
MSG_NETWORK = "Network error. Please check your connection and try again."
MSG_INVALID = "Invalid input. Please check your data and try again."
MSG_PERMISSION = "You do not have permission to perform this action."
MSG_DUPLICATE = "This item already exists. Please modify your input."
MSG_TIMEOUT = "The request took too long. Please try again."
MSG_SERVER = "A server error occurred. Please try again or contact support."
MSG_SESSION = "Your session has expired. Please sign in again."
MSG_DEFAULT = "An error occurred while saving. Please try again or contact support."

# Order matters: the first matching group wins.
_SUBSTRING_RULES: list[tuple[tuple[str, ...], str]] = [
    (("network", "fetch", "connection"), MSG_NETWORK),
    (("validation", "invalid", "required"), MSG_INVALID),
    (("permission", "unauthorized", "forbidden"), MSG_PERMISSION),
    (("duplicate", "already exists", "unique"), MSG_DUPLICATE),
    (("timeout", "timed out"), MSG_TIMEOUT),
    (("database", "server", "internal"), MSG_SERVER),
]


def to_user_message(error: BaseException | str | None) -> str:
    """Convert an error (or raw message) to a message safe to display."""
    if error is None:
        return MSG_UNEXPECTED
    if isinstance(error, AuthenticationError):
        return MSG_SESSION
    if isinstance(error, AuthorizationError):
        return MSG_PERMISSION
    if isinstance(error, DuplicateNameError):
        return MSG_DUPLICATE
    if not isinstance(error, (BaseException, str)):
        return MSG_UNEXPECTED

    message = str(error).lower()
    for needles, friendly in _SUBSTRING_RULES:
        if any(needle in message for needle in needles):
            return friendly
    return MSG_DEFAULT


def log_error(component: str, action: str, error: BaseException | str) -> None:
    """Log the full technical error alongside where it happened."""
    logger.warning(
        "Operation failed",
        component=component,
        action=action,
        error=str(error),
        error_type=type(error).__name__,
    )
