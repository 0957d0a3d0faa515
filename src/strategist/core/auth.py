"""Session user resolution.

The sign-in screens live outside this package; the storage layer only needs a
way to ask "who is signed in right now?". ``AuthProvider`` is that contract and
``SessionAuthProvider`` is the in-process implementation used by the client
state layer and by tests.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from src.strategist.core.logging import bind_user_context, clear_log_context, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """The authenticated user behind the current session."""

    id: str
    email: str | None = None


@runtime_checkable
class AuthProvider(Protocol):
    """Resolves the user bound to the current session, or None."""

    async def get_current_session_user(self) -> SessionUser | None: ...


class SessionAuthProvider:
    """Holds a single signed-in user for the lifetime of a client session."""

    def __init__(self, user: SessionUser | None = None):
        self._user = user

    async def get_current_session_user(self) -> SessionUser | None:
        return self._user

    def sign_in(self, user_id: str, email: str | None = None) -> SessionUser:
        self._user = SessionUser(id=str(user_id), email=email)
        bind_user_context(self._user.id, email)
        logger.info("User signed in")
        return self._user

    def sign_out(self) -> None:
        if self._user is not None:
            logger.info("User signed out")
        self._user = None
        clear_log_context()
