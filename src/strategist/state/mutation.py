"""Optimistic mutation lifecycle.

A ``PendingMutation`` applies an action to local state before the storage
call finishes, then either commits (optionally reconciling with the stored
value) or rolls back by dispatching the inverse action built from a
deep-copied pre-image::

    IDLE --begin--> PENDING --commit--> COMMITTED
                            --rollback--> ROLLED_BACK
"""

import copy
from collections.abc import Callable
from enum import Enum
from typing import Any

from src.strategist.core.exceptions import StrategistError
from src.strategist.core.logging import get_logger
from src.strategist.state.reducer import Action

logger = get_logger(__name__)

Dispatch = Callable[[Action], Any]


class MutationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


_ALLOWED_TRANSITIONS = {
    MutationState.IDLE: {MutationState.PENDING},
    MutationState.PENDING: {MutationState.COMMITTED, MutationState.ROLLED_BACK},
    MutationState.COMMITTED: set(),
    MutationState.ROLLED_BACK: set(),
}


class InvalidTransitionError(StrategistError):
    """A mutation was moved out of order (e.g. committed twice)."""

    def __init__(self, current: MutationState, target: MutationState):
        super().__init__(f"Cannot move mutation from {current.value} to {target.value}")
        self.current = current
        self.target = target


class PendingMutation:
    """One optimistic change to local state.

    Args:
        name: Label used in logs, e.g. ``"add_field"``.
        apply: The optimistic action, dispatched by ``begin``.
        revert: Builds the inverse action from the pre-image. May return None
            when there is nothing to undo.
        pre_image: The state slice the action overwrites. Stored as a deep copy.
    """

    def __init__(
        self,
        name: str,
        apply: Action,
        revert: Callable[[Any], Action | None],
        pre_image: Any = None,
    ):
        self.name = name
        self.apply = apply
        self.revert = revert
        self.pre_image = copy.deepcopy(pre_image)
        self.state = MutationState.IDLE

    def _transition(self, target: MutationState) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)
        self.state = target

    def begin(self, dispatch: Dispatch) -> None:
        self._transition(MutationState.PENDING)
        dispatch(self.apply)

    def commit(self, dispatch: Dispatch, reconcile: Action | None = None) -> None:
        """Keep the optimistic change, replacing it with the stored value if given."""
        self._transition(MutationState.COMMITTED)
        if reconcile is not None:
            dispatch(reconcile)

    def rollback(self, dispatch: Dispatch) -> None:
        self._transition(MutationState.ROLLED_BACK)
        inverse = self.revert(self.pre_image)
        logger.info("Optimistic update rolled back", mutation=self.name)
        if inverse is not None:
            dispatch(inverse)
