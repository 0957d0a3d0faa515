from src.strategist.state.autosave import AutoSaver
from src.strategist.state.mutation import InvalidTransitionError, MutationState, PendingMutation
from src.strategist.state.reducer import ProjectState, project_reducer
from src.strategist.state.store import ActionResult, ProjectStore

__all__ = [
    "ActionResult",
    "AutoSaver",
    "InvalidTransitionError",
    "MutationState",
    "PendingMutation",
    "ProjectState",
    "ProjectStore",
    "project_reducer",
]
