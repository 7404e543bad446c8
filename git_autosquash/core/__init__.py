"""Core functionality for the auto-squash tool."""

from .config import AutoSquashConfig
from .formatter import MessageFormatter
from .types import (
    CommitInfo, SquashPlan, SquashResult, SquashOutcome, SquashState,
    AutoSquashError, GitOperationError, FetchError, DirtyWorktreeError,
    HeadMismatchError, NotAncestorError, ReplayConflictError,
    HeadReplayConflictError, PushRejectedError, RebaseConflictError
)

__all__ = [
    "AutoSquashConfig", "MessageFormatter",
    "CommitInfo", "SquashPlan", "SquashResult", "SquashOutcome", "SquashState",
    "AutoSquashError", "GitOperationError", "FetchError", "DirtyWorktreeError",
    "HeadMismatchError", "NotAncestorError", "ReplayConflictError",
    "HeadReplayConflictError", "PushRejectedError", "RebaseConflictError"
]
