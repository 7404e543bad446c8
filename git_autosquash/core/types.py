"""Type definitions for the auto-squash tool."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class SquashOutcome(Enum):
    """Distinct results an operation can report to its caller."""
    NO_ACTION = "no-action"
    SQUASHED = "squashed"
    PLANNED = "planned"
    REBASED = "rebased"
    GENERIC_FAILURE = "generic-failure"
    REPLAY_CONFLICT = "replay-conflict"
    HEAD_REPLAY_CONFLICT = "head-replay-conflict"
    PUSH_REJECTED = "push-rejected"
    NEEDS_REBASE = "needs-rebase"
    REBASE_CONFLICT = "rebase-conflict"

    @property
    def exit_code(self) -> int:
        """Process exit code for this outcome."""
        return _EXIT_CODES[self]

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0


_EXIT_CODES = {
    SquashOutcome.NO_ACTION: 0,
    SquashOutcome.SQUASHED: 0,
    SquashOutcome.PLANNED: 0,
    SquashOutcome.REBASED: 0,
    SquashOutcome.GENERIC_FAILURE: 1,
    SquashOutcome.REPLAY_CONFLICT: 2,
    SquashOutcome.HEAD_REPLAY_CONFLICT: 3,
    SquashOutcome.PUSH_REJECTED: 4,
    SquashOutcome.NEEDS_REBASE: 5,
    SquashOutcome.REBASE_CONFLICT: 6,
}


class SquashState(Enum):
    """States of a single squash run."""
    IDLE = "idle"
    FETCHING = "fetching"
    ANCESTRY_CHECKED = "ancestry-checked"
    REPLAYING = "replaying"
    COMMITTING = "committing"
    HEAD_REPLAYING = "head-replaying"
    PUSHING = "pushing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class CommitInfo:
    """Information about a single commit."""
    hash: str
    parents: List[str]
    subject: str = ""
    tree: str = ""

    @property
    def short_hash(self) -> str:
        """Get short version of commit hash."""
        return self.hash[:8]

    @property
    def is_merge(self) -> bool:
        """Whether the commit has more than one parent."""
        return len(self.parents) > 1


@dataclass
class SquashPlan:
    """Everything needed to rewrite one branch, computed fresh per run."""
    branch: str
    base_ref: str
    merge_base: str
    head: CommitInfo
    intermediate: List[CommitInfo]
    message: str
    remote_lease: str = ""

    @property
    def intermediate_hashes(self) -> List[str]:
        return [c.hash for c in self.intermediate]

    def summary_stats(self) -> str:
        """Get summary statistics as string."""
        if not self.intermediate:
            return f"{self.branch}: last commit {self.head.short_hash} only"
        return (f"{self.branch}: {len(self.intermediate)} commits → 1 squashed commit "
                f"+ last commit {self.head.short_hash}")


@dataclass
class SquashResult:
    """Structured report of one operation."""
    outcome: SquashOutcome
    branch: str
    state: SquashState = SquashState.IDLE
    states: List[SquashState] = field(default_factory=list)
    original_head: Optional[str] = None
    new_head: Optional[str] = None
    commit_id: Optional[str] = None
    diagnostics: str = ""
    message: str = ""
    mainline: Optional[int] = None
    plan: Optional[SquashPlan] = None

    @property
    def exit_code(self) -> int:
        return self.outcome.exit_code

    def to_dict(self) -> dict:
        """Plain-data view of the result, suitable for JSON."""
        return {
            "outcome": self.outcome.value,
            "exit_code": self.exit_code,
            "branch": self.branch,
            "state": self.state.value,
            "states": [s.value for s in self.states],
            "original_head": self.original_head,
            "new_head": self.new_head,
            "commit_id": self.commit_id,
            "diagnostics": self.diagnostics,
            "message": self.message,
            "mainline": self.mainline,
            "squashed_commits": self.plan.intermediate_hashes if self.plan else [],
        }


class AutoSquashError(Exception):
    """Base exception for auto-squash operations."""
    outcome = SquashOutcome.GENERIC_FAILURE


class GitOperationError(AutoSquashError):
    """Raised when git operations fail."""
    pass


class FetchError(GitOperationError):
    """Raised when the base branch cannot be fetched."""
    pass


class DirtyWorktreeError(AutoSquashError):
    """Raised when tracked files have uncommitted modifications."""
    pass


class HeadMismatchError(AutoSquashError):
    """Raised when HEAD differs from the commit the caller expected."""
    pass


class NotAncestorError(AutoSquashError):
    """Raised when the base tip is not an ancestor of HEAD."""
    outcome = SquashOutcome.NEEDS_REBASE


class ReplayConflictError(AutoSquashError):
    """Raised when an intermediate commit cannot be replayed cleanly."""
    outcome = SquashOutcome.REPLAY_CONFLICT

    def __init__(self, commit_id: str, message: Optional[str] = None):
        self.commit_id = commit_id
        super().__init__(message or f"Conflict while replaying commit {commit_id}")


class HeadReplayConflictError(AutoSquashError):
    """Raised when no parent candidate of the last commit replays cleanly."""
    outcome = SquashOutcome.HEAD_REPLAY_CONFLICT

    def __init__(self, commit_id: str, diagnostics: str = ""):
        self.commit_id = commit_id
        self.diagnostics = diagnostics
        super().__init__(f"Conflict while replaying last commit {commit_id}")


class PushRejectedError(AutoSquashError):
    """Raised when the remote moved since it was fetched."""
    outcome = SquashOutcome.PUSH_REJECTED


class RebaseConflictError(AutoSquashError):
    """Raised when rebasing onto the base branch conflicts."""
    outcome = SquashOutcome.REBASE_CONFLICT
