"""
Git Auto-Squash

Squash a feature branch down to one squashed commit plus its last commit,
or rebase it onto its base branch, and publish the result safely.
"""

__version__ = "1.0.0"

from .core.config import AutoSquashConfig
from .core.types import (
    CommitInfo, SquashPlan, SquashResult, SquashOutcome, SquashState
)
from .git.operations import GitOperations
from .git.session import RepositorySession
from .ai.interface import MessageProvider
from .ai.claude import ClaudeMessageProvider
from .ai.template import TemplateMessageProvider
from .squasher import BranchSquasher
from .rebaser import BranchRebaser

__all__ = [
    "AutoSquashConfig",
    "CommitInfo",
    "SquashPlan",
    "SquashResult",
    "SquashOutcome",
    "SquashState",
    "GitOperations",
    "RepositorySession",
    "MessageProvider",
    "ClaudeMessageProvider",
    "TemplateMessageProvider",
    "BranchSquasher",
    "BranchRebaser"
]
