"""Abstract interface for squashed-commit message providers."""

from abc import ABC, abstractmethod
from typing import List

from ..core.types import CommitInfo


class MessageProvider(ABC):
    """Produces the message of the single squashed commit."""

    @abstractmethod
    async def generate_message(self,
                               branch: str,
                               base_branch: str,
                               commits: List[CommitInfo],
                               diff_stats: str = "") -> str:
        """Generate a commit message for the squashed commits.

        Args:
            branch: The branch being squashed
            base_branch: The base branch the squash is computed against
            commits: The intermediate commits being squashed, oldest first
            diff_stats: ``git diff --stat`` of the squashed range

        Returns:
            Commit message following Git best practices
        """
        pass
