"""Repository session: remembers where a run started and restores it."""

import logging
import random
import time
from typing import Optional

from ..core.types import GitOperationError
from .operations import GitOperations

logger = logging.getLogger(__name__)


class RepositorySession:
    """Explicit handle on the mutable repository state of one run.

    Records the branch and commit the run started from. Used as a context
    manager: any exception leaving the block triggers :meth:`restore`, and
    the temporary branch is always deleted on exit. A detached HEAD (as in
    CI checkouts) is restored by commit id instead of by branch name.
    """

    def __init__(self, git_ops: GitOperations, temp_branch_prefix: str = "autosquash-temp-"):
        self.git_ops = git_ops
        self.temp_branch_prefix = temp_branch_prefix
        self.original_branch = git_ops.get_current_branch()
        self.original_head = git_ops.rev_parse("HEAD")
        self.temp_branch: Optional[str] = None
        self.restored = False

    @property
    def detached(self) -> bool:
        return self.original_branch == "HEAD"

    def __enter__(self) -> 'RepositorySession':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.restore()
        finally:
            self.cleanup()

    def new_temp_branch_name(self) -> str:
        return f"{self.temp_branch_prefix}{int(time.time())}-{random.randint(0, 32767)}"

    def start_temp_branch(self, start_point: str) -> str:
        """Create and check out a throwaway branch at ``start_point``."""
        name = self.new_temp_branch_name()
        while self.git_ops.list_branches(name):
            name = self.new_temp_branch_name()
        self.git_ops.create_branch(name, start_point)
        self.temp_branch = name
        return name

    def _return_to_original(self) -> None:
        if self.detached:
            self.git_ops.checkout_detached(self.original_head)
        else:
            self.git_ops.checkout_branch(self.original_branch, force=True)

    def restore(self) -> None:
        """Return to the original branch, discarding any half-done replay.

        Nothing is touched until a temporary branch has been started, so a
        precondition failure never resets the user's working tree.
        """
        if self.temp_branch is None:
            self.restored = True
            return
        logger.info("Restoring original branch %s at %s",
                    self.original_branch, self.original_head[:8])
        self.git_ops.cherry_pick_abort()
        try:
            self.git_ops.discard_changes()
        except GitOperationError as e:
            logger.warning("Could not reset working tree: %s", e)
        self._return_to_original()
        self.restored = True

    def finish(self, new_head: str) -> None:
        """Move the original branch to ``new_head`` and check it out."""
        if self.detached:
            self.git_ops.checkout_detached(new_head)
        else:
            self.git_ops.move_branch(self.original_branch, new_head)

    def cleanup(self) -> None:
        """Delete the temporary branch, leaving the original one checked out."""
        if self.temp_branch is None:
            return
        if self.git_ops.get_current_branch() == self.temp_branch:
            self._return_to_original()
        self.git_ops.delete_branch(self.temp_branch)
        self.temp_branch = None

    def prune_stale_temp_branches(self) -> int:
        """Delete temporary branches left behind by interrupted runs."""
        pruned = 0
        for name in self.git_ops.list_branches(self.temp_branch_prefix):
            if name != self.temp_branch and name != self.original_branch \
                    and self.git_ops.delete_branch(name):
                logger.info("Pruned stale temporary branch %s", name)
                pruned += 1
        return pruned
