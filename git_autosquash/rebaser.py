"""Branch rebaser: replay the current branch onto the freshly fetched base branch."""

import logging

from .core.config import AutoSquashConfig
from .core.types import (
    AutoSquashError, DirtyWorktreeError, RebaseConflictError,
    SquashOutcome, SquashResult, SquashState,
)
from .git.operations import GitOperations

logger = logging.getLogger(__name__)


class BranchRebaser:
    """Rebases onto ``<remote>/<base>``, preferring upstream hunks on conflict."""

    def __init__(self, git_ops: GitOperations, config: AutoSquashConfig):
        self.git_ops = git_ops
        self.config = config

    def run(self) -> SquashResult:
        branch = self.config.branch or self.git_ops.get_current_branch()
        logger.info("Starting rebase for branch: %s", branch)
        result = SquashResult(outcome=SquashOutcome.NO_ACTION, branch=branch)

        if self.config.is_protected(branch):
            logger.info("On protected branch (%s), skipping rebase", branch)
            result.message = f"On protected branch {branch}"
            result.state = SquashState.DONE
            return result

        try:
            result.original_head = self.git_ops.rev_parse("HEAD")
            self._rebase(result)
        except AutoSquashError as e:
            logger.error("Auto-rebase failed: %s", e)
            result.outcome = e.outcome
            result.message = str(e)
            result.state = SquashState.FAILED
            return result

        result.state = SquashState.DONE
        return result

    def _rebase(self, result: SquashResult) -> None:
        if not self.git_ops.is_worktree_clean():
            raise DirtyWorktreeError(
                "Working tree has uncommitted changes to tracked files; commit them first")

        checked_out = self.git_ops.get_current_branch()
        self.git_ops.fetch(self.config.remote, self.config.base_branch, prune=True)
        base_ref = self.config.base_ref

        if self.git_ops.is_ancestor(base_ref, "HEAD"):
            logger.info("%s is already an ancestor of HEAD, nothing to rebase", base_ref)
            result.message = f"Already up to date with {base_ref}"
            return

        logger.info("Rebasing onto %s with -X %s", base_ref, self.config.strategy_option)
        if not self.git_ops.rebase(base_ref, self.config.strategy_option):
            logger.warning("Rebase conflict detected, aborting rebase")
            self.git_ops.rebase_abort()
            # A detached HEAD is already put back by the abort
            if checked_out != "HEAD":
                self.git_ops.checkout_branch(checked_out, force=True)
            raise RebaseConflictError(f"Rebase of {result.branch} onto {base_ref} conflicted")

        result.outcome = SquashOutcome.REBASED
        result.new_head = self.git_ops.rev_parse("HEAD")
        result.message = f"Rebased {result.branch} onto {base_ref}"
        logger.info("Rebase completed successfully")
