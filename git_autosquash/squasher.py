"""Branch squasher: collapse a feature branch to one squashed commit plus its last commit."""

import logging
from typing import Optional

from .ai.interface import MessageProvider
from .core.config import AutoSquashConfig
from .core.types import (
    AutoSquashError, CommitInfo, DirtyWorktreeError, GitOperationError,
    HeadMismatchError, HeadReplayConflictError, NotAncestorError,
    PushRejectedError, ReplayConflictError, SquashOutcome, SquashPlan,
    SquashResult, SquashState,
)
from .git.operations import GitOperations
from .git.session import RepositorySession

logger = logging.getLogger(__name__)


class BranchSquasher:
    """Rewrites the current branch as ``merge-base -> squashed -> last commit``."""

    def __init__(self,
                 git_ops: GitOperations,
                 message_provider: MessageProvider,
                 config: AutoSquashConfig):
        self.git_ops = git_ops
        self.message_provider = message_provider
        self.config = config
        self.state = SquashState.IDLE
        self.states = [SquashState.IDLE]
        self.skip_reason = ""

    def _transition(self, state: SquashState) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state
        self.states.append(state)

    def resolve_branch(self) -> str:
        """Explicitly configured branch, else the checked-out one."""
        return self.config.branch or self.git_ops.get_current_branch()

    async def run(self,
                  expected_head: Optional[str] = None,
                  dry_run: bool = False,
                  prune_temp: bool = False) -> SquashResult:
        """Squash the current branch and push it, reporting a structured result."""
        branch = self.resolve_branch()
        logger.info("Branch resolved to: %s", branch)
        result = SquashResult(outcome=SquashOutcome.NO_ACTION, branch=branch)

        if self.config.is_protected(branch):
            logger.info("On protected branch (%s), skipping", branch)
            result.message = f"On protected branch {branch}"
            return self._finish(result, SquashState.DONE)

        try:
            with RepositorySession(self.git_ops, self.config.temp_branch_prefix) as session:
                result.original_head = session.original_head
                if prune_temp:
                    session.prune_stale_temp_branches()

                plan = await self.prepare_plan(branch, expected_head)
                result.plan = plan
                if plan is None:
                    result.message = self.skip_reason
                elif dry_run:
                    result.outcome = SquashOutcome.PLANNED
                    result.message = plan.summary_stats()
                else:
                    result.mainline = self.execute_plan(plan, session)
                    result.new_head = self.git_ops.rev_parse("HEAD")
                    result.outcome = SquashOutcome.SQUASHED
                    result.message = plan.summary_stats()
        except AutoSquashError as e:
            logger.error("Auto-squash failed in state %s: %s", self.state.value, e)
            result.outcome = e.outcome
            result.message = str(e)
            result.commit_id = getattr(e, 'commit_id', None)
            result.diagnostics = getattr(e, 'diagnostics', "")
            return self._finish(result, SquashState.FAILED)

        return self._finish(result, SquashState.DONE)

    def _finish(self, result: SquashResult, state: SquashState) -> SquashResult:
        self._transition(state)
        result.state = self.state
        result.states = list(self.states)
        return result

    async def prepare_plan(self, branch: str, expected_head: Optional[str] = None) -> Optional[SquashPlan]:
        """Check preconditions, fetch the base and compute the squash plan.

        Returns None, with ``skip_reason`` set, when the branch is at most one
        commit ahead of the base or is already squashed. Nothing in the
        repository is mutated here.
        """
        self.skip_reason = ""
        if not self.git_ops.is_worktree_clean():
            raise DirtyWorktreeError(
                "Working tree has uncommitted changes to tracked files; commit them first")

        head = self.git_ops.get_commit("HEAD")
        if expected_head is not None:
            expected = self.git_ops.rev_parse(expected_head)
            if expected != head.hash:
                raise HeadMismatchError(
                    f"HEAD is {head.short_hash}, expected {expected[:8]}")

        self._transition(SquashState.FETCHING)
        # The lease is taken first so anything pushed from here on is detected
        lease = self.git_ops.remote_branch_sha(self.config.remote, branch)
        self.git_ops.fetch(self.config.remote, self.config.base_branch)
        base_ref = self.config.base_ref

        if not self.git_ops.is_ancestor(base_ref, head.hash):
            raise NotAncestorError(
                f"{base_ref} is NOT an ancestor of HEAD. Please rebase your branch "
                f"onto {self.config.base_branch} and try again.")
        logger.info("%s is an ancestor of HEAD, proceeding", base_ref)
        self._transition(SquashState.ANCESTRY_CHECKED)

        ahead = self.git_ops.count_commits_ahead(head.hash, base_ref)
        logger.info("Commits ahead of %s: %d", base_ref, ahead)
        if ahead <= 1:
            self.skip_reason = "Nothing to squash (0 or 1 commit ahead)"
            logger.info(self.skip_reason)
            return None

        merge_base = self.git_ops.merge_base(head.hash, base_ref)
        commits = self.git_ops.get_commits_between(merge_base, head.hash)
        if not commits or commits[-1].hash != head.hash:
            raise GitOperationError(
                f"Unexpected history between merge-base {merge_base[:8]} and HEAD")
        intermediate = commits[:-1]
        logger.info("Merge-base: %s, last commit: %s, %d commits to squash",
                    merge_base[:8], head.short_hash, len(intermediate))
        if len(intermediate) == 1 and not intermediate[0].is_merge:
            self.skip_reason = "Branch already squashed (one commit before the last)"
            logger.info(self.skip_reason)
            return None

        diff_stats = self.git_ops.get_diff_stats(merge_base, intermediate[-1].hash)
        message = await self.message_provider.generate_message(
            branch, self.config.base_branch, intermediate, diff_stats)

        return SquashPlan(
            branch=branch,
            base_ref=base_ref,
            merge_base=merge_base,
            head=head,
            intermediate=intermediate,
            message=message,
            remote_lease=lease,
        )

    def execute_plan(self, plan: SquashPlan, session: RepositorySession) -> Optional[int]:
        """Rebuild the branch on a temporary branch and push it with a lease.

        Returns the mainline parent used to replay a merge head, or None.
        Any failure propagates; the session restores the original branch.
        """
        temp_branch = session.start_temp_branch(plan.merge_base)
        logger.info("Rebuilding %s on %s", plan.branch, temp_branch)

        self._transition(SquashState.REPLAYING)
        for commit in plan.intermediate:
            logger.info("Applying %s %s", commit.short_hash, commit.subject)
            if not self.git_ops.cherry_pick_no_commit(commit.hash):
                logger.error("Conflict during cherry-pick of %s:\n%s",
                             commit.hash, self.git_ops.status())
                raise ReplayConflictError(commit.hash)

        self._transition(SquashState.COMMITTING)
        if self.git_ops.has_staged_changes():
            squashed = self.git_ops.commit(plan.message)
            logger.info("Created squashed commit %s", squashed[:8])
        else:
            logger.info("No staged changes after applying commits, skipping squashed commit")

        self._transition(SquashState.HEAD_REPLAYING)
        mainline = self._replay_head(plan.head)

        rebuilt = self.git_ops.get_commit("HEAD")
        if rebuilt.tree != plan.head.tree:
            logger.warning("Rebuilt tree %s differs from the tree %s of the original last commit",
                           rebuilt.tree[:8], plan.head.tree[:8])

        self._transition(SquashState.PUSHING)
        new_head = rebuilt.hash
        if not self.git_ops.push_with_lease(self.config.remote, plan.branch, plan.remote_lease):
            raise PushRejectedError(
                f"Push to {self.config.remote}/{plan.branch} was rejected; "
                f"the remote may have moved since it was fetched. Fetch and retry.")

        session.finish(new_head)
        logger.info("Branch %s updated to %s", plan.branch, new_head[:8])
        return mainline

    def _replay_head(self, head: CommitInfo) -> Optional[int]:
        """Cherry-pick the original last commit, trying each parent of a merge in turn."""
        if not head.is_merge:
            logger.info("Cherry-picking last commit %s on top", head.short_hash)
            if self.git_ops.cherry_pick(head.hash):
                return None
            raise HeadReplayConflictError(head.hash, self._collect_diagnostics(head.hash))

        logger.info("Last commit %s is a merge with %d parents",
                    head.short_hash, len(head.parents))
        for mainline in range(1, len(head.parents) + 1):
            logger.info("Attempting cherry-pick -m %d %s", mainline, head.short_hash)
            if self.git_ops.cherry_pick(head.hash, mainline=mainline):
                logger.info("Cherry-pick with -m %d succeeded", mainline)
                return mainline
            logger.info("Cherry-pick with -m %d failed", mainline)
            self.git_ops.cherry_pick_abort()

        logger.error("All attempts to cherry-pick merge commit %s failed", head.hash)
        raise HeadReplayConflictError(head.hash, self._collect_diagnostics(head.hash))

    def _collect_diagnostics(self, commit_hash: str) -> str:
        return "\n".join([
            self.git_ops.describe_commit(commit_hash).rstrip(),
            self.git_ops.status().rstrip(),
            self.git_ops.log_graph().rstrip(),
        ])
