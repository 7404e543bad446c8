"""Git operations for the auto-squash tool."""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from ..core.types import CommitInfo, FetchError, GitOperationError

logger = logging.getLogger(__name__)

# ASCII unit separator, very unlikely to appear in commit subjects
_SEP = "\x1F"
_COMMIT_FORMAT = _SEP.join(["%H", "%P", "%T", "%s"])


class GitOperations:
    """Handles all git operations for the auto-squash tool."""

    def __init__(self, repo_path: Optional[Union[str, Path]] = None):
        self.repo_path = Path(repo_path) if repo_path else None
        self._validate_git_repository()

    def _run_git_command(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a git command and return the result."""
        full_cmd = ["git"] + cmd
        logger.debug("Running git command: %s", " ".join(full_cmd))

        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=check
            )
            return result
        except subprocess.CalledProcessError as e:
            logger.error("Git command failed: %s\nStderr: %s", " ".join(full_cmd), e.stderr)
            raise GitOperationError(f"Git command failed: {' '.join(full_cmd)}: {e.stderr.strip()}")

    def _validate_git_repository(self) -> None:
        """Validate that we're in a git repository."""
        try:
            result = self._run_git_command(["rev-parse", "--git-dir"], check=True)
            logger.debug("Git repository found at: %s", result.stdout.strip())
        except GitOperationError:
            raise GitOperationError(
                "Not in a git repository. Please run this command from within a git repository."
            )

    # Ref inspection

    def get_current_branch(self) -> str:
        """Get the name of the current branch."""
        result = self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"])
        return result.stdout.strip()

    def rev_parse(self, ref: str) -> str:
        """Resolve ``ref`` to a full commit id."""
        result = self._run_git_command(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        return result.stdout.strip()

    def _parse_commit_line(self, line: str) -> CommitInfo:
        parts = line.split(_SEP, 3)
        if len(parts) != 4:
            raise GitOperationError(f"Malformed commit line: {line!r}")
        hash_id, parents, tree, subject = parts
        return CommitInfo(hash=hash_id, parents=parents.split(), tree=tree, subject=subject)

    def get_commit(self, ref: str = "HEAD") -> CommitInfo:
        """Get hash, parents, tree and subject of a single commit."""
        result = self._run_git_command(["log", "-1", f"--format={_COMMIT_FORMAT}", ref])
        return self._parse_commit_line(result.stdout.rstrip("\n"))

    def get_commits_between(self, start: str, end: str = "HEAD") -> List[CommitInfo]:
        """List commits in ``start..end``, oldest first."""
        logger.debug("Listing commits %s..%s", start[:8], end[:8])
        result = self._run_git_command(
            ["log", "--reverse", "--topo-order", f"--format={_COMMIT_FORMAT}", f"{start}..{end}"])
        return [self._parse_commit_line(line)
                for line in result.stdout.split("\n") if line]

    def count_commits_ahead(self, ref: str, base_ref: str) -> int:
        """Count commits reachable from ``ref`` but not from ``base_ref``."""
        result = self._run_git_command(["rev-list", "--count", ref, f"^{base_ref}"])
        return int(result.stdout.strip())

    def merge_base(self, first: str, second: str) -> str:
        """Nearest common ancestor of two commits."""
        result = self._run_git_command(["merge-base", first, second])
        return result.stdout.strip()

    def is_ancestor(self, ancestor: str, descendant: str = "HEAD") -> bool:
        """Whether ``ancestor`` is reachable from ``descendant``."""
        result = self._run_git_command(
            ["merge-base", "--is-ancestor", ancestor, descendant], check=False)
        if result.returncode not in (0, 1):
            raise GitOperationError(
                f"Cannot check ancestry of {ancestor} and {descendant}: {result.stderr.strip()}")
        return result.returncode == 0

    def is_worktree_clean(self) -> bool:
        """Whether tracked files have no staged or unstaged modifications."""
        result = self._run_git_command(["status", "--porcelain", "--untracked-files=no"])
        return not result.stdout.strip()

    def has_staged_changes(self) -> bool:
        """Whether the index differs from HEAD."""
        result = self._run_git_command(["diff", "--cached", "--quiet"], check=False)
        if result.returncode not in (0, 1):
            raise GitOperationError(f"Cannot inspect index: {result.stderr.strip()}")
        return result.returncode == 1

    def list_branches(self, prefix: str) -> List[str]:
        """Local branch names starting with ``prefix``."""
        result = self._run_git_command(
            ["for-each-ref", "--format=%(refname:short)", f"refs/heads/{prefix}*"])
        return [line for line in result.stdout.split("\n") if line]

    def get_diff_stats(self, start: str, end: str) -> str:
        """Get diff statistics between commits."""
        result = self._run_git_command(["diff", "--stat", start, end])
        return result.stdout

    # Remote operations

    def fetch(self, remote: str, branch: str, prune: bool = False) -> None:
        """Fetch ``branch`` from ``remote``."""
        logger.info("Fetching %s/%s", remote, branch)
        cmd = ["fetch"]
        if prune:
            cmd.append("--prune")
        result = self._run_git_command(cmd + [remote, branch], check=False)
        if result.returncode != 0:
            raise FetchError(f"Failed to fetch {remote}/{branch}: {result.stderr.strip()}")

    def remote_branch_sha(self, remote: str, branch: str) -> str:
        """Current value of ``refs/heads/<branch>`` on the remote, or "" if absent."""
        result = self._run_git_command(["ls-remote", "--heads", remote, f"refs/heads/{branch}"], check=False)
        if result.returncode != 0:
            raise FetchError(f"Failed to query {remote} for {branch}: {result.stderr.strip()}")
        for line in result.stdout.split("\n"):
            parts = line.split()
            if len(parts) == 2 and parts[1] == f"refs/heads/{branch}":
                return parts[0]
        return ""

    def push_with_lease(self, remote: str, branch: str, expected: str) -> bool:
        """Force-push HEAD to ``branch`` only if the remote still points at ``expected``."""
        ref = f"refs/heads/{branch}"
        logger.info("Pushing HEAD to %s/%s (lease %s)", remote, branch, expected[:8] or "<absent>")
        result = self._run_git_command(
            ["push", f"--force-with-lease={ref}:{expected}", remote, f"HEAD:{ref}"],
            check=False)
        if result.returncode != 0:
            logger.warning("Push to %s/%s rejected: %s", remote, branch, result.stderr.strip())
            return False
        return True

    # Working tree and branch mutation

    def create_branch(self, branch_name: str, start_point: str = "HEAD") -> None:
        """Create a new branch and check it out."""
        logger.info("Creating branch: %s from %s", branch_name, start_point[:8])
        self._run_git_command(["checkout", "-b", branch_name, start_point])

    def checkout_branch(self, branch_name: str, force: bool = False) -> None:
        """Checkout an existing branch."""
        logger.info("Checking out branch: %s", branch_name)
        cmd = ["checkout"]
        if force:
            cmd.append("--force")
        self._run_git_command(cmd + [branch_name])

    def checkout_detached(self, commit_hash: str) -> None:
        """Check out ``commit_hash`` without a branch."""
        logger.info("Checking out detached HEAD at %s", commit_hash[:8])
        self._run_git_command(["checkout", "--force", "--detach", commit_hash])

    def move_branch(self, branch_name: str, commit_hash: str) -> None:
        """Point ``branch_name`` at ``commit_hash`` and check it out."""
        logger.info("Moving branch %s to %s", branch_name, commit_hash[:8])
        self._run_git_command(["checkout", "-B", branch_name, commit_hash])

    def delete_branch(self, branch_name: str) -> bool:
        """Force-delete a local branch, returning whether it existed."""
        result = self._run_git_command(["branch", "-D", branch_name], check=False)
        if result.returncode == 0:
            logger.debug("Deleted branch %s", branch_name)
        return result.returncode == 0

    def discard_changes(self) -> None:
        """Reset the index and tracked files to HEAD."""
        logger.info("Discarding index and working tree changes")
        self._run_git_command(["reset", "--hard", "HEAD"])

    def cherry_pick_no_commit(self, commit_hash: str) -> bool:
        """Stage the changes of ``commit_hash`` without committing them."""
        result = self._run_git_command(["cherry-pick", "--no-commit", commit_hash], check=False)
        if result.returncode != 0:
            logger.debug("cherry-pick --no-commit %s failed: %s", commit_hash[:8], result.stderr.strip())
        return result.returncode == 0

    def cherry_pick(self, commit_hash: str, mainline: Optional[int] = None) -> bool:
        """Cherry-pick ``commit_hash`` keeping it even if it turns out redundant."""
        cmd = ["cherry-pick"]
        if mainline is not None:
            cmd += ["-m", str(mainline)]
        cmd += ["--keep-redundant-commits", commit_hash]
        result = self._run_git_command(cmd, check=False)
        if result.returncode != 0:
            logger.debug("%s failed: %s", " ".join(cmd), result.stderr.strip())
        return result.returncode == 0

    def cherry_pick_abort(self) -> None:
        """Abort an in-progress cherry-pick, if there is one."""
        self._run_git_command(["cherry-pick", "--abort"], check=False)

    def commit(self, message: str) -> str:
        """Commit the index and return the new commit id."""
        self._run_git_command(["commit", "--quiet", "-m", message])
        return self.rev_parse("HEAD")

    def rebase(self, onto: str, strategy_option: Optional[str] = None) -> bool:
        """Rebase the current branch onto ``onto``."""
        cmd = ["rebase", onto]
        if strategy_option:
            cmd += ["-X", strategy_option]
        result = self._run_git_command(cmd, check=False)
        if result.returncode != 0:
            logger.debug("rebase onto %s failed: %s", onto, result.stderr.strip())
        return result.returncode == 0

    def rebase_abort(self) -> None:
        """Abort an in-progress rebase, if there is one."""
        self._run_git_command(["rebase", "--abort"], check=False)

    # Diagnostics

    def status(self) -> str:
        """Porcelain status with branch header."""
        return self._run_git_command(["status", "--porcelain", "--branch"], check=False).stdout

    def describe_commit(self, commit_hash: str) -> str:
        """Full log entry of a single commit."""
        return self._run_git_command(
            ["--no-pager", "log", "-1", "--pretty=fuller", commit_hash], check=False).stdout

    def log_graph(self, limit: int = 40) -> str:
        """Recent history of all refs as a graph."""
        return self._run_git_command(
            ["--no-pager", "log", "--graph", "--oneline", "--decorate", "--all", "-n", str(limit)],
            check=False).stdout
