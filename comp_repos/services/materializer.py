"""Materializer: make every resolved record exist on disk."""

from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

import git

from comp_repos.exceptions import BranchMismatchError, GitOperationError, MissingFallbackError
from comp_repos.logging_config import get_logger
from comp_repos.models.outcome import Action, RecordOutcome
from comp_repos.models.resolution import Resolution
from comp_repos.models.worktree import BranchSource
from comp_repos.services.git import GitOperations, WorktreeService
from comp_repos.services.list_parser import remote_url_from_spec

if TYPE_CHECKING:
    from comp_repos.config import Config

logger = get_logger(__name__)


class Materializer:
    """Clones repositories and creates worktrees for resolved records.

    Existing paths are left alone, so running twice changes nothing the
    second time. Failures are returned as FAILED outcomes instead of raised,
    which lets the caller carry on with the remaining records.
    """

    def __init__(self, config: Union["Config", dict], git_ops: Optional[GitOperations] = None):
        self.config = config
        self.dry_run = config.get("dry_run", False)
        self.branch_mismatch = config.get("branch_mismatch", "ignore")
        self.git_base_url = config.get("git_base_url", "https://github.com")
        self.git_ops = git_ops or GitOperations(config)

    def materialize(self, resolution: Resolution) -> RecordOutcome:
        """Ensure the record's path exists; never raises for per-record failures."""
        record = resolution.record
        try:
            if record.is_clone:
                return self._materialize_clone(resolution)
            if record.no_worktree:
                return self._materialize_branch_clone(resolution)
            return self._materialize_worktree(resolution)
        except (GitOperationError, git.exc.GitCommandError, OSError) as e:
            logger.error(f"Line {record.line_number} ({record}): {e}")
            return RecordOutcome(resolution, Action.FAILED, str(e))

    def _materialize_clone(self, resolution: Resolution) -> RecordOutcome:
        record = resolution.record
        dest = resolution.path.absolute
        if dest.exists():
            return self._existing_clone(resolution, record.branch)

        url = remote_url_from_spec(record.repo_spec, self.git_base_url)
        if self.dry_run:
            return RecordOutcome(resolution, Action.WOULD_CLONE, self._clone_message(url, record.branch, "Would clone"))

        self.git_ops.clone(url, dest, branch=record.branch, all_branches=record.all_branches)
        return RecordOutcome(resolution, Action.CLONED, self._clone_message(url, record.branch, "Cloned"))

    def _materialize_branch_clone(self, resolution: Resolution) -> RecordOutcome:
        """``@branch --no-worktree``: clone just that branch of the fallback's remote."""
        record = resolution.record
        fallback = resolution.fallback
        dest = resolution.path.absolute
        if dest.exists():
            return self._existing_clone(resolution, record.branch)

        if not fallback.remote:
            raise GitOperationError(
                "clone", fallback.name, "fallback repository has no remote to clone from"
            )
        if self.dry_run:
            return RecordOutcome(
                resolution, Action.WOULD_CLONE, self._clone_message(fallback.remote, record.branch, "Would clone")
            )

        self.git_ops.clone(fallback.remote, dest, branch=record.branch)
        return RecordOutcome(
            resolution, Action.CLONED, self._clone_message(fallback.remote, record.branch, "Cloned")
        )

    def _materialize_worktree(self, resolution: Resolution) -> RecordOutcome:
        record = resolution.record
        fallback = resolution.fallback
        dest = resolution.path.absolute
        if dest.exists():
            return RecordOutcome(resolution, Action.EXISTS, "Already exists")

        # A fallback cloned earlier in this run may not exist yet during a dry run
        if fallback.path is None or (fallback.path.exists() and not self.git_ops.is_git_repo(fallback.path)):
            raise MissingFallbackError(fallback.name, str(fallback.path))

        if self.dry_run:
            return RecordOutcome(
                resolution,
                Action.WOULD_CREATE_WORKTREE,
                f"Would create worktree of {fallback.name} on {record.branch}",
            )

        if not self.git_ops.is_git_repo(fallback.path):
            raise MissingFallbackError(fallback.name, str(fallback.path))

        creation = WorktreeService(fallback.path, self.git_ops).add_worktree(dest, record.branch)
        message = f"Created worktree of {fallback.name} on {record.branch}"
        if creation.source == BranchSource.NEW:
            message += " (new branch"
            message += ", pushed)" if creation.pushed else f", not pushed: {creation.push_error})"
        return RecordOutcome(resolution, Action.WORKTREE_CREATED, message)

    def _existing_clone(self, resolution: Resolution, branch: Optional[str]) -> RecordOutcome:
        """Apply the branch-mismatch policy to a path that already exists."""
        dest: Path = resolution.path.absolute
        if not branch or self.branch_mismatch == "ignore" or not self.git_ops.is_git_repo(dest):
            return RecordOutcome(resolution, Action.EXISTS, "Already exists")

        actual = self.git_ops.current_branch(dest) or "detached HEAD"
        if actual == branch:
            return RecordOutcome(resolution, Action.EXISTS, "Already exists")

        if self.branch_mismatch == "fail":
            raise BranchMismatchError(str(dest), branch, actual)

        if self.branch_mismatch == "checkout":
            if self.dry_run:
                return RecordOutcome(resolution, Action.EXISTS, f"Would check out {branch} (on {actual})")
            self.git_ops.checkout(dest, branch)
            return RecordOutcome(resolution, Action.EXISTS, f"Checked out {branch} (was {actual})")

        logger.warning(f"{resolution.path.relative} is on '{actual}', list requests '{branch}'")
        return RecordOutcome(resolution, Action.EXISTS, f"Already exists on {actual}, not {branch}")

    @staticmethod
    def _clone_message(url: str, branch: Optional[str], verb: str) -> str:
        if branch:
            return f"{verb} {url} ({branch})"
        return f"{verb} {url}"
