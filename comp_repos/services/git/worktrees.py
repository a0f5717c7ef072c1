"""Worktree operations service for comp-repos."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import git

from comp_repos.exceptions import GitOperationError
from comp_repos.models.worktree import BranchSource, WorktreeCreation, WorktreeInfo
from comp_repos.services.git.operations import GitOperations, command_error_message
from comp_repos.logging_config import get_logger

logger = get_logger(__name__)


class WorktreeService:
    """Service for managing linked worktrees of one base repository."""

    def __init__(self, repo_path: Union[str, Path], git_ops: GitOperations):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the base git repository
            git_ops: Shared git operations (remote name, authentication)
        """
        self.repo_path = str(repo_path)
        self.git_ops = git_ops

    def _get_repo(self) -> git.Repo:
        return git.Repo(self.repo_path)

    @staticmethod
    def _to_info(entry: Dict[str, Any]) -> WorktreeInfo:
        path = entry.get("path", "")
        return WorktreeInfo(
            path=path,
            branch_name=entry.get("branch", ""),
            commit_sha=entry.get("HEAD", ""),
            is_main=entry.get("is_main", False),
            is_orphaned=not os.path.exists(path) if path else True,
        )

    def get_worktree_info(self) -> List[WorktreeInfo]:
        """Get detailed information about all worktrees of the base repository.

        Returns:
            List of WorktreeInfo objects, main working tree first
        """
        worktree_list: List[WorktreeInfo] = []
        repo = self._get_repo()
        try:
            # Format (blank line between worktrees):
            # worktree /path/to/worktree
            # HEAD commit_sha
            # branch refs/heads/branch-name
            output = repo.git.worktree("list", "--porcelain")
        except git.exc.GitCommandError as e:
            logger.debug(f"Could not list worktrees: {command_error_message(e, 'worktree list')}")
            return worktree_list
        finally:
            repo.close()

        current: Dict[str, Any] = {}
        for line in output.split("\n") + [""]:
            line = line.strip()

            if not line:
                if current.get("path"):
                    worktree_list.append(self._to_info(current))
                current = {}
                continue

            if line.startswith("worktree "):
                current["path"] = line.split(" ", 1)[1]
                # First worktree in list is always the main one
                current["is_main"] = not worktree_list
            elif line.startswith("HEAD "):
                current["HEAD"] = line.split(" ", 1)[1]
            elif line.startswith("branch "):
                branch_ref = line.split(" ", 1)[1]
                if branch_ref.startswith("refs/heads/"):
                    current["branch"] = branch_ref[len("refs/heads/"):]
                else:
                    current["branch"] = ""
            elif line.startswith("detached"):
                current["branch"] = ""

        logger.debug(f"Found {len(worktree_list)} worktrees of {self.repo_path}")
        return worktree_list

    def find_worktree_for_branch(self, branch: str) -> Optional[WorktreeInfo]:
        """Worktree that already has ``branch`` checked out, if any."""
        for info in self.get_worktree_info():
            if info.branch_name == branch:
                return info
        return None

    def add_worktree(self, dest: Union[str, Path], branch: str) -> WorktreeCreation:
        """Create a linked worktree at ``dest`` checked out to ``branch``.

        An existing local branch is reused. A branch that only exists on the
        remote is created locally with tracking. Otherwise a new branch is
        created from HEAD and pushed upstream with tracking; a failed push is
        recorded on the result and the worktree is kept.

        Raises:
            GitOperationError: if the worktree cannot be created
        """
        dest = str(dest)
        existing = self.find_worktree_for_branch(branch)
        if existing and not existing.is_orphaned:
            raise GitOperationError(
                "worktree_add", branch, f"branch is already checked out at {existing.path}"
            )

        repo = self._get_repo()
        remote = self.git_ops.remote_name
        try:
            self.git_ops.fetch(repo)
            if branch in [head.name for head in repo.heads]:
                repo.git.worktree("add", dest, branch)
                source = BranchSource.LOCAL
            elif self.git_ops.remote_branch_exists(repo, branch):
                self.git_ops.fetch_branch(repo, branch)
                repo.git.worktree("add", "--track", "-b", branch, dest, f"{remote}/{branch}")
                source = BranchSource.REMOTE
            else:
                repo.git.worktree("add", "-b", branch, dest)
                source = BranchSource.NEW
        except git.exc.GitCommandError as e:
            raise GitOperationError("worktree_add", branch, command_error_message(e, "worktree add"))
        finally:
            repo.close()

        logger.info(f"Created worktree for {branch} at {dest} ({source})")
        creation = WorktreeCreation(path=dest, branch=branch, source=source)

        if source == BranchSource.NEW:
            with git.Repo(dest) as worktree_repo:
                has_remote = self.git_ops.has_remote(worktree_repo)
            if not has_remote:
                creation.push_error = f"no '{remote}' remote to push to"
            else:
                try:
                    self.git_ops.push_upstream(dest, branch)
                    creation.pushed = True
                except GitOperationError as e:
                    logger.warning(f"Worktree created but push failed: {e}")
                    creation.push_error = str(e)

        return creation
