"""Worktree data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch_name: str
    commit_sha: str
    is_main: bool  # Is this the main working tree?
    is_orphaned: bool  # Directory missing?

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        return f"{self.branch_name or '(detached)'} @ {self.path}{main_marker} [{status}]"


class BranchSource:
    """Where the branch checked out in a new worktree came from."""

    LOCAL = "local"  # Branch already existed in the base repository
    REMOTE = "remote"  # Created locally, tracking the remote branch
    NEW = "new"  # Created from the base repository's HEAD


@dataclass
class WorktreeCreation:
    """Result of adding a worktree."""

    path: str
    branch: str
    source: str
    pushed: bool = False
    push_error: Optional[str] = None
