"""Git-related services for comp-repos."""

from .operations import GitOperations, github_auth_env
from .worktrees import WorktreeService

__all__ = [
    "GitOperations",
    "WorktreeService",
    "github_auth_env",
]
