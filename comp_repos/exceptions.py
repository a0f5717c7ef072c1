"""Custom exceptions for comp-repos"""

from typing import Optional


class CompReposError(Exception):
    """Base exception for all comp-repos errors."""
    pass


class ConfigurationError(CompReposError):
    """Exception raised when the run cannot start (missing files, bad setup)."""
    pass


class ListFileNotFoundError(ConfigurationError):
    """Exception raised when the repository list file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Repository list file '{path}' not found.")


class WorkspaceBackendError(ConfigurationError):
    """Exception raised when the requested workspace writer is unavailable."""

    def __init__(self, backend: str, message: Optional[str] = None):
        self.backend = backend
        error_msg = f"Workspace backend '{backend}' is not available"
        if message:
            error_msg += f": {message}"
        super().__init__(error_msg)


class WorkspaceError(CompReposError):
    """Exception raised when the workspace descriptor cannot be read or written."""
    pass


class ListSyntaxError(CompReposError):
    """Exception raised for a line in the list file that cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.reason = message
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class GitOperationError(CompReposError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, target: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.target = target
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if target:
            error_msg += f" for '{target}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class MissingFallbackError(GitOperationError):
    """Exception raised when a worktree is requested off a repository that is not on disk."""

    def __init__(self, fallback: str, path: str):
        self.fallback = fallback
        self.path = path
        super().__init__(
            "worktree_add",
            fallback,
            f"fallback repository '{fallback}' not found as a git repository at {path}",
        )


class BranchMismatchError(GitOperationError):
    """Exception raised when an existing clone is checked out to another branch."""

    def __init__(self, path: str, expected: str, actual: Optional[str]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            "check_branch",
            path,
            f"expected branch '{expected}' but found '{actual or 'detached HEAD'}'",
        )


class PipelineError(CompReposError):
    """Exception raised when a repository's run.sh fails."""

    def __init__(self, folder: str, returncode: int):
        self.folder = folder
        self.returncode = returncode
        super().__init__(f"run.sh in '{folder}' failed with exit code {returncode}")
