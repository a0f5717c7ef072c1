"""Configuration handling for comp-repos"""

import os
from dataclasses import dataclass
from typing import Optional

from comp_repos.constants import GITHUB_TOKEN_ENV_VARS

BRANCH_MISMATCH_POLICIES = ["ignore", "warn", "checkout", "fail"]
WORKSPACE_BACKENDS = ["json", "jq", "auto"]


@dataclass
class Config:
    """Configuration for comp-repos with validation."""

    # Input / output files (None = look up the defaults in the anchor directory)
    list_file: Optional[str] = None
    workspace_file: Optional[str] = None
    workspace_backend: str = "json"  # json, jq, auto
    write_workspace: bool = True

    # Execution modes
    dry_run: bool = False
    verbose: bool = False
    debug: bool = False
    fail_fast: bool = False  # Stop at the first failed record
    strict: bool = False  # Non-zero exit when any record failed

    # Existing clone checked out to a different branch than requested
    branch_mismatch: str = "ignore"  # ignore, warn, checkout, fail

    # Remote access
    git_base_url: str = "https://github.com"
    remote_name: str = "origin"
    github_token: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_workspace_backend()
        self._validate_branch_mismatch()
        self._validate_git_base_url()
        self._validate_remote_name()

    def _validate_workspace_backend(self):
        """Validate workspace_backend is one of allowed values."""
        if self.workspace_backend not in WORKSPACE_BACKENDS:
            raise ValueError(
                f"workspace_backend must be one of {WORKSPACE_BACKENDS}, got '{self.workspace_backend}'"
            )

    def _validate_branch_mismatch(self):
        """Validate branch_mismatch is one of allowed values."""
        if self.branch_mismatch not in BRANCH_MISMATCH_POLICIES:
            raise ValueError(
                f"branch_mismatch must be one of {BRANCH_MISMATCH_POLICIES}, got '{self.branch_mismatch}'"
            )

    def _validate_git_base_url(self):
        """Validate git_base_url is not empty and drop any trailing slash."""
        if not self.git_base_url or not self.git_base_url.strip():
            raise ValueError("git_base_url cannot be empty")
        self.git_base_url = self.git_base_url.strip().rstrip("/")

    def _validate_remote_name(self):
        """Validate remote_name is not empty."""
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def resolve_github_token(self) -> Optional[str]:
        """Return the configured token, falling back to the environment."""
        if self.github_token:
            return self.github_token
        for var in GITHUB_TOKEN_ENV_VARS:
            value = os.environ.get(var)
            if value:
                return value
        return None

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "list_file": self.list_file,
            "workspace_file": self.workspace_file,
            "workspace_backend": self.workspace_backend,
            "write_workspace": self.write_workspace,
            "dry_run": self.dry_run,
            "verbose": self.verbose,
            "debug": self.debug,
            "fail_fast": self.fail_fast,
            "strict": self.strict,
            "branch_mismatch": self.branch_mismatch,
            "git_base_url": self.git_base_url,
            "remote_name": self.remote_name,
            "github_token": self.github_token,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary."""
        # Extract only known fields
        known_fields = set(cls.__dataclass_fields__)
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
