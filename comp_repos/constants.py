"""Shared constants for comp-repos."""

from typing import List

# Repository list file names, in lookup order
DEFAULT_LIST_FILE = "repos.list"
LEGACY_LIST_FILE = "repos-to-clone.list"

# Workspace descriptor names; the CamelCase one is used only when it is the only one present
DEFAULT_WORKSPACE_FILE = "entire-project.code-workspace"
CAMEL_WORKSPACE_FILE = "EntireProject.code-workspace"
WORKSPACE_FOLDERS_KEY = "folders"

# Per-repository collaborators
RUN_SCRIPT = "run.sh"
INSTALL_DEPS_SCRIPT = "scripts/helper/install-r-deps.sh"

# List file flags
ALL_BRANCHES_FLAGS = ("-a", "--all-branches")
NO_WORKTREE_FLAGS = ("-n", "--no-worktree")

# Checked in order when no token is configured
GITHUB_TOKEN_ENV_VARS: List[str] = ["GH_TOKEN", "GITHUB_TOKEN", "GITHUB_PAT"]
GITHUB_HOST = "github.com"


# Status symbols for CLI output
SYMBOL_OK = "✓"
SYMBOL_FAILED = "✗"
SYMBOL_SKIPPED = "="
SYMBOL_PLANNED = "→"


class ActionStyleType:
    """Style types for record outcomes."""

    CREATED = "created"
    EXISTS = "exists"
    PLANNED = "planned"
    FAILED = "failed"


# CLI colors (Rich color names)
CLI_COLORS = {
    ActionStyleType.CREATED: "green",
    ActionStyleType.EXISTS: "dim",
    ActionStyleType.PLANNED: "cyan",
    ActionStyleType.FAILED: "red",
}
