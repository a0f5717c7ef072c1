"""Command-line argument parsing for comp-repos."""

import argparse
import sys
from pathlib import Path

from comp_repos.__version__ import __version__
from comp_repos.config import BRANCH_MISMATCH_POLICIES, WORKSPACE_BACKENDS
from comp_repos.constants import DEFAULT_LIST_FILE, LEGACY_LIST_FILE

LIST_FILE_HELP = f"Repo list file (default: {DEFAULT_LIST_FILE}, or {LEGACY_LIST_FILE} if only that exists)"


class ArgumentParser(argparse.ArgumentParser):
    """Parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _parser(prog: str, description: str, epilog: str = None) -> ArgumentParser:
    parser = ArgumentParser(prog=prog, description=description, epilog=epilog)
    parser.add_argument("-f", "--file", dest="list_file", metavar="FILE", help=LIST_FILE_HELP)
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Trace path resolution to stderr"
    )
    parser.add_argument("--log-file", type=Path, metavar="PATH", help="Also write debug logs to PATH")
    parser.add_argument("--version", action="version", version=f"{prog} {__version__}")
    return parser


def _add_workspace_options(parser: ArgumentParser) -> None:
    parser.add_argument(
        "-w",
        "--workspace",
        dest="workspace_file",
        metavar="FILE",
        help="Workspace file (default: entire-project.code-workspace)",
    )
    parser.add_argument(
        "--backend",
        choices=WORKSPACE_BACKENDS,
        default="json",
        help="How to write the workspace file: json (built in), jq, or auto (jq when installed)",
    )


def parse_setup_args(argv=None):
    """Parse arguments for setup-repos."""
    parser = _parser(
        "setup-repos",
        "Clone the repositories in the list file and write the VS Code workspace",
        epilog="Private GitHub repositories: set GH_TOKEN, GITHUB_TOKEN or GITHUB_PAT.",
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would be cloned without doing it"
    )
    _add_workspace_options(parser)
    parser.add_argument(
        "--branch-mismatch",
        choices=BRANCH_MISMATCH_POLICIES,
        default="ignore",
        help="What to do when an existing clone is on another branch (default: ignore)",
    )
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failed entry")
    parser.add_argument(
        "--strict", action="store_true", help="Exit with status 1 if any entry failed"
    )
    parser.add_argument(
        "--no-workspace", action="store_true", help="Do not write the workspace file"
    )
    return parser.parse_args(argv)


def parse_workspace_args(argv=None):
    """Parse arguments for workspace-add."""
    parser = _parser(
        "workspace-add",
        "Write the folders of every listed repository into the VS Code workspace",
    )
    _add_workspace_options(parser)
    return parser.parse_args(argv)


def parse_pipeline_args(argv=None):
    """Parse arguments for run-pipeline."""
    parser = _parser(
        "run-pipeline",
        "Set up the repositories, install R dependencies and run each repository's run.sh",
        epilog="One failing run.sh stops the pipeline.",
    )
    parser.add_argument(
        "-i", "--include", metavar="NAMES", help="Comma-separated list of repo names to include"
    )
    parser.add_argument(
        "-e", "--exclude", metavar="NAMES", help="Comma-separated list of repo names to exclude"
    )
    parser.add_argument("-s", "--skip-setup", action="store_true", help="Skip the setup step")
    parser.add_argument(
        "--skip-deps", action="store_true", help="Skip the install-r-deps.sh step"
    )
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Show what would be done without executing"
    )
    return parser.parse_args(argv)


def parse_add_branch_args(argv=None):
    """Parse arguments for add-branch."""
    parser = _parser(
        "add-branch",
        "Create a worktree of this repository and register it in the list file",
    )
    parser.add_argument("branch", help="Branch to check out in the new worktree")
    parser.add_argument(
        "target_dir",
        nargs="?",
        help="Directory name next to this repository (default: <repo>-<branch>)",
    )
    return parser.parse_args(argv)
