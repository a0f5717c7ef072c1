"""Command-line interface for comp-repos.

This package provides the entry points and argument parsing.
"""

from .main import add_branch_main, main, run_pipeline_main, setup_repos_main, workspace_add_main
from .args import parse_add_branch_args, parse_pipeline_args, parse_setup_args, parse_workspace_args

__all__ = [
    "main",
    "setup_repos_main",
    "workspace_add_main",
    "run_pipeline_main",
    "add_branch_main",
    "parse_setup_args",
    "parse_workspace_args",
    "parse_pipeline_args",
    "parse_add_branch_args",
]
