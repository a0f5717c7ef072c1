"""Entry points for the comp-repos commands"""

import os
import sys
from functools import wraps

from rich.console import Console
from rich.markup import escape

from comp_repos.cli.args import (
    parse_add_branch_args,
    parse_pipeline_args,
    parse_setup_args,
    parse_workspace_args,
)
from comp_repos.config import Config
from comp_repos.core import BranchAdder, RepoSetup
from comp_repos.exceptions import CompReposError
from comp_repos.logging_config import setup_logging
from comp_repos.services.pipeline import PipelineRunner, split_names

console = Console()
error_console = Console(stderr=True)


def _build_config(parsed_args, **overrides) -> Config:
    values = {
        "list_file": parsed_args.list_file,
        "verbose": parsed_args.verbose,
        "debug": parsed_args.debug,
    }
    for name in ("workspace_file", "dry_run"):
        if hasattr(parsed_args, name):
            values[name] = getattr(parsed_args, name)
    if hasattr(parsed_args, "backend"):
        values["workspace_backend"] = parsed_args.backend
    values.update(overrides)
    return Config(**values)


def _start(parsed_args, **overrides) -> Config:
    setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, log_file=parsed_args.log_file)
    config = _build_config(parsed_args, **overrides)
    if parsed_args.debug:
        error_console.print("[yellow]Configuration:[/yellow]")
        for key, value in config.to_dict().items():
            if key == "github_token":
                value = "***" if config.resolve_github_token() else None
            error_console.print(f"  {key}: {value}", highlight=False)
    return config


def command(func):
    """Map errors to exit codes; the wrapped function returns the exit code."""

    @wraps(func)
    def wrapper(argv=None):
        try:
            return func(argv)
        except KeyboardInterrupt:
            error_console.print("\n[yellow]Operation cancelled by user[/yellow]")
            return 1
        except (CompReposError, ValueError) as e:
            error_console.print(f"[red]Error: {escape(str(e))}[/red]", soft_wrap=True)
            return 1

    return wrapper


@command
def setup_repos_main(argv=None):
    """Clone every listed repository and write the workspace file."""
    parsed_args = parse_setup_args(argv)
    config = _start(
        parsed_args,
        branch_mismatch=parsed_args.branch_mismatch,
        fail_fast=parsed_args.fail_fast,
        strict=parsed_args.strict,
        write_workspace=not parsed_args.no_workspace,
    )

    summary = RepoSetup(os.getcwd(), config, console=console).run()
    if summary.aborted:
        return 1
    if config.strict and summary.failures:
        return 1
    return 0


@command
def workspace_add_main(argv=None):
    """Rewrite the workspace folders from the list file without cloning."""
    parsed_args = parse_workspace_args(argv)
    config = _start(parsed_args)

    path, folders = RepoSetup(os.getcwd(), config, console=console).update_workspace()
    console.print(f"[green]✓ Workspace updated: {escape(str(path))}[/green]")
    for folder in folders:
        console.print(f"  {escape(folder)}", highlight=False)
    return 0


@command
def run_pipeline_main(argv=None):
    """Set up the repositories and run each one's run.sh."""
    parsed_args = parse_pipeline_args(argv)
    config = _start(parsed_args)

    PipelineRunner(os.getcwd(), config, console=console).run(
        include=split_names(parsed_args.include),
        exclude=split_names(parsed_args.exclude),
        skip_setup=parsed_args.skip_setup,
        skip_deps=parsed_args.skip_deps,
    )
    return 0


@command
def add_branch_main(argv=None):
    """Create a worktree of the current repository and register it."""
    parsed_args = parse_add_branch_args(argv)
    config = _start(parsed_args)

    dest = BranchAdder(os.getcwd(), config, console=console).add(parsed_args.branch, parsed_args.target_dir)
    console.print(f"[green]✓ Worktree ready: {escape(str(dest))}[/green]")
    return 0


def main(argv=None):
    """Default entry point (``python -m comp_repos``) runs the setup."""
    return setup_repos_main(argv)


if __name__ == "__main__":
    sys.exit(main())
