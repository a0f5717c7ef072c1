"""Display and formatting service for setup runs"""
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typing import Optional, Sequence

from comp_repos.constants import (
    ActionStyleType,
    CLI_COLORS,
    SYMBOL_FAILED,
    SYMBOL_OK,
    SYMBOL_PLANNED,
    SYMBOL_SKIPPED,
)
from comp_repos.logging_config import get_logger
from comp_repos.models.outcome import Action, RecordOutcome, RunSummary

logger = get_logger(__name__)

ACTION_STYLES = {
    Action.CLONED: (ActionStyleType.CREATED, SYMBOL_OK),
    Action.WORKTREE_CREATED: (ActionStyleType.CREATED, SYMBOL_OK),
    Action.EXISTS: (ActionStyleType.EXISTS, SYMBOL_SKIPPED),
    Action.WOULD_CLONE: (ActionStyleType.PLANNED, SYMBOL_PLANNED),
    Action.WOULD_CREATE_WORKTREE: (ActionStyleType.PLANNED, SYMBOL_PLANNED),
    Action.FAILED: (ActionStyleType.FAILED, SYMBOL_FAILED),
}


def format_action(action: Action) -> str:
    """Action label wrapped in its Rich color."""
    style_type, symbol = ACTION_STYLES[action]
    color = CLI_COLORS.get(style_type)
    return f"[{color}]{symbol} {action.value}[/{color}]"


class DisplayService:
    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def print_outcome(self, outcome: RecordOutcome) -> None:
        """One progress line per processed record."""
        path = outcome.resolution.path.relative
        line = f"{format_action(outcome.action)} {escape(path)}"
        if outcome.message and (self.verbose or outcome.action is not Action.EXISTS):
            line += f" [dim]- {escape(outcome.message)}[/dim]"
        self.console.print(line, highlight=False)

    def display_summary_table(self, summary: RunSummary) -> None:
        """Table of every record with the action taken."""
        table = Table(title="Dry run" if summary.dry_run else None)
        table.add_column("Line", justify="right")
        table.add_column("Entry")
        table.add_column("Path")
        table.add_column("Fallback")
        table.add_column("Action")

        for outcome in summary.outcomes:
            resolution = outcome.resolution
            table.add_row(
                str(resolution.record.line_number),
                escape(str(resolution.record)),
                escape(resolution.path.relative),
                escape(resolution.fallback.name),
                format_action(outcome.action),
            )
        self.console.print(table)

    def print_folders(self, folders: Sequence[str]) -> None:
        for folder in folders:
            self.console.print(f"  {escape(folder)}", highlight=False)

    def print_summary(self, summary: RunSummary) -> None:
        """Closing lines: counts, workspace file and any failures."""
        if self.verbose and summary.outcomes:
            self.display_summary_table(summary)

        if summary.dry_run:
            planned = len([o for o in summary.outcomes
                           if o.action in (Action.WOULD_CLONE, Action.WOULD_CREATE_WORKTREE)])
            self.console.print(f"\n[cyan]Dry run: {planned} to create, nothing was changed.[/cyan]")
            self.console.print("Workspace folders:")
            self.print_folders(summary.folders)
            return

        existing = len([o for o in summary.outcomes if o.action is Action.EXISTS])
        self.console.print(
            f"\nSummary: {len(summary.changes)} created, {existing} already present, "
            f"{len(summary.failures)} failed"
        )
        if summary.workspace_file:
            self.console.print(f"Workspace: {summary.workspace_file}", highlight=False)

        if summary.failures:
            self.console.print(f"[yellow]Warning: {len(summary.failures)} entries failed:[/yellow]")
            for outcome in summary.failures:
                record = outcome.resolution.record
                message = escape(outcome.message or "")
                self.console.print(
                    f"  [red]line {record.line_number}: {escape(str(record))}[/red] - {message}", highlight=False
                )
        if summary.aborted:
            self.console.print("[red]Stopped after the first failure (--fail-fast).[/red]")
