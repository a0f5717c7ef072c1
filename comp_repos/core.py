"""Core functionality for comp-repos"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

from rich.console import Console

from comp_repos.config import Config
from comp_repos.constants import DEFAULT_LIST_FILE, LEGACY_LIST_FILE
from comp_repos.exceptions import ConfigurationError, ListSyntaxError
from comp_repos.logging_config import get_logger
from comp_repos.models.outcome import RunSummary
from comp_repos.models.record import Record, RecordKind
from comp_repos.models.resolution import FallbackCursor, Resolution
from comp_repos.services.display_service import DisplayService
from comp_repos.services.git import GitOperations, WorktreeService
from comp_repos.services.list_parser import ParsedList, find_list_file, parse_list_file, tokenize
from comp_repos.services.materializer import Materializer
from comp_repos.services.path_resolver import resolve, resolve_records, workspace_folders
from comp_repos.services.planner import DisambiguationTable, plan_references
from comp_repos.services.workspace import WorkspaceEmitter, WorkspaceWriter

logger = get_logger(__name__)


def _as_config(config: Union[Config, dict]) -> Config:
    # Convert dict to Config if needed
    if isinstance(config, dict):
        return Config.from_dict(config)
    return config


class RepoSetup:
    """Clones the repositories named in the list file and writes the workspace.

    The list file is parsed once. A pure planning pass counts references per
    repository, then the resolver pass computes every path before anything is
    cloned, so later lines can influence the names of earlier ones.
    """

    def __init__(
        self,
        search_dir: Union[str, Path],
        config: Union[Config, dict],
        console: Optional[Console] = None,
        git_ops: Optional[GitOperations] = None,
        writer: Optional[WorkspaceWriter] = None,
    ):
        """Initialize RepoSetup.

        Args:
            search_dir: Directory the list file is looked up in (usually cwd)
            config: Configuration dict or Config object
            console: Rich console for status output
            git_ops: Git operations service (injected in tests)
            writer: Workspace writer; defaults to the configured backend

        Raises:
            ListFileNotFoundError: if the list file does not exist
        """
        self.config = _as_config(config)
        self.list_file = find_list_file(Path(search_dir).resolve(), self.config.list_file)
        self.anchor_dir = self.list_file.parent
        self.git_ops = git_ops or GitOperations(self.config)
        self.display_service = DisplayService(console, verbose=self.config.verbose)
        self._writer = writer

        logger.debug(f"Using repo list file: {self.list_file}")
        logger.debug(f"Anchor dir: {self.anchor_dir}")

    def start_cursor(self) -> FallbackCursor:
        """Fallback cursor seeded from the anchor repository."""
        return FallbackCursor.anchor(self.anchor_dir, remote=self.git_ops.get_remote_url(self.anchor_dir))

    def plan(self) -> Tuple[ParsedList, DisambiguationTable, List[Resolution]]:
        """Parse, count references and resolve every record. No side effects."""
        parsed = parse_list_file(self.list_file)
        start = self.start_cursor()
        table = plan_references(parsed.records, start)
        resolutions = resolve_records(
            parsed.records, table, start, self.anchor_dir, base_url=self.config.git_base_url
        )
        return parsed, table, resolutions

    def emitter(self) -> WorkspaceEmitter:
        return WorkspaceEmitter(self.config, writer=self._writer)

    def update_workspace(self) -> Tuple[Path, List[str]]:
        """Recompute the folder list and write it, without cloning anything."""
        emitter = self.emitter()
        _, _, resolutions = self.plan()
        folders = workspace_folders(resolutions)
        path = emitter.emit(self.anchor_dir, folders)
        return path, folders

    def run(self) -> RunSummary:
        """Materialize every record, then write the workspace descriptor."""
        dry_run = self.config.dry_run
        write_workspace = self.config.write_workspace and not dry_run
        # Fail on a missing workspace backend before anything is cloned
        emitter = self.emitter() if write_workspace else None

        _, _, resolutions = self.plan()
        summary = RunSummary(dry_run=dry_run, folders=workspace_folders(resolutions))
        if not resolutions:
            self.display_service.console.print("No repositories listed; nothing to clone.")

        materializer = Materializer(self.config, self.git_ops)
        for resolution in resolutions:
            outcome = materializer.materialize(resolution)
            summary.outcomes.append(outcome)
            self.display_service.print_outcome(outcome)
            if outcome.failed and self.config.fail_fast:
                summary.aborted = True
                break

        if emitter and not summary.aborted:
            summary.workspace_file = emitter.emit(self.anchor_dir, summary.folders)

        self.display_service.print_summary(summary)
        return summary


class BranchAdder:
    """Adds a worktree of the anchor repository and registers it in the list file."""

    def __init__(
        self,
        anchor_dir: Union[str, Path],
        config: Union[Config, dict],
        console: Optional[Console] = None,
        git_ops: Optional[GitOperations] = None,
        writer: Optional[WorkspaceWriter] = None,
    ):
        self.config = _as_config(config)
        self.anchor_dir = Path(anchor_dir).resolve()
        self.git_ops = git_ops or GitOperations(self.config)
        self.console = console or Console()
        self._writer = writer

        if self.config.list_file:
            self.list_file = self.anchor_dir / self.config.list_file
        else:
            self.list_file = self.anchor_dir / DEFAULT_LIST_FILE
            legacy = self.anchor_dir / LEGACY_LIST_FILE
            if not self.list_file.exists() and legacy.exists():
                self.list_file = legacy

    def add(self, branch: str, target_dir: Optional[str] = None) -> Path:
        """Create the worktree, register ``@branch`` and refresh the workspace.

        Returns:
            Path of the new worktree

        Raises:
            ConfigurationError: if the anchor is not a repository or the destination exists
            GitOperationError: if git fails
        """
        if not self.git_ops.is_git_repo(self.anchor_dir):
            raise ConfigurationError(f"{self.anchor_dir} is not a Git working tree")

        record = Record(kind=RecordKind.WORKTREE, branch=branch, target_dir=target_dir)
        dest = resolve(record, DisambiguationTable(), FallbackCursor.anchor(self.anchor_dir), self.anchor_dir)
        if dest.absolute.exists():
            raise ConfigurationError(f"destination already exists: {dest.absolute}")

        self.console.print(f"Creating worktree: {dest.absolute}", highlight=False)
        self.console.print(f"  Branch: {branch}", highlight=False)
        self.console.print(f"  Base repo: {self.anchor_dir}", highlight=False)

        creation = WorktreeService(self.anchor_dir, self.git_ops).add_worktree(dest.absolute, branch)
        if creation.push_error:
            self.console.print(f"[yellow]Branch was not pushed: {creation.push_error}[/yellow]")

        if self.register(record):
            self.console.print(f"[green]✓ Added {record} to {self.list_file.name}[/green]")
        else:
            self.console.print(f"Branch already in {self.list_file.name}")

        path, _ = RepoSetup(
            self.anchor_dir,
            Config.from_dict({**self.config.to_dict(), "list_file": self.list_file.name}),
            console=self.console,
            git_ops=self.git_ops,
            writer=self._writer,
        ).update_workspace()
        self.console.print(f"[green]✓ Workspace updated: {path}[/green]")
        return dest.absolute

    def register(self, record: Record) -> bool:
        """Add the record's line to the list file unless ``@branch`` is already there.

        The line goes before the first clone line so it resolves against the
        anchor repository rather than whichever repository was cloned last.

        Returns:
            True if the list file was changed
        """
        lines = self.list_file.read_text(encoding="utf-8").splitlines() if self.list_file.exists() else []
        insert_at = len(lines)
        for index, line in enumerate(lines):
            try:
                tokens = tokenize(line)
            except ListSyntaxError:
                continue
            if not tokens:
                continue
            if tokens[0] == f"@{record.branch}":
                return False
            if not tokens[0].startswith("@") and insert_at == len(lines):
                insert_at = index

        lines.insert(insert_at, str(record))
        self.list_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info(f"Registered '{record}' in {self.list_file}")
        return True
