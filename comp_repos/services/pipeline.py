"""Pipeline runner: set up the repositories, install dependencies, run each run.sh."""

import os
import stat
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Union

from rich.console import Console

from comp_repos.config import Config
from comp_repos.constants import INSTALL_DEPS_SCRIPT, RUN_SCRIPT
from comp_repos.exceptions import ConfigurationError, PipelineError
from comp_repos.logging_config import get_logger
from comp_repos.services.list_parser import find_list_file
from comp_repos.services.workspace import find_workspace_file, read_workspace_folders

logger = get_logger(__name__)


def split_names(value: Optional[str]) -> List[str]:
    """Comma separated repository names, blanks dropped."""
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


def should_process(name: str, include: Iterable[str], exclude: Iterable[str]) -> bool:
    """Include list wins first (when given), then the exclude list."""
    include = list(include)
    if include and name not in include:
        return False
    return name not in exclude


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class PipelineRunner:
    """Runs the analysis pipeline across every folder of the workspace."""

    def __init__(self, search_dir: Union[str, Path], config: Union[Config, dict], console: Optional[Console] = None):
        self.config = Config.from_dict(config) if isinstance(config, dict) else config
        self.search_dir = Path(search_dir).resolve()
        self.list_file = find_list_file(self.search_dir, self.config.list_file)
        self.anchor_dir = self.list_file.parent
        self.console = console or Console()

    def run(
        self,
        include: Iterable[str] = (),
        exclude: Iterable[str] = (),
        skip_setup: bool = False,
        skip_deps: bool = False,
    ) -> List[str]:
        """Run every step and return the folders whose run.sh was executed.

        Raises:
            ConfigurationError: if there is no workspace file to read folders from
            PipelineError: at the first run.sh that exits non-zero
        """
        include, exclude = list(include), list(exclude)
        planned_folders = None

        if skip_setup:
            self.console.print("=== 1) Skipping setup step (--skip-setup) ===")
        else:
            self.console.print("=== 1) Setting up repositories ===")
            planned_folders = self.setup()

        if skip_deps:
            self.console.print("=== 2) Skipping R dependencies (--skip-deps) ===")
        else:
            self.install_dependencies()

        self.console.print(f"=== 3) Executing {RUN_SCRIPT} in repositories ===")
        if self.config.dry_run and planned_folders is not None:
            folders = planned_folders
        else:
            folders = self.workspace_folders()

        executed = []
        for folder in folders:
            full_path = Path(os.path.normpath(self.anchor_dir / folder))
            name = full_path.name
            if not should_process(name, include, exclude):
                logger.info(f"Skipping {name}")
                continue
            if not full_path.is_dir():
                self.console.print(f"[yellow]Folder not found: {full_path}[/yellow]", highlight=False)
                continue
            script = full_path / RUN_SCRIPT
            if not script.is_file():
                logger.info(f"{name}: no {RUN_SCRIPT}")
                continue

            self.console.print(f"⏵ {name}: {RUN_SCRIPT} found", highlight=False)
            executed.append(folder)
            if self.config.dry_run:
                self.console.print(f"  Would chmod +x and execute {script}", highlight=False)
                continue
            self.run_script(full_path)

        if not executed:
            self.console.print(f"No {RUN_SCRIPT} found in any of the repositories.")
        elif not self.config.dry_run:
            self.console.print("[green]✓ Pipeline execution complete.[/green]")
        return executed

    def setup(self) -> List[str]:
        # Imported here because core imports the services package
        from comp_repos.core import RepoSetup

        setup = RepoSetup(self.search_dir, self.config, console=self.console)
        summary = setup.run()
        if summary.aborted:
            failed = summary.failures[0].resolution.record
            raise ConfigurationError(f"setup stopped at line {failed.line_number}: {failed}")
        return summary.folders

    def install_dependencies(self) -> None:
        """Run the R dependency installer when the project ships one; failures only warn."""
        script = self.anchor_dir / INSTALL_DEPS_SCRIPT
        if not (script.is_file() and os.access(script, os.X_OK)):
            logger.info(f"{INSTALL_DEPS_SCRIPT} not found; skipping dependency installation")
            return

        self.console.print("=== 2) Installing R dependencies ===")
        if self.config.dry_run:
            self.console.print(f"  Would execute {script}", highlight=False)
            return
        try:
            result = subprocess.run([str(script)], cwd=str(self.anchor_dir))
        except OSError as e:
            logger.warning(f"Could not run {script}: {e}")
            return
        if result.returncode != 0:
            self.console.print(
                f"[yellow]Warning: {script.name} failed (exit {result.returncode}); continuing...[/yellow]"
            )

    def workspace_folders(self) -> List[str]:
        path = find_workspace_file(self.anchor_dir, self.config.workspace_file)
        if not path.is_file():
            raise ConfigurationError(
                f"Workspace file '{path}' not found. Run setup-repos first to generate it."
            )
        return read_workspace_folders(path)

    def run_script(self, folder: Path) -> None:
        script = folder / RUN_SCRIPT
        make_executable(script)
        logger.info(f"cd {folder} && ./{RUN_SCRIPT}")
        result = subprocess.run([f"./{RUN_SCRIPT}"], cwd=str(folder))
        if result.returncode != 0:
            raise PipelineError(str(folder), result.returncode)
