"""Workspace descriptor (VS Code ``.code-workspace``) reading and writing.

Only the ``folders`` key is owned by comp-repos. It is replaced wholesale on
every write; every other top-level key is kept as it was.
"""

import json
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union, TYPE_CHECKING

from comp_repos.constants import CAMEL_WORKSPACE_FILE, DEFAULT_WORKSPACE_FILE, WORKSPACE_FOLDERS_KEY
from comp_repos.exceptions import WorkspaceBackendError, WorkspaceError
from comp_repos.logging_config import get_logger

if TYPE_CHECKING:
    from comp_repos.config import Config

logger = get_logger(__name__)


def find_workspace_file(anchor_dir: Union[str, Path], explicit: Optional[str] = None) -> Path:
    """Workspace file to use; prefers lower-case, CamelCase only if that is all there is."""
    anchor_dir = Path(anchor_dir)
    if explicit:
        return anchor_dir / explicit
    default = anchor_dir / DEFAULT_WORKSPACE_FILE
    camel = anchor_dir / CAMEL_WORKSPACE_FILE
    if not default.is_file() and camel.is_file():
        return camel
    return default


def read_workspace(path: Union[str, Path]) -> dict:
    """Load a workspace descriptor.

    Raises:
        WorkspaceError: if the file is unreadable or not a JSON object
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise WorkspaceError(f"Cannot read workspace file '{path}': {e}")
    if not isinstance(data, dict):
        raise WorkspaceError(f"Workspace file '{path}' does not contain a JSON object")
    return data


def read_workspace_folders(path: Union[str, Path]) -> List[str]:
    """Folder paths listed in a workspace descriptor, in order."""
    folders = read_workspace(path).get(WORKSPACE_FOLDERS_KEY, [])
    return [entry["path"] for entry in folders if isinstance(entry, dict) and "path" in entry]


def folder_entries(folders: Sequence[str]) -> List[dict]:
    return [{"path": folder} for folder in folders]


def atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to a temp file next to ``path`` and move it into place."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class WorkspaceWriter:
    """Writes the folder list into a workspace descriptor."""

    name = "base"

    def write(self, path: Path, folders: Sequence[str]) -> None:
        raise NotImplementedError


class JsonWorkspaceWriter(WorkspaceWriter):
    """In-process writer using the json module."""

    name = "json"

    def write(self, path: Path, folders: Sequence[str]) -> None:
        path = Path(path)
        data = read_workspace(path) if path.exists() else {}
        data[WORKSPACE_FOLDERS_KEY] = folder_entries(folders)
        atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
        logger.debug(f"Wrote {len(folders)} folders to {path} with json")


class JqWorkspaceWriter(WorkspaceWriter):
    """Writer that delegates the JSON edit to the ``jq`` executable."""

    name = "jq"

    def __init__(self, executable: Optional[str] = None):
        self.executable = executable or shutil.which("jq")
        if not self.executable:
            raise WorkspaceBackendError("jq", "executable not found on PATH")

    def write(self, path: Path, folders: Sequence[str]) -> None:
        path = Path(path)
        folders_json = json.dumps(folder_entries(folders))
        if path.exists():
            cmd = [self.executable, "--argjson", "folders", folders_json,
                   f".{WORKSPACE_FOLDERS_KEY} = $folders", str(path)]
        else:
            cmd = [self.executable, "--null-input", "--argjson", "folders", folders_json,
                   f"{{{WORKSPACE_FOLDERS_KEY}: $folders}}"]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, encoding="utf-8")
        except OSError as e:
            raise WorkspaceBackendError("jq", str(e))
        if result.returncode != 0:
            raise WorkspaceError(f"jq could not update '{path}': {result.stderr.strip()}")

        atomic_write(path, result.stdout if result.stdout.endswith("\n") else result.stdout + "\n")
        logger.debug(f"Wrote {len(folders)} folders to {path} with jq")


def get_workspace_writer(backend: str = "json") -> WorkspaceWriter:
    """Writer for a configured backend name (``json``, ``jq`` or ``auto``).

    Raises:
        WorkspaceBackendError: if the backend is unknown or unavailable
    """
    if backend == "json":
        return JsonWorkspaceWriter()
    if backend == "jq":
        return JqWorkspaceWriter()
    if backend == "auto":
        if shutil.which("jq"):
            return JqWorkspaceWriter()
        return JsonWorkspaceWriter()
    raise WorkspaceBackendError(backend, "unknown backend")


class WorkspaceEmitter:
    """Locates the descriptor for an anchor directory and writes folders into it."""

    def __init__(self, config: Union["Config", dict], writer: Optional[WorkspaceWriter] = None):
        self.config = config
        self.explicit_file = config.get("workspace_file")
        self.writer = writer or get_workspace_writer(config.get("workspace_backend", "json"))

    def workspace_path(self, anchor_dir: Union[str, Path]) -> Path:
        return find_workspace_file(anchor_dir, self.explicit_file)

    def emit(self, anchor_dir: Union[str, Path], folders: Sequence[str]) -> Path:
        """Write ``folders`` into the anchor's workspace file and return its path."""
        path = self.workspace_path(anchor_dir)
        created = not path.exists()
        self.writer.write(path, folders)
        verb = "Created" if created else "Updated"
        logger.info(f"{verb} '{path}' with {self.writer.name}")
        return path
