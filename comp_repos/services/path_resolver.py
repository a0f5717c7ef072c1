"""Path resolution for list records.

Every record maps to a directory next to the anchor repository (one level
below the anchor's parent directory). Precedence: explicit target directory,
then ``<fallback>-<branch>`` for worktrees, then ``<repo>-<branch>`` for
branch clones of a repository referenced more than once, then ``<repo>``.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional

from comp_repos.logging_config import get_logger
from comp_repos.models.record import Record
from comp_repos.models.resolution import FallbackCursor, Resolution, ResolvedPath
from comp_repos.services.list_parser import remote_url_from_spec
from comp_repos.services.planner import DisambiguationTable, referenced_repo

logger = get_logger(__name__)


def sanitize_branch_name(branch: str) -> str:
    """Replace slashes so ``feat/x`` does not create nested directories."""
    return branch.replace("/", "-")


def relative_to_anchor(path: Path, anchor_dir: Path) -> str:
    """Path of ``path`` relative to the anchor directory, with forward slashes."""
    path = Path(path)
    anchor_dir = Path(anchor_dir)
    if path == anchor_dir:
        return "."
    try:
        relative = os.path.relpath(path, anchor_dir)
    except ValueError:
        # No common root (e.g. another drive); paths sit one level below the
        # anchor's parent, so this is exact.
        relative = os.path.join("..", path.name)
    return relative.replace(os.sep, "/")


def directory_name(record: Record, table: DisambiguationTable, fallback: FallbackCursor) -> str:
    """Directory name (or explicit target) for a record."""
    if record.target_dir:
        return record.target_dir

    if record.is_worktree:
        return f"{fallback.name}-{sanitize_branch_name(record.branch)}"

    repo_name = referenced_repo(record, fallback)
    if record.branch and table.is_ambiguous(repo_name):
        return f"{repo_name}-{sanitize_branch_name(record.branch)}"
    return repo_name


def resolve(
    record: Record,
    table: DisambiguationTable,
    fallback: FallbackCursor,
    anchor_dir: Path,
) -> ResolvedPath:
    """Compute the absolute and anchor-relative path of a record."""
    anchor_dir = Path(anchor_dir)
    parent_dir = anchor_dir.parent
    absolute = Path(os.path.normpath(parent_dir / directory_name(record, table, fallback)))
    return ResolvedPath(absolute=absolute, relative=relative_to_anchor(absolute, anchor_dir))


def resolve_records(
    records: Iterable[Record],
    table: DisambiguationTable,
    start: FallbackCursor,
    anchor_dir: Path,
    base_url: str = "https://github.com",
) -> List[Resolution]:
    """Resolve every record in order, threading the fallback cursor through.

    Clone records move the cursor to their repository, carrying along where it
    will live on disk and its remote URL so later worktree lines can use it.
    """
    cursor = start
    resolutions = []
    logger.debug(f"Initial fallback repo: {cursor.name}")

    for record in records:
        logger.debug(f"Processing line {record.line_number}: {record}")
        repo_name = referenced_repo(record, cursor)
        path = resolve(record, table, cursor, anchor_dir)
        resolutions.append(Resolution(record=record, path=path, fallback=cursor, repo_name=repo_name))

        if record.is_clone:
            remote: Optional[str] = remote_url_from_spec(record.repo_spec, base_url)
            cursor = cursor.advance(record, repo_name, path=path.absolute, remote=remote)
            logger.debug(f"  Clone line: repo={repo_name}, path={path.absolute}, new fallback={cursor.name}")
        else:
            mode = "clone" if record.no_worktree else "worktree"
            logger.debug(
                f"  @branch ({mode}): branch={record.branch}, fallback={cursor.name}, path={path.absolute}"
            )

    return resolutions


def workspace_folders(resolutions: Iterable[Resolution]) -> List[str]:
    """Folder list for the workspace: the anchor first, then list order."""
    folders = ["."]
    for resolution in resolutions:
        if resolution.path.is_anchor:
            continue
        folders.append(resolution.path.relative)
    return folders
