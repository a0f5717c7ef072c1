"""Fallback cursor and resolved path models."""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from comp_repos.models.record import Record


@dataclass(frozen=True)
class FallbackCursor:
    """The repository that bare ``@branch`` lines resolve against.

    ``name`` is the tracked state. ``remote`` and ``path`` describe where that
    repository comes from and where it lives on disk; the planner pass leaves
    them unset because it never touches the filesystem.
    """

    name: str
    remote: Optional[str] = None
    path: Optional[Path] = None

    @classmethod
    def anchor(cls, anchor_dir: Path, remote: Optional[str] = None) -> "FallbackCursor":
        """Cursor seeded from the repository that holds the list file."""
        anchor_dir = Path(anchor_dir)
        return cls(name=anchor_dir.name, remote=remote, path=anchor_dir)

    def advance(
        self,
        record: Record,
        repo_name: str,
        path: Optional[Path] = None,
        remote: Optional[str] = None,
    ) -> "FallbackCursor":
        """Return the cursor after consuming ``record``.

        Clone records move the cursor to their repository; worktree records
        leave it untouched.
        """
        if not record.is_clone:
            return self
        return replace(self, name=repo_name, path=path, remote=remote)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ResolvedPath:
    """Absolute path of a record plus its path relative to the anchor directory."""

    absolute: Path
    relative: str

    @property
    def is_anchor(self) -> bool:
        return self.relative == "."

    def __str__(self) -> str:
        return self.relative


@dataclass(frozen=True)
class Resolution:
    """A record together with its path and the fallback it was resolved against."""

    record: Record
    path: ResolvedPath
    fallback: FallbackCursor
    repo_name: str
