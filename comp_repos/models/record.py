"""Repository list record model and related enums"""
import shlex
from enum import Enum
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


class RecordKind(Enum):
    """Kind of a parsed list line."""
    CLONE = "clone"
    WORKTREE = "worktree"


class RecordFlag(Enum):
    """Per-line options recognized in the list file."""
    ALL_BRANCHES = "all-branches"
    NO_WORKTREE = "no-worktree"


@dataclass(frozen=True)
class Record:
    """One parsed line of the repository list file."""
    kind: RecordKind
    repo_spec: Optional[str] = None  # owner/repo or URL, clone lines only
    branch: Optional[str] = None
    target_dir: Optional[str] = None
    flags: FrozenSet[RecordFlag] = field(default_factory=frozenset)
    line_number: int = 0
    raw: str = ""

    def __post_init__(self):
        if self.kind is RecordKind.CLONE:
            if not self.repo_spec:
                raise ValueError("clone record requires a repo_spec")
        elif self.repo_spec is not None or not self.branch:
            raise ValueError("worktree record requires a branch and no repo_spec")

    @property
    def is_clone(self) -> bool:
        return self.kind is RecordKind.CLONE

    @property
    def is_worktree(self) -> bool:
        return self.kind is RecordKind.WORKTREE

    @property
    def all_branches(self) -> bool:
        return RecordFlag.ALL_BRANCHES in self.flags

    @property
    def no_worktree(self) -> bool:
        return RecordFlag.NO_WORKTREE in self.flags

    def __str__(self) -> str:
        """List-file form of the record."""
        if self.is_clone:
            head = f"{self.repo_spec}@{self.branch}" if self.branch else self.repo_spec
        else:
            head = f"@{self.branch}"
        parts = [head]
        if self.target_dir:
            parts.append(shlex.quote(self.target_dir))
        if self.all_branches:
            parts.append("--all-branches")
        if self.no_worktree:
            parts.append("--no-worktree")
        return " ".join(parts)


@dataclass(frozen=True)
class ParseDiagnostic:
    """A dropped line of the list file and why it was dropped."""
    line_number: int
    line: str
    reason: str

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.reason} ({self.line.strip()!r})"
