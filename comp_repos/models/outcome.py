"""Materialization outcome models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from comp_repos.models.resolution import Resolution


class Action(Enum):
    """What the materializer did (or would do) for a record."""
    CLONED = "cloned"
    WORKTREE_CREATED = "worktree"
    EXISTS = "exists"
    WOULD_CLONE = "would-clone"
    WOULD_CREATE_WORKTREE = "would-worktree"
    FAILED = "failed"


@dataclass
class RecordOutcome:
    """Result of materializing one resolved record."""
    resolution: Resolution
    action: Action
    message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.action is Action.FAILED

    @property
    def changed(self) -> bool:
        return self.action in (Action.CLONED, Action.WORKTREE_CREATED)


@dataclass
class RunSummary:
    """Everything a setup run produced."""
    outcomes: List[RecordOutcome] = field(default_factory=list)
    folders: List[str] = field(default_factory=list)
    workspace_file: Optional[Path] = None
    dry_run: bool = False
    aborted: bool = False  # fail-fast stopped the loop

    @property
    def failures(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def changes(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if o.changed]

    @property
    def ok(self) -> bool:
        return not self.failures and not self.aborted
