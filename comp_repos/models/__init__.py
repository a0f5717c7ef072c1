"""Data models for comp-repos."""

from .record import Record, RecordKind, RecordFlag, ParseDiagnostic
from .resolution import FallbackCursor, ResolvedPath, Resolution
from .outcome import Action, RecordOutcome, RunSummary
from .worktree import WorktreeInfo, WorktreeCreation, BranchSource

__all__ = [
    "Record",
    "RecordKind",
    "RecordFlag",
    "ParseDiagnostic",
    "FallbackCursor",
    "ResolvedPath",
    "Resolution",
    "Action",
    "RecordOutcome",
    "RunSummary",
    "WorktreeInfo",
    "WorktreeCreation",
    "BranchSource",
]
