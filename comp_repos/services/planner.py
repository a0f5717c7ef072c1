"""Reference planning pass.

Counts how many records resolve against each repository before any path is
computed, so clone lines know whether they need a branch suffix.
"""

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from comp_repos.logging_config import get_logger
from comp_repos.models.record import Record
from comp_repos.models.resolution import FallbackCursor
from comp_repos.services.list_parser import repo_name_from_spec

logger = get_logger(__name__)


@dataclass(frozen=True)
class DisambiguationTable:
    """Frozen mapping of repository name to reference count."""

    counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_counts(cls, counts: Mapping[str, int]) -> "DisambiguationTable":
        return cls(MappingProxyType(dict(counts)))

    def count(self, repo_name: str) -> int:
        return self.counts.get(repo_name, 0)

    def is_ambiguous(self, repo_name: str) -> bool:
        """True when more than one record resolves against ``repo_name``."""
        return self.count(repo_name) > 1

    def as_dict(self) -> Dict[str, int]:
        return dict(self.counts)

    def __contains__(self, repo_name: object) -> bool:
        return repo_name in self.counts

    def __len__(self) -> int:
        return len(self.counts)


def referenced_repo(record: Record, fallback: FallbackCursor) -> str:
    """Name of the repository a record resolves against."""
    if record.is_clone:
        return repo_name_from_spec(record.repo_spec)
    return fallback.name


def plan_references(records: Iterable[Record], start: FallbackCursor) -> DisambiguationTable:
    """Build the disambiguation table in a single pure pass over ``records``."""
    counts: Counter = Counter()
    cursor = start
    logger.debug(f"Planning references, fallback starts as: {cursor.name}")

    for record in records:
        repo_name = referenced_repo(record, cursor)
        counts[repo_name] += 1
        if record.is_clone:
            logger.debug(f"  Plan: clone repo={repo_name}, count={counts[repo_name]}")
        else:
            logger.debug(f"  Plan: worktree on fallback={repo_name}, count={counts[repo_name]}")
        cursor = cursor.advance(record, repo_name)

    table = DisambiguationTable.from_counts(counts)
    logger.debug(f"Planning complete: {table.as_dict()}")
    return table


def trace_fallbacks(records: Iterable[Record], start: FallbackCursor) -> List[FallbackCursor]:
    """Return the fallback cursor after each record, in order."""
    cursor = start
    trace = []
    for record in records:
        cursor = cursor.advance(record, referenced_repo(record, cursor))
        trace.append(cursor)
    return trace
