"""Parser for the repository list file.

Each non-blank, non-comment line is one of::

    owner/repo[@branch] [target_dir] [-a|--all-branches]
    https://host/owner/repo[@branch] [target_dir] [-a|--all-branches]
    @branch [target_dir] [-n|--no-worktree]

Tokens are separated by whitespace. Single quotes group text literally,
double quotes group text and honour backslash escapes, and a backslash outside
quotes escapes the next character. An unquoted ``#`` at the start of a token
starts a comment that runs to the end of the line.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from comp_repos.constants import (
    ALL_BRANCHES_FLAGS,
    DEFAULT_LIST_FILE,
    LEGACY_LIST_FILE,
    NO_WORKTREE_FLAGS,
)
from comp_repos.exceptions import ListFileNotFoundError, ListSyntaxError
from comp_repos.logging_config import get_logger
from comp_repos.models.record import ParseDiagnostic, Record, RecordFlag, RecordKind

logger = get_logger(__name__)


@dataclass
class ParsedList:
    """All records of a list file plus the lines that were dropped."""
    path: Optional[Path]
    records: List[Record] = field(default_factory=list)
    diagnostics: List[ParseDiagnostic] = field(default_factory=list)


def tokenize(line: str, line_number: Optional[int] = None) -> List[str]:
    """Split a list-file line into tokens, dropping any trailing comment."""
    tokens: List[str] = []
    current: List[str] = []
    in_token = False
    quote: Optional[str] = None
    line = line.rstrip("\r\n")
    i = 0

    while i < len(line):
        ch = line[i]
        if quote == "'":
            if ch == "'":
                quote = None
            else:
                current.append(ch)
        elif quote == '"':
            if ch == "\\" and i + 1 < len(line) and line[i + 1] in '"\\':
                i += 1
                current.append(line[i])
            elif ch == '"':
                quote = None
            else:
                current.append(ch)
        elif ch.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        elif ch == "#" and not in_token:
            break
        elif ch in ("'", '"'):
            quote = ch
            in_token = True
        elif ch == "\\" and i + 1 < len(line):
            i += 1
            current.append(line[i])
            in_token = True
        else:
            current.append(ch)
            in_token = True
        i += 1

    if quote:
        raise ListSyntaxError(f"unterminated {quote} quote", line_number)
    if in_token:
        tokens.append("".join(current))
    return tokens


def split_repo_spec(spec: str) -> Tuple[str, Optional[str]]:
    """Split ``repo[@branch]`` into the repository part and the branch.

    The separator is the first ``@`` after any URL scheme and after any
    ``user@host`` prefix, so ``git@github.com:owner/repo@dev`` and
    ``https://user@host/owner/repo@dev`` both split on the last part.
    """
    start = 0
    scheme_end = spec.find("://")
    if scheme_end != -1:
        start = scheme_end + 3

    rest = spec[start:]
    slash = rest.find("/")
    at = rest.find("@")
    if at != -1 and (slash == -1 or at < slash):
        host_part = rest[at + 1:slash] if slash != -1 else rest[at + 1:]
        if scheme_end != -1 or ":" in host_part:
            start += at + 1

    sep = spec.find("@", start)
    if sep == -1:
        return spec, None
    return spec[:sep], spec[sep + 1:]


def repo_name_from_spec(spec: str) -> str:
    """Derive the directory-friendly repository name from a repo spec."""
    name = spec.rstrip("/")
    if name.endswith(".git"):
        name = name[:-len(".git")]
    return re.split(r"[/:]", name)[-1]


def parse_line(line: str, line_number: int = 0) -> Optional[Record]:
    """Parse one line; return None for blank and comment lines.

    Raises:
        ListSyntaxError: if the line cannot be turned into a record
    """
    tokens = tokenize(line, line_number)
    if not tokens:
        return None

    first, options = tokens[0], tokens[1:]
    if first.startswith("@"):
        kind = RecordKind.WORKTREE
        repo_spec = None
        branch: Optional[str] = first[1:]
        if not branch:
            raise ListSyntaxError("missing branch name after '@'", line_number)
    else:
        kind = RecordKind.CLONE
        repo_spec, branch = split_repo_spec(first)
        if not repo_spec:
            raise ListSyntaxError("missing repository before '@'", line_number)
        if branch == "":
            raise ListSyntaxError("missing branch name after '@'", line_number)

    flags = set()
    target_dir = None
    for option in options:
        if option in ALL_BRANCHES_FLAGS:
            flags.add(RecordFlag.ALL_BRANCHES)
        elif option in NO_WORKTREE_FLAGS:
            flags.add(RecordFlag.NO_WORKTREE)
        elif option.startswith("-"):
            logger.debug(f"line {line_number}: ignoring unknown option {option}")
        elif target_dir is None:
            target_dir = option
        else:
            logger.debug(f"line {line_number}: ignoring extra argument {option}")

    return Record(
        kind=kind,
        repo_spec=repo_spec,
        branch=branch,
        target_dir=target_dir,
        flags=frozenset(flags),
        line_number=line_number,
        raw=line.rstrip("\r\n"),
    )


def iter_records(lines: Iterable[str]) -> Iterator[Union[Record, ParseDiagnostic]]:
    """Lazily yield a record, or a diagnostic for each malformed line."""
    for line_number, line in enumerate(lines, start=1):
        try:
            record = parse_line(line, line_number)
        except ListSyntaxError as e:
            yield ParseDiagnostic(line_number=line_number, line=line, reason=e.reason)
            continue
        if record is not None:
            yield record


def parse_lines(lines: Iterable[str], path: Optional[Path] = None) -> ParsedList:
    """Collect records and diagnostics from an iterable of lines."""
    parsed = ParsedList(path=path)
    for item in iter_records(lines):
        if isinstance(item, ParseDiagnostic):
            logger.warning(f"Skipping malformed {item}")
            parsed.diagnostics.append(item)
        else:
            parsed.records.append(item)
    return parsed


def parse_list_file(path: Union[str, Path]) -> ParsedList:
    """Read and parse a repository list file."""
    path = Path(path)
    if not path.is_file():
        raise ListFileNotFoundError(str(path))
    text = path.read_text(encoding="utf-8-sig")
    parsed = parse_lines(text.splitlines(), path=path)
    logger.debug(f"Parsed {len(parsed.records)} records from {path}")
    return parsed


def find_list_file(search_dir: Union[str, Path], explicit: Optional[str] = None) -> Path:
    """Locate the list file.

    An explicit path is taken relative to ``search_dir``. Otherwise
    ``repos.list`` is used, or ``repos-to-clone.list`` when only that exists.

    Raises:
        ListFileNotFoundError: if the chosen file does not exist
    """
    search_dir = Path(search_dir)
    if explicit:
        candidate = search_dir / explicit
    else:
        candidate = search_dir / DEFAULT_LIST_FILE
        legacy = search_dir / LEGACY_LIST_FILE
        if not candidate.is_file() and legacy.is_file():
            candidate = legacy

    if not candidate.is_file():
        raise ListFileNotFoundError(str(candidate))
    return candidate.resolve()


def remote_url_from_spec(spec: str, base_url: str) -> str:
    """Turn a repo spec into something ``git clone`` accepts.

    ``owner/repo`` specs are joined onto ``base_url``; URLs, scp-like
    addresses (``git@host:owner/repo``) and absolute paths are returned as-is.
    """
    if "://" in spec or Path(spec).is_absolute():
        return spec
    if re.match(r"^[\w.-]+@[\w.-]+:", spec):
        return spec
    return f"{base_url.rstrip('/')}/{spec}"
