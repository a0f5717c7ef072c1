"""Pytest fixtures for comp-repos tests"""
import io
import tempfile
from pathlib import Path

import pytest
import git
from rich.console import Console

from comp_repos.models.resolution import FallbackCursor
from comp_repos.services.git import GitOperations
from comp_repos.services.list_parser import parse_lines
from comp_repos.services.path_resolver import resolve_records
from comp_repos.services.planner import plan_references


def init_repo(path: Path, branch: str = "main") -> git.Repo:
    """Create a repository at ``path`` with one commit on ``branch``."""
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    readme = path / "README.md"
    readme.write_text(f"# {path.name}\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    repo.git.branch("-M", branch)
    return repo


def commit_file(repo: git.Repo, name: str, content: str, message: str) -> None:
    (Path(repo.working_tree_dir) / name).write_text(content)
    repo.index.add([name])
    repo.index.commit(message)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def remotes_dir(temp_dir):
    """Directory holding bare repositories laid out as ``owner/name``."""
    path = temp_dir / "remotes"
    path.mkdir()
    return path


@pytest.fixture
def make_remote(temp_dir, remotes_dir):
    """Factory creating a bare ``owner/name`` remote with a main branch plus ``branches``."""

    def _make_remote(owner: str, name: str, branches=()) -> Path:
        seed = init_repo(temp_dir / "seeds" / owner / name)
        for branch in branches:
            seed.git.checkout("-b", branch)
            commit_file(seed, f"{branch.replace('/', '_')}.txt", f"{branch}\n", f"Work on {branch}")
            seed.git.checkout("main")

        bare_path = remotes_dir / owner / name
        bare_path.mkdir(parents=True)
        bare = git.Repo.init(bare_path, bare=True)
        bare.git.symbolic_ref("HEAD", "refs/heads/main")
        bare.close()

        seed.create_remote("origin", str(bare_path))
        seed.git.push("origin", "--all")
        seed.close()
        return bare_path

    return _make_remote


@pytest.fixture
def anchor_dir(temp_dir, make_remote):
    """The ``Comp`` anchor repository, cloned from its own remote into ``work/``."""
    remote = make_remote("SATVILab", "Comp")
    work = temp_dir / "work"
    work.mkdir()
    anchor = work / "Comp"
    repo = git.Repo.clone_from(str(remote), str(anchor))
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()
    repo.close()
    return anchor


@pytest.fixture
def plain_anchor_dir(temp_dir):
    """An anchor directory named ``Comp`` that is not a git repository."""
    anchor = temp_dir / "work" / "Comp"
    anchor.mkdir(parents=True)
    return anchor


@pytest.fixture
def mock_config(remotes_dir):
    """Create a configuration dictionary pointing at the local remotes."""
    return {
        "verbose": False,
        "debug": False,
        "dry_run": False,
        "workspace_backend": "json",
        "branch_mismatch": "ignore",
        "git_base_url": remotes_dir.as_uri(),
        "github_token": None,
    }


@pytest.fixture
def console():
    """Rich console writing into a buffer; read it with ``console.file.getvalue()``."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def resolve_list(mock_config):
    """Parse list text and resolve it against an anchor directory."""

    def _resolve(anchor: Path, text: str, config=None):
        config = config or mock_config
        parsed = parse_lines(text.splitlines())
        remote = GitOperations(config).get_remote_url(anchor)
        start = FallbackCursor.anchor(anchor, remote=remote)
        table = plan_references(parsed.records, start)
        return resolve_records(parsed.records, table, start, anchor, base_url=config["git_base_url"])

    return _resolve


@pytest.fixture
def write_list():
    """Write a list file into an anchor directory."""

    def _write_list(anchor: Path, text: str, name: str = "repos.list") -> Path:
        path = anchor / name
        path.write_text(text)
        return path

    return _write_list


@pytest.fixture
def new_repo():
    """Expose init_repo to tests."""
    return init_repo
