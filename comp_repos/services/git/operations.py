"""Git operations service"""

import base64
from contextlib import nullcontext
from pathlib import Path
from typing import Dict, List, Optional, Union, TYPE_CHECKING
from urllib.parse import urlparse

import git

from comp_repos.constants import GITHUB_HOST
from comp_repos.exceptions import GitOperationError
from comp_repos.logging_config import get_logger

if TYPE_CHECKING:
    from comp_repos.config import Config

logger = get_logger(__name__)


def command_error_message(e: git.exc.GitCommandError, command: str) -> str:
    """Extract a readable message from a GitCommandError."""
    stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else str(e)).strip()
    status = e.status if hasattr(e, "status") else "unknown"
    if stderr:
        return f"git {command} failed (exit {status}): {stderr}"
    return f"git {command} failed with exit code {status}"


def github_auth_env(url: Optional[str], token: Optional[str]) -> Dict[str, str]:
    """Environment that adds a GitHub auth header to git's HTTP requests.

    The header is passed through ``GIT_CONFIG_*`` variables so the token never
    ends up in a remote URL or in the repository config.
    """
    if not url or not token:
        return {}
    parsed = urlparse(url)
    if parsed.scheme != "https" or parsed.hostname != GITHUB_HOST:
        return {}
    credentials = base64.b64encode(f"x-access-token:{token}".encode()).decode()
    return {
        "GIT_CONFIG_COUNT": "1",
        "GIT_CONFIG_KEY_0": f"http.https://{GITHUB_HOST}/.extraheader",
        "GIT_CONFIG_VALUE_0": f"AUTHORIZATION: basic {credentials}",
    }


class GitOperations:
    """Service for Git operations on sibling repositories."""

    def __init__(self, config: Union["Config", dict]):
        """Initialize the service.

        Args:
            config: Configuration dictionary or Config object
        """
        self.config = config
        self.remote_name = config.get("remote_name", "origin")
        if hasattr(config, "resolve_github_token"):
            self.github_token = config.resolve_github_token()
        else:
            self.github_token = config.get("github_token")

    def _get_repo(self, path: Union[str, Path]) -> git.Repo:
        """Open the repository at ``path`` (no parent directory search)."""
        return git.Repo(str(path))

    def auth_env(self, url: Optional[str]) -> Dict[str, str]:
        return github_auth_env(url, self.github_token)

    def remote_environment(self, repo: git.Repo):
        """Context manager applying auth for the repository's remote, if any."""
        env = self.auth_env(self.get_remote_url(repo.working_tree_dir))
        if not env:
            return nullcontext()
        return repo.git.custom_environment(**env)

    def is_git_repo(self, path: Union[str, Path]) -> bool:
        """Check whether ``path`` is the top of a git working tree."""
        try:
            repo = self._get_repo(path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return False
        try:
            return not repo.bare
        finally:
            repo.close()

    def get_remote_url(self, path: Union[str, Path, None]) -> Optional[str]:
        """URL of the configured remote, or None when there is none."""
        if path is None:
            return None
        try:
            repo = self._get_repo(path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return None
        try:
            return repo.remote(self.remote_name).url
        except ValueError:
            return None
        finally:
            repo.close()

    def current_branch(self, path: Union[str, Path]) -> Optional[str]:
        """Active branch name, or None for a detached HEAD."""
        repo = self._get_repo(path)
        try:
            return repo.active_branch.name
        except TypeError:
            return None  # Detached HEAD
        finally:
            repo.close()

    def checkout(self, path: Union[str, Path], branch: str) -> None:
        """Switch an existing clone to ``branch``."""
        repo = self._get_repo(path)
        try:
            with self.remote_environment(repo):
                if branch not in [head.name for head in repo.heads] and self.has_remote(repo):
                    self.fetch_branch(repo, branch)
                repo.git.checkout(branch)
            logger.info(f"Checked out {branch} in {path}")
        except git.exc.GitCommandError as e:
            raise GitOperationError("checkout", str(path), command_error_message(e, "checkout"))
        finally:
            repo.close()

    def has_remote(self, repo: git.Repo) -> bool:
        return self.remote_name in [remote.name for remote in repo.remotes]

    def clone(
        self,
        url: str,
        dest: Union[str, Path],
        branch: Optional[str] = None,
        all_branches: bool = False,
    ) -> None:
        """Clone ``url`` into ``dest``.

        With a branch and without ``all_branches`` only that branch is fetched.
        With ``all_branches`` every remote branch gets a local tracking branch.

        Raises:
            GitOperationError: if git fails
        """
        options = {}
        if branch:
            options["branch"] = branch
            if not all_branches:
                options["single_branch"] = True

        logger.debug(f"Cloning {url} into {dest} with options {options}")
        try:
            repo = git.Repo.clone_from(url, str(dest), env=self.auth_env(url) or None, **options)
        except git.exc.GitCommandError as e:
            raise GitOperationError("clone", url, command_error_message(e, "clone"))

        try:
            if all_branches:
                created = self.track_remote_branches(repo)
                logger.debug(f"Created tracking branches: {created}")
        finally:
            repo.close()

    def track_remote_branches(self, repo: git.Repo) -> List[str]:
        """Create a local branch for every remote branch that has none yet."""
        local = {head.name for head in repo.heads}
        created = []
        for ref in repo.remote(self.remote_name).refs:
            name = ref.remote_head
            if name == "HEAD" or name in local:
                continue
            head = repo.create_head(name, ref)
            head.set_tracking_branch(ref)
            created.append(name)
        return created

    def fetch(self, repo: git.Repo) -> None:
        """Fetch the remote, ignoring failures (offline use stays possible)."""
        if not self.has_remote(repo):
            return
        try:
            with self.remote_environment(repo):
                repo.git.fetch(self.remote_name)
        except git.exc.GitCommandError as e:
            logger.debug(command_error_message(e, "fetch"))

    def fetch_branch(self, repo: git.Repo, branch: str) -> None:
        """Fetch one remote branch into its remote-tracking ref.

        A single-branch clone only maps its own branch, so the remote's fetch
        refspecs are widened first; checkout and ``--track`` need the mapping.
        """
        remote = self.remote_name
        try:
            specs = repo.git.config("--get-all", f"remote.{remote}.fetch").splitlines()
        except git.exc.GitCommandError:
            specs = []
        if not any(spec.endswith((f"refs/remotes/{remote}/*", f"refs/remotes/{remote}/{branch}")) for spec in specs):
            repo.git.remote("set-branches", "--add", remote, branch)
        with self.remote_environment(repo):
            repo.git.fetch(remote, f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}")

    def remote_branch_exists(self, repo: git.Repo, branch: str) -> bool:
        """Ask the remote whether ``branch`` exists there."""
        if not self.has_remote(repo):
            return False
        try:
            with self.remote_environment(repo):
                output = repo.git.ls_remote("--heads", self.remote_name, branch)
        except git.exc.GitCommandError as e:
            logger.debug(command_error_message(e, "ls-remote"))
            return False
        return any(line.endswith(f"refs/heads/{branch}") for line in output.splitlines())

    def push_upstream(self, path: Union[str, Path], branch: str) -> None:
        """Push ``branch`` from the working tree at ``path`` and set tracking."""
        repo = self._get_repo(path)
        try:
            with self.remote_environment(repo):
                repo.git.push("-u", self.remote_name, branch)
            logger.info(f"Pushed {branch} to {self.remote_name}")
        except git.exc.GitCommandError as e:
            raise GitOperationError("push", branch, command_error_message(e, "push"))
        finally:
            repo.close()
