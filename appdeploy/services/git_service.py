"""Source synchronization: keep a local working copy at the tip of a branch."""

import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, urlparse, urlunparse

from appdeploy.constants import GIT_STASH_MESSAGE, GIT_TOKEN_USER
from appdeploy.exceptions import SourceSyncError
from appdeploy.logger import DeployLogger
from appdeploy.models.deployment import ProjectIdentity, ProjectWorkingCopy
from appdeploy.models.parameters import DeploymentParameters
from appdeploy.models.results import GitResult


def build_authenticated_url(repository_url: str, token: str) -> str:
    """
    Inject token credentials into an https URL.

    https://host/org/app.git -> https://oauth2:<token>@host/org/app.git
    """
    parsed = urlparse(repository_url)
    netloc = f"{GIT_TOKEN_USER}:{quote(token, safe='')}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


class SourceSynchronizer:
    """Clones or updates the application repository with git."""

    def __init__(
        self,
        params: DeploymentParameters,
        logger: DeployLogger,
        workspace: Optional[Path] = None,
        git_binary: str = "git",
    ):
        """
        Initialize source synchronizer.

        Args:
            params: Deployment parameters (URL, token, branch)
            logger: Run logger
            workspace: Directory holding the working copy (default: cwd)
            git_binary: git executable
        """
        self.params = params
        self.logger = logger
        self.workspace = (workspace or Path.cwd()).resolve()
        self.git_binary = git_binary
        self.identity = ProjectIdentity.from_repository_url(params.repository_url)
        self.logger.mask(params.access_token)
        if params.access_token:
            self.logger.mask(quote(params.access_token, safe=""))

    @property
    def target_dir(self) -> Path:
        return self.workspace / self.identity.name

    @property
    def clean_url(self) -> str:
        """Remote URL stored in .git/config (no credentials)."""
        return self.params.repository_url

    @property
    def authenticated_url(self) -> str:
        """URL used for clone/fetch only; never persisted."""
        return build_authenticated_url(self.params.repository_url, self.params.access_token)

    def sync(self) -> ProjectWorkingCopy:
        """
        Bring the working copy to the tip of the configured branch.

        Returns:
            ProjectWorkingCopy with absolute path, identity and commit

        Raises:
            SourceSyncError: If no clone/update path succeeds
        """
        self.logger.info(f"Processing repository: {self.identity}")
        target = self.target_dir

        if (target / ".git").exists():
            self.logger.info("Repository exists, pulling latest changes...")
            self._update(target)
            self.logger.success("Repository updated successfully")
        elif target.exists():
            raise SourceSyncError(
                f"{target} exists but is not a git repository",
                context="Move or remove it and run again",
            )
        else:
            self.logger.info("Cloning repository...")
            self._clone(target)
            self.logger.success("Repository cloned successfully")

        self._scrub_remote(target)
        commit = self._git(["rev-parse", "HEAD"], cwd=target)
        branch = self._git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=target)
        return ProjectWorkingCopy(
            path=target,
            identity=self.identity,
            branch=branch.stdout.strip() or self.params.branch,
            commit=commit.stdout.strip(),
        )

    def _update(self, target: Path) -> None:
        branch = self.params.branch

        stash = self._git(
            ["stash", "push", "--include-untracked", "-m", GIT_STASH_MESSAGE], cwd=target
        )
        if not stash.is_success:
            self.logger.warning(f"Could not stash local changes: {stash.output or 'unknown error'}")
        elif "No local changes" not in stash.stdout:
            self.logger.warning(f"Local changes stashed as '{GIT_STASH_MESSAGE}'")

        self._require(
            ["fetch", "--prune", self.authenticated_url, "+refs/heads/*:refs/remotes/origin/*"],
            cwd=target,
            message="Failed to fetch from remote repository",
        )

        branch = self._switch_branch(target, branch)
        self._require(
            ["merge", "--ff-only", f"origin/{branch}"],
            cwd=target,
            message=f"Failed to fast-forward '{branch}' to origin/{branch}",
        )

    def _switch_branch(self, target: Path, branch: str) -> str:
        """
        Check out `branch`, tracking origin if needed; returns the branch to fast-forward.

        A branch missing upstream keeps the current checkout, matching a
        fresh clone that fell back to the default branch.
        """
        upstream = self._git(
            ["rev-parse", "--verify", "--quiet", f"refs/remotes/origin/{branch}"], cwd=target
        )
        if not upstream.is_success:
            self.logger.warning(f"Branch {branch} not found, using default branch")
            current = self._require(
                ["rev-parse", "--abbrev-ref", "HEAD"],
                cwd=target,
                message="Cannot determine the checked out branch",
            )
            return current.stdout.strip()

        if not self._git(["checkout", branch], cwd=target).is_success:
            self._require(
                ["checkout", "-b", branch, "--track", f"origin/{branch}"],
                cwd=target,
                message=f"Cannot check out branch '{branch}'",
            )
        return branch

    def _clone(self, target: Path) -> None:
        branch = self.params.branch
        self.workspace.mkdir(parents=True, exist_ok=True)

        first = self._git(["clone", "--branch", branch, self.authenticated_url, str(target)])
        if first.is_success:
            return

        self.logger.warning(f"Clone of branch '{branch}' failed, retrying with default branch")
        if target.exists():
            shutil.rmtree(target)

        second = self._git(["clone", self.authenticated_url, str(target)])
        if not second.is_success:
            if target.exists():
                shutil.rmtree(target)
            raise SourceSyncError(
                "Failed to clone repository",
                context=self.logger.redact(second.output or first.output) or None,
            )

        if self._git(["checkout", branch], cwd=target).is_success:
            return
        track = self._git(["checkout", "-b", branch, "--track", f"origin/{branch}"], cwd=target)
        if not track.is_success:
            self.logger.warning(f"Branch {branch} not found, using default branch")

    def _scrub_remote(self, target: Path) -> None:
        # fresh clones record the authenticated URL as origin
        self._require(
            ["remote", "set-url", "origin", self.clean_url],
            cwd=target,
            message="Failed to reset origin URL",
        )

    def _require(self, args: List[str], cwd: Path, message: str) -> GitResult:
        result = self._git(args, cwd=cwd)
        if not result.is_success:
            raise SourceSyncError(message, context=self.logger.redact(result.output) or None)
        return result

    def _git(self, args: List[str], cwd: Optional[Path] = None) -> GitResult:
        command = [self.git_binary] + args
        self.logger.log_command(" ".join(command))
        try:
            process = subprocess.run(
                command,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                check=False,
                env=_git_env(),
            )
        except FileNotFoundError:
            raise SourceSyncError(f"Required binary not found: {self.git_binary}")
        result = GitResult(process.returncode, process.stdout, process.stderr)
        self.logger.log_output(result.output, "git")
        return result


def _git_env() -> dict:
    env = dict(os.environ)
    # never block on a credential prompt
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env
