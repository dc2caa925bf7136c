"""
Source acquisition for proxydeploy.

This module clones the application repository into the local workspace, or
brings an existing checkout up to date with the remote branch, and checks
that the result is deployable.
"""

from pathlib import Path
from typing import List, Optional

from ..exceptions import AcquisitionError, DescriptorMissingError
from ..utils.logging import log_info, log_success
from ..utils.streaming import execute_with_streaming
from ..utils.validation import find_deploy_descriptor
from .deployment_config import DeploymentConfig


def build_auth_url(repo_url: str, token: Optional[str]) -> str:
    """Insert an access token into an HTTPS clone URL.

    SSH URLs and token-less runs are returned unchanged.
    """
    if token and repo_url.startswith("https://"):
        return f"https://{token}@{repo_url[len('https://'):]}"
    return repo_url


class GitManager:
    """Manages the local checkout of the application repository."""

    def __init__(self, config: DeploymentConfig):
        """Initialize Git manager.

        Args:
            config: Deployment configuration naming the repository and branch
        """
        self.config = config
        self.source_dir = config.source_dir

    def _run_git(self, args: List[str], cwd: Optional[Path] = None) -> None:
        cmd = ["git"] + args
        log_info(f"$ {' '.join(cmd)}")
        try:
            returncode, _, stderr_lines = execute_with_streaming(
                cmd if cwd is None else ["git", "-C", str(cwd)] + args
            )
        except FileNotFoundError:
            raise AcquisitionError("git command not found. Please install git.")
        if returncode != 0:
            detail = stderr_lines[-1] if stderr_lines else f"exit code {returncode}"
            raise AcquisitionError(
                f"git {args[0]} failed: {detail}",
                details={"command": " ".join(cmd), "stderr": stderr_lines},
            )

    def is_checkout(self) -> bool:
        return (self.source_dir / ".git").exists()

    def acquire(self) -> Path:
        """Clone or update the repository.

        Returns:
            Path to the checkout

        Raises:
            AcquisitionError: If cloning or updating fails
        """
        if self.is_checkout():
            self.update()
        elif self.source_dir.exists() and any(self.source_dir.iterdir()):
            raise AcquisitionError(
                f"{self.source_dir} exists but is not a git checkout; move it out of the way"
            )
        else:
            self.clone()
        return self.source_dir

    def clone(self) -> None:
        """Clone the configured branch into the workspace."""
        log_info(f"Cloning repository '{self.config.app_name}'...")
        self.source_dir.parent.mkdir(parents=True, exist_ok=True)
        auth_url = build_auth_url(self.config.repo_url, self.config.token)
        self._run_git(["clone", "-b", self.config.branch, auth_url, str(self.source_dir)])
        if auth_url != self.config.repo_url:
            # Keep the token out of .git/config
            self._run_git(["remote", "set-url", "origin", self.config.repo_url], cwd=self.source_dir)
        log_success(f"Cloned {self.config.repo_url} ({self.config.branch})")

    def update(self) -> None:
        """Hard-reset an existing checkout to the remote branch head."""
        branch = self.config.branch
        log_info(f"Repository '{self.config.app_name}' exists locally. Fetching latest for branch {branch}...")
        auth_url = build_auth_url(self.config.repo_url, self.config.token)
        if auth_url != self.config.repo_url:
            self._run_git(["remote", "set-url", "origin", auth_url], cwd=self.source_dir)
        try:
            self._run_git(["fetch", "--all", "--prune"], cwd=self.source_dir)
        finally:
            if auth_url != self.config.repo_url:
                self._run_git(["remote", "set-url", "origin", self.config.repo_url], cwd=self.source_dir)
        self._run_git(["checkout", branch], cwd=self.source_dir)
        self._run_git(["reset", "--hard", f"origin/{branch}"], cwd=self.source_dir)
        log_success(f"Updated {self.source_dir} to origin/{branch}")

    def ensure_descriptor(self) -> str:
        """Check the checkout contains a Dockerfile or docker-compose.yml.

        Raises:
            DescriptorMissingError: If neither file exists at the repository root
        """
        descriptor = find_deploy_descriptor(self.source_dir)
        if descriptor is None:
            raise DescriptorMissingError(
                f"No Dockerfile or docker-compose.yml found in {self.source_dir}"
            )
        log_info(f"Found {descriptor}.")
        return descriptor
