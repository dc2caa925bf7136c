"""
Deployment configuration for proxydeploy.

The configuration record is assembled once at startup from command-line
flags, environment variables, the optional YAML config file and, for
anything still missing on an interactive terminal, prompts. It is immutable
afterwards and passed explicitly to every component.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click

from ..config.settings import DEFAULT_BRANCH, get_env_defaults, load_config_file
from ..exceptions import InputError
from ..utils.logging import log_info, log_warning, mask, register_secret
from ..utils.ssh_manager import RemoteSession
from ..utils.validation import (
    derive_app_name,
    normalize_key_path,
    validate_port,
    validate_remote_name,
    validate_repo_url,
)

REQUIRED_FIELDS = ("repo_url", "ssh_user", "server", "ssh_key", "app_port")

# Prompt text per field, in collection order
PROMPTS = {
    "repo_url": "Git repository URL (HTTPS or SSH)",
    "token": "Personal Access Token (leave blank to use SSH auth)",
    "branch": "Branch name",
    "ssh_user": "Remote server SSH username (e.g., ubuntu)",
    "server": "Remote server IP or hostname",
    "ssh_key": "SSH private key path",
    "app_port": "Application internal container port (e.g., 80 or 3000)",
}


@dataclass(frozen=True)
class DeploymentConfig:
    """Immutable inputs for one run."""

    repo_url: str
    ssh_user: str
    server: str
    ssh_key: str
    app_port: int
    branch: str = DEFAULT_BRANCH
    token: Optional[str] = field(default=None, repr=False)
    workspace: Path = field(default_factory=Path.cwd)
    command_timeout: Optional[int] = None

    @property
    def app_name(self) -> str:
        """Logical application name keying every piece of remote state."""
        return derive_app_name(self.repo_url)

    @property
    def session(self) -> RemoteSession:
        return RemoteSession(self.ssh_user, self.server, self.ssh_key)

    @property
    def source_dir(self) -> Path:
        """Local checkout location of the repository."""
        return Path(self.workspace) / self.app_name

    @property
    def remote_dir(self) -> str:
        """Application directory on the remote host, relative to the user's home."""
        return self.app_name

    def summary(self) -> Dict[str, Any]:
        """Loggable view of the configuration with the token masked."""
        return {
            "repo_url": self.repo_url,
            "branch": self.branch,
            "ssh_user": self.ssh_user,
            "server": self.server,
            "ssh_key": self.ssh_key,
            "app_port": self.app_port,
            "app_name": self.app_name,
            "token": mask(self.token),
        }


def _prompt_missing(values: Dict[str, Any], prompt: Callable[..., Any]) -> None:
    for key, text in PROMPTS.items():
        if values.get(key) not in (None, ""):
            continue
        if key == "token":
            values[key] = prompt(text, default="", show_default=False, hide_input=True) or None
        elif key == "branch":
            values[key] = prompt(text, default=DEFAULT_BRANCH)
        else:
            values[key] = prompt(text, default="", show_default=False)


def build_deployment_config(cli_values: Optional[Dict[str, Any]] = None,
                            config_path: Optional[str] = None,
                            interactive: Optional[bool] = None,
                            prompt: Callable[..., Any] = click.prompt) -> DeploymentConfig:
    """Assemble and validate the deployment configuration.

    Precedence is: command-line value, environment variable, config file,
    interactive prompt.

    Args:
        cli_values: Values given on the command line (None means unset)
        config_path: Optional YAML config file path
        interactive: Prompt for missing values. Defaults to stdin being a TTY.
        prompt: Prompt function, ``click.prompt`` compatible

    Returns:
        Validated DeploymentConfig

    Raises:
        InputError: If a required value is missing or invalid, or the key
            file does not exist
    """
    try:
        file_values = load_config_file(config_path)
    except ValueError as e:
        raise InputError(str(e))

    values: Dict[str, Any] = {}
    env_values = get_env_defaults()
    for source in (file_values, env_values, cli_values or {}):
        for key, value in source.items():
            if value not in (None, ""):
                values[key] = value

    if interactive is None:
        interactive = sys.stdin.isatty()
    if interactive:
        _prompt_missing(values, prompt)

    token = values.get("token") or None
    register_secret(token)

    missing: List[str] = [key for key in REQUIRED_FIELDS if values.get(key) in (None, "")]
    if missing:
        raise InputError(
            f"Missing required input: {', '.join(missing)}",
            details={"missing": missing},
        )

    repo_url = str(values["repo_url"]).strip()
    if not validate_repo_url(repo_url):
        log_warning("Repo URL doesn't look like a standard GitHub URL; continuing but double-check it.")
    try:
        derive_app_name(repo_url)
    except ValueError as e:
        raise InputError(str(e))

    app_port = validate_port(values["app_port"])
    if app_port is None:
        raise InputError(f"Invalid application port: {values['app_port']}")

    ssh_user = str(values["ssh_user"]).strip()
    if not validate_remote_name(ssh_user):
        raise InputError(f"Invalid SSH user: {ssh_user}")
    server = str(values["server"]).strip()
    if not validate_remote_name(server):
        raise InputError(f"Invalid server address: {server}")

    ssh_key = normalize_key_path(str(values["ssh_key"]))
    if not Path(ssh_key).is_file():
        raise InputError(f"SSH key not found at path: {ssh_key}")

    timeout = values.get("command_timeout")
    if timeout not in (None, ""):
        try:
            timeout = int(timeout)
        except (TypeError, ValueError):
            raise InputError(f"Invalid command timeout: {timeout}")
    config = DeploymentConfig(
        repo_url=repo_url,
        ssh_user=ssh_user,
        server=server,
        ssh_key=ssh_key,
        app_port=app_port,
        branch=str(values.get("branch") or DEFAULT_BRANCH).strip(),
        token=token,
        workspace=Path(values.get("workspace") or Path.cwd()).expanduser(),
        command_timeout=timeout or None,
    )
    log_info(f"Using SSH key: {config.ssh_key}")
    return config
