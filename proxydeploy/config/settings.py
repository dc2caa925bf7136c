"""
Configuration settings for proxydeploy.

This module contains the constants used throughout the application and the
helpers that read optional defaults from a YAML config file.
"""

import os
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Version information
VERSION = "0.3.1"
AUTHOR = "proxydeploy contributors"

DEFAULT_BRANCH = "main"
DEFAULT_CONFIG_FILE = "proxydeploy.yml"
CONFIG_SECTION = "deployment"

# Files that make a repository deployable, checked at the repository root
DEPLOY_DESCRIPTORS = ("Dockerfile", "docker-compose.yml")

# Run log naming: one file per invocation, named by start time
RUN_LOG_PREFIX = "deploy_"
RUN_LOG_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
RUN_LOG_PATTERN = f"{RUN_LOG_PREFIX}*.log"
LOG_LINE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# SSH
SSH_CONNECT_TIMEOUT = 10
SSH_OK_MARKER = "SSH_OK"
SSH_INTERACTIVE_OK_MARKER = "SSH_INTERACTIVE_OK"

# Paths excluded from the transfer to the remote host (directories and file globs)
TRANSFER_EXCLUDES = (".git", RUN_LOG_PATTERN)

# Remote packages
DOCKER_PACKAGE = "docker.io"
COMPOSE_PACKAGE = "docker-compose-plugin"
NGINX_PACKAGE = "nginx"
DOCKER_GROUP = "docker"

# nginx layout on the remote host
NGINX_SITES_AVAILABLE = "/etc/nginx/sites-available"
NGINX_SITES_ENABLED = "/etc/nginx/sites-enabled"
PUBLIC_HTTP_PORT = 80
HEALTH_CHECK_URL = "http://127.0.0.1/"

# Environment variables recognised as configuration inputs
ENV_VARS = {
    "repo_url": "REPO_URL",
    "token": "PAT",
    "branch": "BRANCH",
    "ssh_user": "SSH_USER",
    "server": "SERVER_IP",
    "ssh_key": "SSH_KEY",
    "app_port": "APP_PORT",
}


class ExitCode(IntEnum):
    """Process exit codes, one per failing stage."""

    SUCCESS = 0
    UNEXPECTED = 1
    INPUT = 10
    ACQUISITION = 20
    DESCRIPTOR = 30
    CONNECTIVITY = 40
    PROVISIONING = 50
    TRANSFER = 60
    DEPLOY = 70
    PROXY = 80
    VALIDATION = 90
    INTERRUPTED = 130


def get_config_path(config_path: Optional[str] = None) -> Path:
    """Resolve the YAML config file location (explicit path or ./proxydeploy.yml)."""
    if config_path:
        return Path(config_path).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILE


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load the ``deployment`` section of the YAML config file.

    Returns an empty dict when the file does not exist. An explicitly given
    path that is missing or malformed raises ``ValueError``.

    Args:
        config_path: Optional path given on the command line

    Returns:
        Mapping of config keys to values
    """
    path = get_config_path(config_path)
    if not path.exists():
        if config_path:
            raise ValueError(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    section = data.get(CONFIG_SECTION, {}) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{CONFIG_SECTION}' in {path} must be a mapping")
    # The credential is accepted from flags, environment or prompt only
    section.pop("token", None)
    return section


def get_env_defaults() -> Dict[str, Optional[str]]:
    """Read configuration inputs from the environment."""
    return {key: os.environ.get(var) or None for key, var in ENV_VARS.items()}


def run_log_name(started_at) -> str:
    """Return the run log file name for a run started at ``started_at``."""
    return f"{RUN_LOG_PREFIX}{started_at.strftime(RUN_LOG_TIMESTAMP_FORMAT)}.log"
