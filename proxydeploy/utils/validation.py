"""
Validation utilities for proxydeploy.

This module provides validation and normalisation functions for
configuration inputs and local repository state.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

from ..config.settings import DEPLOY_DESCRIPTORS

# Accepted GitHub URL shapes; anything else only triggers a warning
REPO_URL_PATTERNS = (
    r"^https://([^@/]+@)?github\.com/[^/]+/[^/]+?(\.git)?/?$",
    r"^git@github\.com:[^/]+/[^/]+\.git$",
)


def validate_repo_url(repo_url: str) -> bool:
    """Check whether a repository URL looks like a standard GitHub URL."""
    if not repo_url:
        return False
    return any(re.match(pattern, repo_url) for pattern in REPO_URL_PATTERNS)


def validate_port(value: Union[str, int, None]) -> Optional[int]:
    """Parse a TCP port number.

    Returns:
        The port as int, or None when the value is not a port in 1-65535
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text.isdigit():
        return None
    port = int(text)
    if 1 <= port <= 65535:
        return port
    return None


def validate_remote_name(value: str) -> bool:
    """Check an SSH user or host name is safe to place on the ssh command line.

    Values starting with ``-`` would be parsed as ssh options.
    """
    if not value or value.startswith("-"):
        return False
    return not any(char.isspace() for char in value)


def normalize_key_path(path: str) -> str:
    """Normalise a private key path (Windows backslashes, ``~``)."""
    return os.path.expanduser(path.strip().replace("\\", "/"))


def sanitize_app_name(name: str) -> str:
    """Sanitize a name for use in Docker resource names and nginx site files.

    Converts underscores and other non-alphanumeric characters (except dots
    and dashes) to hyphens and lowercases the result.
    """
    sanitized = name.replace('_', '-')
    sanitized = re.sub(r'[^a-zA-Z0-9.-]', '-', sanitized)
    sanitized = sanitized.strip('-.')
    return sanitized.lower()


def derive_app_name(repo_url: str) -> str:
    """Derive the logical application name from a repository URL or path.

    The name is the repository's base name without a ``.git`` suffix, so
    ``https://github.com/acme/Site.git``, ``git@github.com:acme/Site.git``
    and ``/srv/repos/site`` all map to a stable value.

    Raises:
        ValueError: If no usable name can be derived
    """
    base = (repo_url or "").strip().rstrip("/")
    base = re.split(r"[/:]", base)[-1] if base else ""
    if base.endswith(".git"):
        base = base[:-len(".git")]
    name = sanitize_app_name(base)
    if not name:
        raise ValueError(f"Cannot derive an application name from '{repo_url}'")
    return name


def find_deploy_descriptor(source_dir: Path) -> Optional[str]:
    """Return the first deploy descriptor present at the repository root."""
    for descriptor in DEPLOY_DESCRIPTORS:
        if (Path(source_dir) / descriptor).is_file():
            return descriptor
    return None


def is_success_status(status: int) -> bool:
    """HTTP status in the success/redirect range [200, 400)."""
    return 200 <= status < 400
