"""
SSH command construction for proxydeploy.

This module builds the ssh, rsync and scp argument lists used to reach the
deployment target with a specific private key.
"""

import shlex
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config.settings import SSH_CONNECT_TIMEOUT


@dataclass(frozen=True)
class RemoteSession:
    """The authenticated channel to the target host for one run."""

    username: str
    server: str
    ssh_key: str

    @property
    def target(self) -> str:
        return f"{self.username}@{self.server}"

    def remote_path(self, path: str) -> str:
        """Return an rsync/scp style ``user@host:path`` location."""
        return f"{self.target}:{path}"


class SSHConnectionManager:
    """Builds ssh/rsync/scp invocations for a single remote session."""

    def __init__(self, session: RemoteSession):
        """Initialize SSH connection manager.

        Args:
            session: Remote session the commands target
        """
        self.session = session

    def _identity_options(self) -> List[str]:
        return ["-i", self.session.ssh_key]

    def build_ssh_command(self, command: Optional[str] = None,
                          batch_mode: bool = True,
                          host_key_checking: str = "no") -> List[str]:
        """Build SSH command.

        Args:
            command: Remote command to execute (optional)
            batch_mode: Disable password/passphrase prompts (non-interactive)
            host_key_checking: Value for StrictHostKeyChecking

        Returns:
            List of command arguments
        """
        cmd = ["ssh"] + self._identity_options()

        if batch_mode:
            cmd.extend(["-o", "BatchMode=yes"])

        cmd.extend([
            "-o", f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
            "-o", f"StrictHostKeyChecking={host_key_checking}",
            "-o", "ServerAliveInterval=60",
            "-o", "ServerAliveCountMax=3",
        ])

        cmd.append(self.session.target)

        if command:
            cmd.append(command)

        return cmd

    def ssh_transport(self) -> str:
        """Return the ``-e`` transport string rsync uses to reach the host."""
        parts = ["ssh"] + self._identity_options() + [
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=no",
            "-o", f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
        ]
        return " ".join(shlex.quote(part) for part in parts)

    def build_rsync_command(self, source_dir: str, remote_dir: str,
                            excludes: Sequence[str] = ()) -> List[str]:
        """Build a delete-reconciling rsync mirror of ``source_dir``.

        A trailing slash is forced on the source so its contents (not the
        directory itself) land in ``remote_dir``.
        """
        cmd = ["rsync", "-az", "--delete"]
        for pattern in excludes:
            cmd.append(f"--exclude={pattern}")
        cmd.extend([
            "-e", self.ssh_transport(),
            source_dir.rstrip("/") + "/",
            self.session.remote_path(remote_dir),
        ])
        return cmd

    def build_scp_command(self, source_dir: str, remote_parent: str) -> List[str]:
        """Build a recursive scp copy of ``source_dir`` into ``remote_parent``."""
        cmd = ["scp", "-r", "-C"] + self._identity_options()
        cmd.extend([
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=no",
            "-o", f"ConnectTimeout={SSH_CONNECT_TIMEOUT}",
            source_dir.rstrip("/"),
            self.session.remote_path(remote_parent),
        ])
        return cmd
