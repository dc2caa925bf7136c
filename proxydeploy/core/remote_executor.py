"""
Remote command execution for proxydeploy.

Every remote stage is expressed as a sequence of ``execute`` calls against a
single host. The executor returns the exit status and captured output of
each command; deciding whether a failure is fatal is left to the caller.
"""

import subprocess
from dataclasses import dataclass
from typing import Optional

from ..utils.logging import log_info
from ..utils.ssh_manager import RemoteSession, SSHConnectionManager
from ..utils.streaming import execute_with_streaming


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one remote command."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        """Short diagnostic used in error messages and logs."""
        output = (self.stderr or self.stdout).strip()
        if len(output) > 500:
            output = "..." + output[-500:]
        summary = f"`{self.command}` exited with {self.returncode}"
        return f"{summary}: {output}" if output else summary


class RemoteExecutor:
    """Runs commands on the deployment target over SSH."""

    def __init__(self, session: RemoteSession, timeout: Optional[int] = None):
        """Initialize remote executor.

        Args:
            session: Remote session to run commands in
            timeout: Default per-command timeout in seconds. None leaves
                commands bounded only by the SSH transport.
        """
        self.session = session
        self.timeout = timeout
        self.ssh = SSHConnectionManager(session)

    def execute(self, command: str, sudo: bool = False,
                input_text: Optional[str] = None,
                timeout: Optional[int] = None) -> CommandResult:
        """Execute a command on the remote host without user interaction.

        Args:
            command: Shell command line run by the remote login shell
            sudo: Run the command with privilege escalation
            input_text: Content sent to the command's stdin
            timeout: Per-command timeout overriding the default

        Returns:
            CommandResult with exit status and captured output
        """
        remote_command = f"sudo {command}" if sudo else command
        ssh_cmd = self.ssh.build_ssh_command(remote_command)
        log_info(f"[{self.session.server}] $ {remote_command}")

        try:
            returncode, stdout_lines, stderr_lines = execute_with_streaming(
                ssh_cmd,
                input_text=input_text,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except FileNotFoundError:
            return CommandResult(remote_command, 127, "", "ssh command not found")

        return CommandResult(
            remote_command,
            returncode,
            "\n".join(stdout_lines),
            "\n".join(stderr_lines),
        )

    def execute_interactive(self, command: str) -> CommandResult:
        """Execute a command with the terminal attached.

        Used once, to let the operator accept an unknown host key. Output is
        not captured.
        """
        ssh_cmd = self.ssh.build_ssh_command(command, batch_mode=False, host_key_checking="ask")
        log_info(f"[{self.session.server}] $ {command} (interactive)")
        try:
            result = subprocess.run(ssh_cmd, check=False)
        except FileNotFoundError:
            return CommandResult(command, 127, "", "ssh command not found")
        return CommandResult(command, result.returncode)
