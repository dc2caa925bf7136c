"""
File transfer management for proxydeploy.

This module mirrors the local checkout to ``~/<app name>`` on the remote
host using rsync (preferred) or SCP (fallback).

The two strategies are not equivalent: rsync runs with ``--delete`` and
excludes ``.git`` and run logs, while the SCP fallback copies everything
and never removes remote files that were deleted locally. Stale files can
therefore survive a deploy that fell back to SCP.
"""

import shutil
from pathlib import Path
from typing import List, Optional

from ..config.settings import TRANSFER_EXCLUDES
from ..exceptions import TransferError
from ..utils.logging import log_error, log_info, log_phase, log_success, log_warning
from ..utils.ssh_manager import RemoteSession, SSHConnectionManager
from ..utils.streaming import execute_with_streaming
from .stage import StageReport, StepStatus


class TransferManager:
    """Manages file transfers to the remote server."""

    def __init__(self, session: RemoteSession, source_dir: Path, remote_dir: str,
                 excludes: Optional[List[str]] = None):
        """Initialize transfer manager.

        Args:
            session: Remote session to transfer to
            source_dir: Local checkout to send
            remote_dir: Destination directory relative to the remote home;
                must match ``source_dir``'s base name for the SCP fallback
            excludes: rsync exclude patterns
        """
        self.ssh = SSHConnectionManager(session)
        self.source_dir = Path(source_dir)
        self.remote_dir = remote_dir
        self.excludes = list(TRANSFER_EXCLUDES if excludes is None else excludes)

    def transfer(self) -> StageReport:
        """Transfer the checkout via rsync, falling back to SCP.

        Raises:
            TransferError: If neither strategy succeeds
        """
        log_phase(f"Transferring project to remote host (~/{self.remote_dir})...")
        report = StageReport("transfer")
        failures = {}

        if shutil.which("rsync"):
            error = self._run(self.ssh.build_rsync_command(
                str(self.source_dir), f"{self.remote_dir}/", self.excludes))
            if error is None:
                report.record("rsync", StepStatus.APPLIED, "incremental mirror with --delete")
                log_success("Project files transferred via rsync.")
                return report
            failures["rsync"] = error
            report.record("rsync", StepStatus.TOLERATED, error)
            log_info("Falling back to SCP...")
        else:
            log_info("rsync not available locally, using SCP...")

        log_warning("SCP fallback does not remove remote files deleted locally")
        error = self._run(self.ssh.build_scp_command(str(self.source_dir), ""))
        if error is None:
            report.record("scp", StepStatus.APPLIED, "full recursive copy (no deletions)")
            log_success("Project files transferred via SCP.")
            return report

        failures["scp"] = error
        raise TransferError("Transfer to remote host failed", details=failures)

    def _run(self, cmd: List[str]) -> Optional[str]:
        """Run a transfer command; return an error description or None."""
        log_info(f"Executing: {' '.join(cmd)}")
        try:
            returncode, _, stderr_lines = execute_with_streaming(cmd)
        except FileNotFoundError:
            message = f"{cmd[0]} command not found"
            log_error(message)
            return message

        if returncode == 0:
            return None

        error_msg = stderr_lines[-1] if stderr_lines else f"exit code {returncode}"
        log_error(f"{cmd[0]} transfer failed: {error_msg}")
        if "Connection refused" in error_msg or "Could not resolve" in error_msg:
            log_info("Tip: Check that the server is accessible and SSH is running")
        elif "Permission denied" in error_msg:
            log_info("Tip: Check the SSH key and the remote directory permissions")
        elif "No space left" in error_msg:
            log_info("Tip: Free up disk space on the remote server")
        return error_msg
