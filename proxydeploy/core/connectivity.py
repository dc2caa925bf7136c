"""
Connectivity probe for proxydeploy.

Confirms an authenticated SSH channel to the target before anything on the
remote host is changed.
"""

from ..config.settings import SSH_INTERACTIVE_OK_MARKER, SSH_OK_MARKER
from ..exceptions import ConnectivityError
from ..utils.logging import log_info, log_success, log_warning
from .stage import StageReport, StepStatus


class ConnectivityProbe:
    """Verifies the remote session with one interactive fallback."""

    def __init__(self, executor, interactive_fallback: bool = True):
        """Initialize connectivity probe.

        Args:
            executor: RemoteExecutor (or compatible) bound to the target
            interactive_fallback: Allow the single terminal-attached retry
        """
        self.executor = executor
        self.interactive_fallback = interactive_fallback

    def probe(self) -> StageReport:
        """Establish that the host is reachable and accepts the key.

        Returns:
            StageReport naming the mode that succeeded

        Raises:
            ConnectivityError: If both the batch and the interactive attempt fail
        """
        report = StageReport("connectivity")
        target = self.executor.session.target
        log_info(f"Testing SSH connection to {target}")

        result = self.executor.execute(f"echo {SSH_OK_MARKER}")
        if result.ok and SSH_OK_MARKER in result.stdout:
            report.record("batch-ssh", StepStatus.PASSED)
            log_success("SSH connectivity OK.")
            return report

        report.record("batch-ssh", StepStatus.TOLERATED, result.describe())
        if not self.interactive_fallback:
            raise ConnectivityError(
                f"SSH connectivity check failed for {target}",
                details={"batch": result.describe()},
            )

        log_warning("SSH connectivity check failed. Trying interactive SSH to accept host key...")
        interactive = self.executor.execute_interactive(f"echo {SSH_INTERACTIVE_OK_MARKER}")
        if not interactive.ok:
            raise ConnectivityError(
                f"SSH interactive/connect failed for {target}. Fix connectivity and try again.",
                details={"batch": result.describe(), "interactive": interactive.describe()},
            )

        report.record("interactive-ssh", StepStatus.PASSED)
        log_success("SSH connectivity OK (interactive).")
        return report
