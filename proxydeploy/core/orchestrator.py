"""
Deployment orchestration for proxydeploy.

This module sequences the deployment stages as a finite-state machine:

    INIT -> CONFIG_VALIDATED -> SOURCE_ACQUIRED -> CONNECTIVITY_CONFIRMED
        -> CLEANED_UP                                   (cleanup run)
        -> PROVISIONED -> TRANSFERRED -> DEPLOYED
           -> PROXY_CONFIGURED -> VALIDATED             (deploy run)

Any stage failure moves the run to FAILED, which is terminal. There is no
retry and no rollback of stages that already completed. Cleanup runs skip
source acquisition; they only need the application name.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config.settings import ExitCode
from ..exceptions import StageError
from ..utils.logging import log_error, log_info, log_phase, log_success, print_plain
from .cleanup import CleanupExecutor
from .connectivity import ConnectivityProbe
from .deployment_config import DeploymentConfig
from .docker_manager import DockerManager
from .git_manager import GitManager
from .health_checker import HealthChecker
from .nginx_manager import NginxManager
from .provisioner import RemoteProvisioner
from .remote_executor import RemoteExecutor
from .stage import StageReport
from .transfer_manager import TransferManager


class DeploymentState(str, Enum):
    INIT = "init"
    CONFIG_VALIDATED = "config_validated"
    SOURCE_ACQUIRED = "source_acquired"
    CONNECTIVITY_CONFIRMED = "connectivity_confirmed"
    CLEANED_UP = "cleaned_up"
    PROVISIONED = "provisioned"
    TRANSFERRED = "transferred"
    DEPLOYED = "deployed"
    PROXY_CONFIGURED = "proxy_configured"
    VALIDATED = "validated"
    FAILED = "failed"


TRANSITIONS = {
    DeploymentState.INIT: {DeploymentState.CONFIG_VALIDATED},
    DeploymentState.CONFIG_VALIDATED: {DeploymentState.SOURCE_ACQUIRED,
                                       DeploymentState.CONNECTIVITY_CONFIRMED},
    DeploymentState.SOURCE_ACQUIRED: {DeploymentState.CONNECTIVITY_CONFIRMED},
    DeploymentState.CONNECTIVITY_CONFIRMED: {DeploymentState.CLEANED_UP,
                                             DeploymentState.PROVISIONED},
    DeploymentState.PROVISIONED: {DeploymentState.TRANSFERRED},
    DeploymentState.TRANSFERRED: {DeploymentState.DEPLOYED},
    DeploymentState.DEPLOYED: {DeploymentState.PROXY_CONFIGURED},
    DeploymentState.PROXY_CONFIGURED: {DeploymentState.VALIDATED},
}


class InvalidTransition(RuntimeError):
    """Raised when the orchestrator attempts a transition the state machine forbids."""


@dataclass
class RunResult:
    """Final outcome of one orchestrated run."""

    state: DeploymentState
    exit_code: int
    history: List[DeploymentState] = field(default_factory=list)
    reports: List[StageReport] = field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[StageError] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == ExitCode.SUCCESS

    def report(self, stage: str) -> Optional[StageReport]:
        for report in self.reports:
            if report.stage == stage:
                return report
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "state": self.state.value,
            "exit_code": int(self.exit_code),
            "history": [state.value for state in self.history],
            "stages": [report.to_dict() for report in self.reports],
        }
        if self.failed_stage:
            data["failed_stage"] = self.failed_stage
        if self.error is not None:
            data["error"] = self.error.message
            if self.error.details:
                data["details"] = self.error.details
        return data


class DeploymentOrchestrator:
    """Runs the deploy or cleanup workflow against one remote host."""

    def __init__(self, config: DeploymentConfig,
                 executor: Optional[RemoteExecutor] = None,
                 git_manager: Optional[GitManager] = None,
                 transfer: Optional[TransferManager] = None,
                 interactive_fallback: bool = True,
                 external_check: bool = False):
        """Initialize deployment orchestrator.

        Args:
            config: Validated deployment configuration
            executor: Remote executor; built from the config when omitted
            git_manager: Source acquisition; built from the config when omitted
            transfer: Transfer manager; built from the config when omitted
            interactive_fallback: Allow one interactive SSH attempt
            external_check: Also probe ``http://<server>/`` from this machine
        """
        self.config = config
        self.app_name = config.app_name
        self.executor = executor or RemoteExecutor(config.session, timeout=config.command_timeout)
        self.git_manager = git_manager or GitManager(config)
        self.transfer = transfer or TransferManager(config.session, config.source_dir, config.remote_dir)
        self.interactive_fallback = interactive_fallback
        self.external_check = external_check

        self.state = DeploymentState.INIT
        self.history: List[DeploymentState] = [self.state]
        self.reports: List[StageReport] = []

    @property
    def public_url(self) -> str:
        return f"http://{self.config.server}/"

    def _advance(self, new_state: DeploymentState) -> None:
        if new_state not in TRANSITIONS.get(self.state, set()):
            raise InvalidTransition(f"{self.state.value} -> {new_state.value}")
        log_info(f"State: {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def _stage(self, target: DeploymentState, action: Callable[[], Any]) -> Any:
        """Run one stage and advance to ``target`` on success."""
        outcome = action()
        if isinstance(outcome, StageReport):
            self.reports.append(outcome)
        self._advance(target)
        return outcome

    def _finish(self, exit_code: int, failed_stage: Optional[str] = None,
                error: Optional[StageError] = None) -> RunResult:
        return RunResult(
            state=self.state,
            exit_code=exit_code,
            history=list(self.history),
            reports=list(self.reports),
            failed_stage=failed_stage,
            error=error,
        )

    def _fail(self) -> None:
        self.state = DeploymentState.FAILED
        self.history.append(DeploymentState.FAILED)

    def run(self, cleanup: bool = False) -> RunResult:
        """Execute the workflow.

        Args:
            cleanup: Run the teardown branch instead of a deploy

        Returns:
            RunResult with the terminal state and exit code
        """
        if self.state is not DeploymentState.INIT:
            raise InvalidTransition("an orchestrator instance runs once")

        log_phase(f"=== {'Cleanup' if cleanup else 'Deploy'} of '{self.app_name}' to "
                  f"{self.config.session.target} started ===")
        for key, value in self.config.summary().items():
            log_info(f"  {key}: {value}")
        self._advance(DeploymentState.CONFIG_VALIDATED)

        try:
            if not cleanup:
                self._stage(DeploymentState.SOURCE_ACQUIRED, self._acquire_source)

            probe = ConnectivityProbe(self.executor, interactive_fallback=self.interactive_fallback)
            self._stage(DeploymentState.CONNECTIVITY_CONFIRMED, probe.probe)

            if cleanup:
                self._stage(DeploymentState.CLEANED_UP,
                            CleanupExecutor(self.executor, self.app_name).cleanup)
                log_success("=== Cleanup finished ===")
                return self._finish(ExitCode.SUCCESS)

            self._stage(DeploymentState.PROVISIONED, RemoteProvisioner(self.executor).provision)
            self._stage(DeploymentState.TRANSFERRED, self.transfer.transfer)
            self._stage(DeploymentState.DEPLOYED, DockerManager(
                self.executor, self.app_name, self.config.app_port, self.config.remote_dir).deploy)
            self._stage(DeploymentState.PROXY_CONFIGURED, NginxManager(
                self.executor, self.app_name, self.config.app_port).configure)
            self._stage(DeploymentState.VALIDATED, HealthChecker(
                self.executor, self.app_name,
                public_url=self.public_url if self.external_check else None).validate)
        except StageError as e:
            stage = e.stage
            self._fail()
            log_error(f"Stage '{stage}' failed: {e.message}")
            if e.details:
                for key, value in e.details.items():
                    log_error(f"  {key}: {value}")
            if stage == "validation":
                log_error("Container and proxy were left in place (no rollback).")
            return self._finish(e.exit_code, failed_stage=stage, error=e)
        except KeyboardInterrupt:
            interrupted_in = self.state.value
            self._fail()
            log_error(f"Interrupted after state '{interrupted_in}'; remote state left as-is.")
            return self._finish(ExitCode.INTERRUPTED, failed_stage="interrupted")

        print_plain(f"App should be available at: {self.public_url}")
        log_success("=== Deploy finished successfully ===")
        return self._finish(ExitCode.SUCCESS)

    def status(self) -> StageReport:
        """Run only the read-only health checks against an existing deployment.

        Raises:
            ConnectivityError: If the host cannot be reached
            ValidationError: If a health check fails
        """
        ConnectivityProbe(self.executor, interactive_fallback=False).probe()
        return HealthChecker(
            self.executor, self.app_name,
            public_url=self.public_url if self.external_check else None,
        ).validate()

    def _acquire_source(self) -> None:
        log_phase("Acquiring application sources...")
        self.git_manager.acquire()
        self.git_manager.ensure_descriptor()
