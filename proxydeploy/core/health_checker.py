"""
Post-deploy health validation for proxydeploy.

Read-only checks run after the proxy is configured. They report whether the
deployment is observably serving; a failure does not undo anything.
"""

import shlex
from typing import Optional

import requests

from ..config.settings import HEALTH_CHECK_URL
from ..exceptions import ValidationError
from ..utils.logging import log_info, log_phase, log_success, log_warning
from ..utils.validation import is_success_status
from .stage import StageReport, StepStatus


class HealthChecker:
    """Validates a deployment on the remote host."""

    def __init__(self, executor, app_name: str, public_url: Optional[str] = None,
                 external_timeout: int = 10):
        """Initialize health checker.

        Args:
            executor: RemoteExecutor bound to the target
            app_name: Logical application name (container name)
            public_url: Optional URL probed from this machine as an extra,
                non-fatal reachability signal
            external_timeout: Timeout in seconds for the external probe
        """
        self.executor = executor
        self.app_name = app_name
        self.public_url = public_url
        self.external_timeout = external_timeout

    def validate(self) -> StageReport:
        """Run every check, then fail if any of the required ones failed.

        Raises:
            ValidationError: If the docker service, the container or the
                proxied HTTP probe check fails
        """
        log_phase("Validating deployment on remote host...")
        report = StageReport("validation")
        failed = []

        for name, check in (
            ("docker-service", self._check_docker_service),
            ("container-running", self._check_container),
            ("http-probe", self._check_http),
        ):
            error = check()
            if error is None:
                report.record(name, StepStatus.PASSED)
            else:
                report.record(name, StepStatus.FAILED, error)
                failed.append(name)

        if failed:
            raise ValidationError(
                f"Deployment validation failed: {', '.join(failed)}",
                details=report.to_dict(),
            )

        if self.public_url:
            self._check_external(report)

        log_success("Validation completed.")
        return report

    def _check_docker_service(self) -> Optional[str]:
        result = self.executor.execute("systemctl is-active --quiet docker")
        return None if result.ok else "docker service not active"

    def _check_container(self) -> Optional[str]:
        result = self.executor.execute(
            f"docker ps --filter name={shlex.quote(self.app_name)} --format '{{{{.Names}}}}'",
            sudo=True,
        )
        if not result.ok:
            return f"could not list containers: {result.describe()}"
        if self.app_name not in result.stdout.split():
            return "target container not running"
        return None

    def _check_http(self) -> Optional[str]:
        result = self.executor.execute(
            f"curl -s -o /dev/null -w '%{{http_code}}' {HEALTH_CHECK_URL}"
        )
        status_text = result.stdout.strip()
        if not status_text.isdigit():
            return f"HTTP probe failed: {result.describe()}"
        status = int(status_text)
        log_info(f"HTTP_STATUS={status}")
        if not is_success_status(status):
            return f"nginx returned HTTP {status}"
        return None

    def _check_external(self, report: StageReport) -> None:
        try:
            response = requests.get(self.public_url, timeout=self.external_timeout)
        except requests.RequestException as e:
            report.record("external-probe", StepStatus.TOLERATED, str(e))
            return
        if is_success_status(response.status_code):
            report.record("external-probe", StepStatus.PASSED, f"HTTP {response.status_code}")
        else:
            log_warning(f"{self.public_url} returned HTTP {response.status_code} from this machine")
            report.record("external-probe", StepStatus.TOLERATED, f"HTTP {response.status_code}")
