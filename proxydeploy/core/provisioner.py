"""
Remote environment preparation for proxydeploy.

Idempotently installs the container runtime, the compose plugin and nginx
on the target host. Each prerequisite is checked before anything is
installed, so re-running against a prepared host changes nothing.
"""

import shlex
from dataclasses import dataclass
from typing import List

from ..config.settings import COMPOSE_PACKAGE, DOCKER_GROUP, DOCKER_PACKAGE, NGINX_PACKAGE
from ..exceptions import ProvisioningError
from ..utils.logging import log_info, log_phase, log_success
from .stage import StageReport, StepStatus


@dataclass(frozen=True)
class Prerequisite:
    """A package the target host must provide."""

    name: str
    check: str
    package: str
    service: str = ""
    required: bool = True


PREREQUISITES = (
    Prerequisite("docker", "command -v docker >/dev/null 2>&1", DOCKER_PACKAGE, service="docker"),
    Prerequisite(
        "compose",
        "docker compose version >/dev/null 2>&1 || command -v docker-compose >/dev/null 2>&1",
        COMPOSE_PACKAGE,
        required=False,
    ),
    Prerequisite("nginx", "command -v nginx >/dev/null 2>&1", NGINX_PACKAGE, service="nginx"),
)

VERSION_COMMANDS = ("docker --version", "docker compose version", "nginx -v")


class RemoteProvisioner:
    """Prepares the target host for container deployments."""

    def __init__(self, executor):
        self.executor = executor
        self._apt_updated = False

    def provision(self) -> StageReport:
        """Ensure docker, compose and nginx are present and docker group membership.

        Raises:
            ProvisioningError: If docker or nginx cannot be installed or started
        """
        log_phase("Preparing remote environment (docker, docker compose, nginx)...")
        report = StageReport("provisioning")

        for prerequisite in PREREQUISITES:
            self._ensure(prerequisite, report)

        self._ensure_group_membership(report)
        self._report_versions()

        log_success("Remote environment prepared.")
        return report

    def _ensure(self, prerequisite: Prerequisite, report: StageReport) -> None:
        if self.executor.execute(prerequisite.check).ok:
            report.record(prerequisite.name, StepStatus.SKIPPED, "already installed")
            return

        log_info(f"Installing {prerequisite.name}...")
        failure = self._install(prerequisite)
        if failure is None:
            report.record(prerequisite.name, StepStatus.APPLIED, f"installed {prerequisite.package}")
        elif prerequisite.required:
            raise ProvisioningError(
                f"Failed to install {prerequisite.name}: {failure}",
                details={"prerequisite": prerequisite.name, "package": prerequisite.package},
            )
        else:
            report.record(prerequisite.name, StepStatus.TOLERATED, failure)

    def _install(self, prerequisite: Prerequisite):
        """Run the install sequence; return a failure description or None."""
        commands: List[str] = []
        if not self._apt_updated:
            commands.append("apt-get update -y")
        commands.append(f"apt-get install -y {shlex.quote(prerequisite.package)}")
        if prerequisite.service:
            commands.append(f"systemctl enable {prerequisite.service}")
            commands.append(f"systemctl start {prerequisite.service}")

        for command in commands:
            result = self.executor.execute(command, sudo=True)
            if not result.ok:
                return result.describe()
            if command.startswith("apt-get update"):
                self._apt_updated = True
        return None

    def _ensure_group_membership(self, report: StageReport) -> None:
        user = self.executor.session.username
        groups = self.executor.execute(f"id -nG {shlex.quote(user)}")
        if groups.ok and DOCKER_GROUP in groups.stdout.split():
            report.record("docker-group", StepStatus.SKIPPED, f"{user} already in {DOCKER_GROUP}")
            return

        result = self.executor.execute(f"usermod -aG {DOCKER_GROUP} {shlex.quote(user)}", sudo=True)
        if result.ok:
            report.record("docker-group", StepStatus.APPLIED, f"added {user} to {DOCKER_GROUP}")
        else:
            report.record("docker-group", StepStatus.TOLERATED, result.describe())

    def _report_versions(self) -> None:
        for command in VERSION_COMMANDS:
            result = self.executor.execute(command)
            output = (result.stdout or result.stderr).strip()
            if result.ok and output:
                log_info(output)
