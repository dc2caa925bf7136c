"""
Container deployment for proxydeploy.

Builds the application image on the remote host and replaces the running
container. Exactly one container per application name exists afterwards:
any previous instance is stopped and removed before the new one starts.

If the final ``docker run`` fails, the previous container has already been
removed and is not restored; the host is left without a running instance
until the next successful deploy.
"""

import shlex

from ..exceptions import DeployError
from ..utils.logging import log_info, log_phase, log_success
from .stage import StageReport, StepStatus


class DockerManager:
    """Builds and (re)starts the application container on the remote host."""

    def __init__(self, executor, app_name: str, app_port: int, remote_dir: str):
        """Initialize Docker manager.

        Args:
            executor: RemoteExecutor bound to the target
            app_name: Logical application name (image tag and container name)
            app_port: Port published from the container to the host
            remote_dir: Build context, relative to the remote home directory
        """
        self.executor = executor
        self.app_name = app_name
        self.app_port = app_port
        self.remote_dir = remote_dir

    def deploy(self) -> StageReport:
        """Build the image, remove the old container and run the new one.

        Raises:
            DeployError: If the build or the final run fails
        """
        log_phase("Building and running container on remote host...")
        report = StageReport("deploy")
        name = shlex.quote(self.app_name)

        # A failed build leaves the running instance untouched
        build = self.executor.execute(
            f"docker build -t {name} ~/{shlex.quote(self.remote_dir)}", sudo=True
        )
        if not build.ok:
            raise DeployError(
                f"Image build failed for {self.app_name}",
                details={"command": build.command, "output": build.describe()},
            )
        report.record("build", StepStatus.APPLIED, f"image {self.app_name}")

        self.remove_container(report)

        run = self.executor.execute(
            f"docker run -d --restart unless-stopped -p {self.app_port}:{self.app_port} "
            f"--name {name} {name}",
            sudo=True,
        )
        if not run.ok:
            raise DeployError(
                f"Container start failed for {self.app_name}",
                details={"command": run.command, "output": run.describe()},
            )
        container_id = run.stdout.strip().splitlines()[-1] if run.stdout.strip() else ""
        report.record("run", StepStatus.APPLIED, container_id[:12])
        log_success("Container build & run completed.")
        return report

    def remove_container(self, report: StageReport) -> None:
        """Best-effort stop and remove of the container named after the app."""
        name = shlex.quote(self.app_name)
        for action in ("stop", "rm"):
            result = self.executor.execute(f"docker {action} {name}", sudo=True)
            if result.ok:
                report.record(f"container-{action}", StepStatus.APPLIED)
            else:
                log_info(f"No container to {action} ({self.app_name})")
                report.record(f"container-{action}", StepStatus.SKIPPED, result.describe())
