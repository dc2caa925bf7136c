"""
Remote teardown for proxydeploy.

Removes the application's container and nginx site. Every step is attempted
whatever happened before it, and the teardown itself never fails: it
reports which steps did not go through and lets the run finish.
"""

from ..utils.logging import log_phase, log_success, log_warning
from .docker_manager import DockerManager
from .nginx_manager import NginxManager
from .stage import StageReport


class CleanupExecutor:
    """Tears down the container and proxy site keyed by the app name."""

    def __init__(self, executor, app_name: str):
        self.executor = executor
        self.app_name = app_name
        self.docker = DockerManager(executor, app_name, app_port=0, remote_dir=app_name)
        self.nginx = NginxManager(executor, app_name)

    def cleanup(self) -> StageReport:
        log_phase(f"Running cleanup of '{self.app_name}' on remote host...")
        report = StageReport("cleanup")

        self.docker.remove_container(report)
        self.nginx.remove(report)

        for step in report.tolerated:
            log_warning(f"Cleanup step did not complete: {step.name}")
        log_success("Remote cleanup completed.")
        return report
