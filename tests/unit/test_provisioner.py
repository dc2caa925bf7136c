"""
Unit tests for remote environment provisioning.
"""

import pytest

from proxydeploy.config.settings import ExitCode
from proxydeploy.core.provisioner import RemoteProvisioner
from proxydeploy.core.stage import StepStatus
from proxydeploy.exceptions import ProvisioningError


class TestRemoteProvisioner:
    def test_prepared_host_changes_nothing(self, fake_host, fake_executor):
        fake_host.groups["ubuntu"].append("docker")

        report = RemoteProvisioner(fake_executor).provision()

        assert [step.status for step in report.steps] == [StepStatus.SKIPPED] * 4
        assert not any(call.startswith("sudo") for call in fake_executor.calls)

    def test_fresh_host_installs_everything(self, fake_host, fake_executor):
        fake_host.installed.clear()
        fake_host.services.clear()

        report = RemoteProvisioner(fake_executor).provision()

        for name in ("docker", "compose", "nginx", "docker-group"):
            assert report.step(name).status is StepStatus.APPLIED
        assert fake_host.installed == {"docker", "compose", "nginx"}
        assert fake_host.services == {"docker", "nginx"}
        assert "docker" in fake_host.groups["ubuntu"]
        # The package index is refreshed once per run
        assert sum("apt-get update" in call for call in fake_executor.calls) == 1

    def test_second_run_is_idempotent(self, fake_host, fake_executor):
        fake_host.installed.clear()
        RemoteProvisioner(fake_executor).provision()
        fake_executor.calls.clear()

        report = RemoteProvisioner(fake_executor).provision()

        assert all(step.status is StepStatus.SKIPPED for step in report.steps)
        assert not fake_executor.ran("apt-get")
        assert not fake_executor.ran("usermod")

    def test_compose_failure_is_tolerated(self, fake_host, fake_executor):
        fake_host.installed.discard("compose")
        fake_host.uninstallable.add("docker-compose-plugin")

        report = RemoteProvisioner(fake_executor).provision()

        assert report.step("compose").status is StepStatus.TOLERATED
        assert report.step("nginx").status is StepStatus.SKIPPED

    @pytest.mark.parametrize("tool,package", [("docker", "docker.io"), ("nginx", "nginx")])
    def test_required_install_failure(self, fake_host, fake_executor, tool, package):
        fake_host.installed.discard(tool)
        fake_host.uninstallable.add(package)

        with pytest.raises(ProvisioningError) as exc_info:
            RemoteProvisioner(fake_executor).provision()

        assert exc_info.value.exit_code == ExitCode.PROVISIONING
        assert exc_info.value.details["prerequisite"] == tool
