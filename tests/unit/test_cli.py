"""
Unit tests for the click command line.
"""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

import proxydeploy.cli as cli_module
from proxydeploy.cli import cli, main
from proxydeploy.config.settings import ENV_VARS, VERSION, ExitCode
from proxydeploy.core.orchestrator import DeploymentState, RunResult
from proxydeploy.core.stage import StageReport, StepStatus
from proxydeploy.exceptions import ValidationError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def target_args(ssh_key):
    return [
        "--repo-url", "https://github.com/acme/site.git",
        "--ssh-user", "ubuntu",
        "--server", "203.0.113.10",
        "--ssh-key", str(ssh_key),
        "--app-port", "3000",
        "--non-interactive",
    ]


def _extract_json(output: str) -> dict:
    start = output.find("{")
    end = output.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise AssertionError(f"No JSON object found in CLI output:\n{output}")
    return json.loads(output[start:end + 1])


def _result(exit_code=ExitCode.SUCCESS, state=DeploymentState.VALIDATED):
    return RunResult(state=state, exit_code=exit_code,
                     history=[DeploymentState.INIT, state])


class TestDeployCommand:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert VERSION in result.output

    def test_missing_inputs_exit_code(self, runner):
        result = runner.invoke(cli, ["deploy", "--non-interactive"])
        assert result.exit_code == ExitCode.INPUT
        assert "Missing required input" in result.output

    def test_missing_inputs_json(self, runner):
        result = runner.invoke(cli, ["deploy", "--json", "--server", "203.0.113.10"])

        assert result.exit_code == ExitCode.INPUT
        data = _extract_json(result.output)
        assert data["success"] is False
        assert data["error_code"] == "input"
        assert data["details"]["missing"] == ["repo_url", "ssh_user", "ssh_key", "app_port"]

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_successful_deploy(self, mock_orchestrator, runner, target_args, tmp_path):
        mock_orchestrator.return_value.run.return_value = _result()

        result = runner.invoke(cli, ["deploy", "--log-dir", str(tmp_path / "logs")] + target_args)

        assert result.exit_code == 0
        config = mock_orchestrator.call_args[0][0]
        assert config.app_name == "site"
        assert config.app_port == 3000
        mock_orchestrator.return_value.run.assert_called_once_with(cleanup=False)
        assert len(list((tmp_path / "logs").glob("deploy_*.log"))) == 1

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_cleanup_flag(self, mock_orchestrator, runner, target_args):
        mock_orchestrator.return_value.run.return_value = _result(state=DeploymentState.CLEANED_UP)

        result = runner.invoke(cli, ["deploy", "--cleanup"] + target_args)

        assert result.exit_code == 0
        mock_orchestrator.return_value.run.assert_called_once_with(cleanup=True)

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_stage_exit_code_propagates(self, mock_orchestrator, runner, target_args):
        mock_orchestrator.return_value.run.return_value = _result(ExitCode.PROXY, DeploymentState.FAILED)

        result = runner.invoke(cli, ["deploy"] + target_args)

        assert result.exit_code == ExitCode.PROXY

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_json_summary(self, mock_orchestrator, runner, target_args):
        mock_orchestrator.return_value.run.return_value = _result()

        result = runner.invoke(cli, ["deploy", "--json"] + target_args)

        assert result.exit_code == 0
        data = _extract_json(result.output)
        assert data["state"] == "validated"
        assert mock_orchestrator.call_args[1]["interactive_fallback"] is False

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_token_never_printed(self, mock_orchestrator, runner, target_args, tmp_path):
        mock_orchestrator.return_value.run.return_value = _result()
        token = "ghp_1234567890abcdef"

        result = runner.invoke(cli, ["deploy", "--verbose", "--token", token,
                                     "--log-dir", str(tmp_path)] + target_args)

        assert result.exit_code == 0
        assert token not in result.output
        log_file = next(Path(tmp_path).glob("deploy_*.log"))
        assert token not in log_file.read_text()


class TestStatusCommand:
    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_healthy(self, mock_orchestrator, runner, target_args):
        report = StageReport("validation")
        report.record("http-probe", StepStatus.PASSED)
        mock_orchestrator.return_value.status.return_value = report

        result = runner.invoke(cli, ["status", "--json"] + target_args)

        assert result.exit_code == 0
        data = _extract_json(result.output)
        assert data["success"] is True
        assert data["data"]["steps"] == [{"name": "http-probe", "status": "passed"}]

    @patch("proxydeploy.cli_commands.deploy.DeploymentOrchestrator")
    def test_unhealthy(self, mock_orchestrator, runner, target_args):
        mock_orchestrator.return_value.status.side_effect = ValidationError(
            "Deployment validation failed: http-probe")

        result = runner.invoke(cli, ["status"] + target_args)

        assert result.exit_code == ExitCode.VALIDATION


class TestMain:
    @patch("proxydeploy.cli.signal.signal")
    def test_interrupt_exit_code(self, mock_signal):
        with patch.object(cli_module, "cli", Mock(main=Mock(side_effect=KeyboardInterrupt))):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == ExitCode.INTERRUPTED

    @patch("proxydeploy.cli.signal.signal")
    def test_unexpected_error_exit_code(self, mock_signal):
        with patch.object(cli_module, "cli", Mock(main=Mock(side_effect=RuntimeError("boom")))):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == ExitCode.UNEXPECTED
