"""
Deploy, cleanup and status commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import click

from proxydeploy.cli.helpers import (
    add_json_option,
    add_target_options,
    add_verbose_option,
    command_wrapper,
)
from proxydeploy.core.deployment_config import build_deployment_config
from proxydeploy.core.orchestrator import DeploymentOrchestrator
from proxydeploy.utils.json_output import JSONOutput
from proxydeploy.utils.logging import log_info, open_run_log


def _cli_values(**values: Any) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value not in (None, "")}


def register_commands(cli) -> None:
    @cli.command("deploy")
    @add_target_options
    @click.option("--cleanup", is_flag=True, default=False,
                  help="Remove the deployed container and nginx site instead of deploying")
    @click.option("--workspace", type=click.Path(file_okay=False),
                  help="Directory the repository is cloned into (default: current directory)")
    @click.option("--log-dir", type=click.Path(file_okay=False), default=".",
                  help="Directory for the run log (default: current directory)")
    @click.option("--command-timeout", type=int,
                  help="Timeout in seconds for each remote command (default: none)")
    @click.option("--no-interactive-ssh", is_flag=True, default=False,
                  help="Do not fall back to an interactive SSH attempt")
    @click.option("--external-check", is_flag=True, default=False,
                  help="Also request http://<server>/ from this machine after deploying")
    @add_json_option
    @add_verbose_option
    @command_wrapper
    def deploy(
        repo_url: Optional[str],
        token: Optional[str],
        branch: Optional[str],
        ssh_user: Optional[str],
        server: Optional[str],
        ssh_key: Optional[str],
        app_port: Optional[str],
        config_path: Optional[str],
        non_interactive: bool,
        cleanup: bool,
        workspace: Optional[str],
        log_dir: str,
        command_timeout: Optional[int],
        no_interactive_ssh: bool,
        external_check: bool,
        json: bool,
    ):
        """Deploy a repository to a remote host behind nginx.

        Clones or updates the repository, prepares the host (docker, nginx),
        syncs the sources, rebuilds and restarts the container, configures
        the reverse proxy and validates the result. With --cleanup, removes
        the container and the nginx site instead.

        Exit codes: 0 success, 10 input, 20 clone/fetch, 30 no Dockerfile,
        40 SSH, 50 provisioning, 60 transfer, 70 container, 80 nginx,
        90 validation, 130 interrupted.
        """
        log_path = open_run_log(Path(log_dir))
        log_info(f"Run log: {log_path}")

        config = build_deployment_config(
            _cli_values(
                repo_url=repo_url, token=token, branch=branch, ssh_user=ssh_user,
                server=server, ssh_key=ssh_key, app_port=app_port,
                workspace=workspace, command_timeout=command_timeout,
            ),
            config_path=config_path,
            interactive=False if (non_interactive or json) else None,
        )

        orchestrator = DeploymentOrchestrator(
            config,
            interactive_fallback=not (no_interactive_ssh or json),
            external_check=external_check,
        )
        result = orchestrator.run(cleanup=cleanup)

        if json:
            JSONOutput.print_json(result.to_dict())
        if not result.succeeded:
            raise SystemExit(int(result.exit_code))
        return result

    @cli.command("status")
    @add_target_options
    @click.option("--external-check", is_flag=True, default=False,
                  help="Also request http://<server>/ from this machine")
    @add_json_option
    @add_verbose_option
    @command_wrapper
    def status(
        repo_url: Optional[str],
        token: Optional[str],
        branch: Optional[str],
        ssh_user: Optional[str],
        server: Optional[str],
        ssh_key: Optional[str],
        app_port: Optional[str],
        config_path: Optional[str],
        non_interactive: bool,
        external_check: bool,
        json: bool,
    ):
        """Check an existing deployment without changing anything."""
        config = build_deployment_config(
            _cli_values(
                repo_url=repo_url, token=token, branch=branch, ssh_user=ssh_user,
                server=server, ssh_key=ssh_key, app_port=app_port,
            ),
            config_path=config_path,
            interactive=False if (non_interactive or json) else None,
        )
        orchestrator = DeploymentOrchestrator(config, external_check=external_check)
        report = orchestrator.status()
        JSONOutput.print_success(f"{config.app_name} is healthy on {config.server}",
                                 report.to_dict(), json_output=json)
        return report
