"""
Shared helpers and decorators for proxydeploy CLI commands.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

import click

from proxydeploy.exceptions import ProxyDeployError
from proxydeploy.utils.json_output import JSONOutput
from proxydeploy.utils.logging import close_run_log, error_exit, set_quiet, set_verbose


def verbose_callback(_: click.Context, __: click.Option, value: bool) -> bool:
    """Callback used by --verbose option on the root CLI."""
    if value:
        set_verbose(True)
    return value


def add_verbose_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add the shared verbose flag to a command."""
    return click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose output (show INFO messages and command output)",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(func)


def add_json_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to add a JSON output flag to a command."""
    return click.option(
        "--json",
        is_flag=True,
        default=False,
        help="Output the run summary as JSON",
    )(func)


def add_target_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator adding the configuration inputs shared by deploy and status."""
    options = [
        click.option("--repo-url", help="Git repository URL (HTTPS or SSH) [env: REPO_URL]"),
        click.option("--token", help="Personal access token for HTTPS clones [env: PAT]"),
        click.option("--branch", help="Branch to deploy (default: main) [env: BRANCH]"),
        click.option("--ssh-user", help="Remote SSH username [env: SSH_USER]"),
        click.option("--server", help="Remote server IP or hostname [env: SERVER_IP]"),
        click.option("--ssh-key", help="Path to the SSH private key [env: SSH_KEY]"),
        click.option("--app-port", help="Application port inside the container [env: APP_PORT]"),
        click.option("--config", "config_path", type=click.Path(dir_okay=False),
                     help="YAML config file (default: ./proxydeploy.yml)"),
        click.option("--non-interactive", is_flag=True, default=False,
                     help="Never prompt for missing values"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def command_wrapper(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to provide consistent error reporting.

    Turns ``ProxyDeployError`` into the error's exit code, or a JSON error
    document when ``--json`` is given. The wrapped function must accept a
    ``json`` keyword argument.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        json_enabled = kwargs.get("json", False)
        if json_enabled:
            set_quiet(True)
        try:
            return func(*args, **kwargs)
        except ProxyDeployError as exc:
            if json_enabled:
                JSONOutput.print_error(
                    exc.message,
                    error_code=exc.error_code,
                    details=exc.details,
                    json_output=True,
                )
                close_run_log()
                raise SystemExit(int(exc.exit_code))
            error_exit(exc.message, exit_code=exc.exit_code)
        finally:
            close_run_log()

    return wrapper
