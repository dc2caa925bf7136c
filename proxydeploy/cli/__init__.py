"""
Click CLI framework for proxydeploy.
"""

from __future__ import annotations

import signal
import sys

import click

from proxydeploy.cli.helpers import verbose_callback
from proxydeploy.cli_commands import register_all_commands
from proxydeploy.config.settings import VERSION, ExitCode
from proxydeploy.utils.logging import close_run_log, log_error


def _build_cli() -> click.Group:
    cli = click.Group(
        help="""proxydeploy: deploy a Dockerized repository to one host behind nginx

Usage:
    proxydeploy deploy [options]

    proxydeploy deploy --cleanup [options]

    proxydeploy status [options]

Examples:
    proxydeploy deploy --repo-url https://github.com/acme/site.git \\
        --ssh-user ubuntu --server 203.0.113.10 --ssh-key ~/.ssh/site.pem --app-port 80
    proxydeploy deploy --cleanup --config proxydeploy.yml
"""
    )
    cli = click.version_option(version=VERSION, prog_name="proxydeploy")(cli)
    cli = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose output (show INFO messages and command output)",
        callback=verbose_callback,
        expose_value=False,
        is_eager=True,
    )(cli)

    register_all_commands(cli)
    return cli


cli = _build_cli()


def _terminate(signum, frame):
    raise KeyboardInterrupt


def main():
    """Main entry point for the CLI."""
    # SIGTERM is handled like Ctrl-C: stop before the next stage
    signal.signal(signal.SIGTERM, _terminate)
    try:
        cli.main(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        sys.exit(exc.exit_code)
    except (click.Abort, KeyboardInterrupt):
        log_error("Operation cancelled by user")
        close_run_log()
        sys.exit(ExitCode.INTERRUPTED)
    except Exception as exc:
        log_error(f"Unexpected error: {exc}")
        close_run_log()
        sys.exit(ExitCode.UNEXPECTED)


__all__ = ["cli", "main"]
