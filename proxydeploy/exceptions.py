"""
Custom exception hierarchy for proxydeploy.

Each deployment stage has its own error type carrying a fixed exit code, so
the orchestrator and the CLI can report a failure without duplicating
logging or exit logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from proxydeploy.config.settings import ExitCode


@dataclass
class ProxyDeployError(Exception):
    """Base exception carrying structured error metadata."""

    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    exit_code: int = ExitCode.UNEXPECTED

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass
class StageError(ProxyDeployError):
    """A fatal failure of one deployment stage.

    Subclasses pin the stage name and exit code; callers only pass the
    message and, optionally, the failing command's details.
    """

    stage = "unknown"
    stage_exit_code = ExitCode.UNEXPECTED

    def __post_init__(self) -> None:
        self.exit_code = self.stage_exit_code
        if self.error_code is None:
            self.error_code = self.stage


class InputError(StageError):
    """Required configuration is missing or a referenced local file is absent."""

    stage = "input"
    stage_exit_code = ExitCode.INPUT


class AcquisitionError(StageError):
    """Cloning or updating the local sources failed."""

    stage = "acquisition"
    stage_exit_code = ExitCode.ACQUISITION


class DescriptorMissingError(StageError):
    """No Dockerfile or docker-compose.yml in the acquired sources."""

    stage = "descriptor"
    stage_exit_code = ExitCode.DESCRIPTOR


class ConnectivityError(StageError):
    stage = "connectivity"
    stage_exit_code = ExitCode.CONNECTIVITY


class ProvisioningError(StageError):
    """A primary remote dependency (docker, nginx) failed to install or start."""

    stage = "provisioning"
    stage_exit_code = ExitCode.PROVISIONING


class TransferError(StageError):
    stage = "transfer"
    stage_exit_code = ExitCode.TRANSFER


class DeployError(StageError):
    """Image build or container start failed."""

    stage = "deploy"
    stage_exit_code = ExitCode.DEPLOY


class ProxyConfigError(StageError):
    stage = "proxy"
    stage_exit_code = ExitCode.PROXY


class ValidationError(StageError):
    """Post-deploy health checks failed. Remote state is left as deployed."""

    stage = "validation"
    stage_exit_code = ExitCode.VALIDATION
