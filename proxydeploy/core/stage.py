"""
Stage and step result types shared by the deployment components.

A stage is a sequence of steps. A step either applied a change, found
nothing to do, passed a check, or failed in a way the stage tolerates.
``FAILED`` steps are recorded only so a report can list every check before
the stage raises its ``StageError``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.logging import log_error, log_info, log_warning


class StepStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    PASSED = "passed"
    TOLERATED = "tolerated"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    name: str
    status: StepStatus
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "status": self.status.value}
        if self.detail:
            data["detail"] = self.detail
        return data


@dataclass
class StageReport:
    """Record of the steps one stage performed."""

    stage: str
    steps: List[StepResult] = field(default_factory=list)

    def record(self, name: str, status: StepStatus, detail: str = "") -> StepResult:
        """Append a step result and log it."""
        step = StepResult(name, status, detail)
        self.steps.append(step)
        if status is StepStatus.FAILED:
            log_error(f"[{self.stage}] {name}: {detail or 'failed'}")
        elif status is StepStatus.TOLERATED:
            log_warning(f"[{self.stage}] {name}: tolerated failure{': ' + detail if detail else ''}")
        else:
            log_info(f"[{self.stage}] {name}: {status.value}{' (' + detail + ')' if detail else ''}")
        return step

    def step(self, name: str) -> Optional[StepResult]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    @property
    def tolerated(self) -> List[StepResult]:
        return [step for step in self.steps if step.status is StepStatus.TOLERATED]

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "steps": [step.to_dict() for step in self.steps]}
