"""Outcome of a provisioning step."""

from __future__ import annotations

import enum
from typing import NamedTuple


class Status(enum.Enum):
    """How a step ended."""

    OK = "ok"
    DEGRADED = "degraded"  # best-effort attempt failed, run continues
    SKIPPED = "skipped"
    FATAL = "fatal"


class StepResult(NamedTuple):
    """Represents the outcome of a single step."""

    step: str
    status: Status
    detail: str = ""

    @property
    def ok(self) -> bool:
        """Return True unless the step was fatal."""
        return self.status is not Status.FATAL
