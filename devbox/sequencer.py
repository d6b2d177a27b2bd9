"""Run the provisioning steps in order."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from rich.table import Table

from .aliases import install_aliases
from .distro import Distribution, detect_distribution
from .dotconfig import deploy_editor_config
from .editor import install_editor
from .errors import ProvisionError
from .packages import enable_epel, install_packages
from .results import Status, StepResult
from .utils import console, log
from .verify import verify_tools

if TYPE_CHECKING:
    from .config import DevboxConfig

logger = logging.getLogger(__name__)

_STATUS_STYLES = {
    Status.OK: "green",
    Status.DEGRADED: "yellow",
    Status.SKIPPED: "dim",
    Status.FATAL: "bold red",
}


@dataclass
class Provisioner:
    """Provision a workstation from top to bottom, once.

    A fatal step stops the run; the steps already completed are not rolled
    back.
    """

    config: DevboxConfig
    skip_aliases: bool = False
    skip_config: bool = False
    results: list[StepResult] = field(default_factory=list)
    distro: Distribution | None = None

    def _step(self, name: str, func: Callable[[], StepResult]) -> StepResult:
        logger.debug("Running step %s", name)
        try:
            result = func()
        except ProvisionError as e:
            self.results.append(StepResult(name, Status.FATAL, str(e)))
            raise
        self.results.append(result)
        return result

    def _detect(self) -> StepResult:
        self.distro = detect_distribution(self.config.os_release)
        return StepResult("detect", Status.OK, str(self.distro))

    def run(self) -> list[StepResult]:
        """Run every step and return their results.

        The temporary download directory is removed on every exit path.
        """
        self.results = []
        self._step("detect", self._detect)
        distro = self.distro
        self._step("epel", lambda: enable_epel(self.config, distro))

        with tempfile.TemporaryDirectory(prefix="devbox-") as tmp:
            work_dir = Path(tmp)
            self._step("packages", lambda: install_packages(self.config, distro, work_dir))
            self._step("editor", lambda: install_editor(self.config, work_dir))

        self._step("verify", lambda: verify_tools(self.config))

        if self.skip_aliases:
            self.results.append(StepResult("aliases", Status.SKIPPED, "--skip-aliases"))
        else:
            self._step("aliases", lambda: install_aliases(self.config))

        if self.skip_config:
            self.results.append(StepResult("config", Status.SKIPPED, "--skip-config"))
        else:
            self._step("config", lambda: deploy_editor_config(self.config))

        return self.results


def print_summary(results: list[StepResult]) -> None:
    """Print a table with one row per step."""
    table = Table(title="devbox summary")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Detail")
    for result in results:
        style = _STATUS_STYLES[result.status]
        table.add_row(result.step, f"[{style}]{result.status.value}[/{style}]", result.detail)
    console.print(table)

    degraded = [r.step for r in results if r.status is Status.DEGRADED]
    if degraded:
        log(f"Completed with warnings in: {', '.join(degraded)}", "warning")
