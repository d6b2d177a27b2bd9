"""Report which expected tools ended up on PATH."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from .command import run_cmd
from .results import Status, StepResult
from .utils import console, log

if TYPE_CHECKING:
    from .config import DevboxConfig


def version_banner(command: str) -> str | None:
    """Return the first line of ``<command> --version``, if any."""
    result = run_cmd([command, "--version"], check=False)
    if not result.ok or not result.stdout.strip():
        return None
    return result.stdout.strip().splitlines()[0]


def verify_tools(config: DevboxConfig) -> StepResult:
    """Print an installed/missing line per tool. Never fails the run."""
    log("Verifying installed tools...", "info")
    missing = []
    for label, command in config.verify_tools.items():
        if shutil.which(command):
            console.print(f"  [green]{label} installed[/green]")
        else:
            console.print(f"  [yellow]{label} missing[/yellow]")
            missing.append(label)

    editor = config.editor["name"]
    label = config.editor.get("label", editor)
    if shutil.which(editor):
        banner = version_banner(editor)
        if banner:
            console.print(f"  {banner}")
        console.print(f"  [green]{label} installed[/green]")
    else:
        console.print(f"  [yellow]{label} missing[/yellow]")
        missing.append(label)

    if missing:
        return StepResult("verify", Status.DEGRADED, f"missing: {', '.join(missing)}")
    return StepResult("verify", Status.OK, "all tools found")
