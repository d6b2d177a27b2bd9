"""Native package installation with a manual release-binary fallback."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from .command import privileged, run_cmd
from .distro import Distribution, Family
from .download import install_release_binary
from .errors import ProvisionError
from .results import Status, StepResult
from .utils import log

if TYPE_CHECKING:
    from pathlib import Path

    from .config import DevboxConfig

logger = logging.getLogger(__name__)


def _sudo(config: DevboxConfig, *argv: str) -> list[str]:
    return privileged(argv, use_sudo=config.use_sudo)


def enable_epel(config: DevboxConfig, distro: Distribution) -> StepResult:
    """Enable the EPEL repository on RHEL-like systems.

    Runs before any package set is requested. A failure here is fatal.
    """
    if not distro.needs_epel:
        return StepResult("epel", Status.SKIPPED, "not a RHEL-like system")
    log("Enabling EPEL repository for extra packages...", "info")
    run_cmd(
        _sudo(config, "dnf", "install", "-y", config.epel_package),
        dry_run=config.dry_run,
    )
    return StepResult("epel", Status.OK, config.epel_package)


def link_fd(config: DevboxConfig, source_name: str) -> bool:
    """Expose ``fd`` under its upstream name when the distro renames it.

    Returns True if a link was created.
    """
    if shutil.which("fd"):
        return False
    source = shutil.which(source_name)
    if source is None and config.dry_run:
        source = source_name
    elif source is None:
        msg = f"Neither fd nor {source_name} found on PATH after package install"
        raise ProvisionError(msg)
    target = config.bin_dir / "fd"
    run_cmd(_sudo(config, "ln", "-sf", source, str(target)), dry_run=config.dry_run)
    log(f"Linked {target} -> {source}", "success", "🔗")
    return True


def install_debian(config: DevboxConfig) -> StepResult:
    """Install the package set with apt."""
    log("Using apt for Debian-based system...", "info")
    run_cmd(_sudo(config, "apt", "update"), dry_run=config.dry_run)
    run_cmd(
        _sudo(config, "apt", "install", "-y", *config.packages["debian"]),
        dry_run=config.dry_run,
    )
    linked = link_fd(config, config.fd_sources["debian"])
    return StepResult("packages", Status.OK, "apt" + (", linked fd" if linked else ""))


def install_fedora(config: DevboxConfig) -> StepResult:
    """Install the package set with dnf."""
    log("Using dnf for Fedora/RHEL-based system...", "info")
    run_cmd(
        _sudo(config, "dnf", "install", "-y", *config.packages["fedora"]),
        dry_run=config.dry_run,
    )
    linked = link_fd(config, config.fd_sources["fedora"])
    return StepResult("packages", Status.OK, "dnf" + (", linked fd" if linked else ""))


def _best_effort(config: DevboxConfig, *argvs: list[str]) -> bool:
    """Run commands in sequence until one fails; never raise."""
    for argv in argvs:
        result = run_cmd(argv, check=False, dry_run=config.dry_run)
        if not result.ok:
            log(f"Ignoring failure of {' '.join(argv)} ({result.returncode})", "warning")
            return False
    return True


def install_unsupported(config: DevboxConfig, distro: Distribution, work_dir: Path) -> StepResult:
    """Try both package managers, then install fzf and fd from release archives."""
    log(
        f"Unsupported distribution: {distro.id} - attempting partial + manual installs.",
        "warning",
    )
    attempts = {
        "dnf epel": _best_effort(
            config,
            _sudo(config, "dnf", "install", "-y", config.epel_package),
        ),
        "dnf": _best_effort(
            config,
            _sudo(config, "dnf", "install", "-y", *config.packages["fallback_dnf"]),
        ),
        "apt": _best_effort(
            config,
            _sudo(config, "apt", "update"),
            _sudo(config, "apt", "install", "-y", *config.packages["fallback_apt"]),
        ),
    }
    failed = [name for name, ok in attempts.items() if not ok]

    for tool_name, tool_config in config.fallback_tools.items():
        install_release_binary(
            tool_name,
            tool_config,
            work_dir,
            config.bin_dir,
            use_sudo=config.use_sudo,
            dry_run=config.dry_run,
        )

    tools = ", ".join(config.fallback_tools)
    if failed:
        return StepResult(
            "packages",
            Status.DEGRADED,
            f"{', '.join(failed)} failed; installed {tools} manually",
        )
    return StepResult("packages", Status.OK, f"installed {tools} manually")


def install_packages(config: DevboxConfig, distro: Distribution, work_dir: Path) -> StepResult:
    """Install the workstation package set for the detected family."""
    if distro.family is Family.DEBIAN:
        return install_debian(config)
    if distro.family is Family.FEDORA:
        return install_fedora(config)
    return install_unsupported(config, distro, work_dir)
