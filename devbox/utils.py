"""Utility functions for devbox."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Initialize rich console
console = Console()

_VERBOSE = False

_STYLES = {
    "info": ("🔍", "cyan"),
    "success": ("✅", "green"),
    "warning": ("⚠️", "yellow"),
    "error": ("❌", "bold red"),
    "debug": ("🐞", "dim"),
    "default": ("", ""),
}


def setup_logging(verbose: bool = False) -> None:  # noqa: FBT001, FBT002
    """Configure logging level based on verbosity."""
    global _VERBOSE
    _VERBOSE = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def log(message: str, level: str = "default", icon: str = "") -> None:
    """Print a styled status line to the console.

    ``debug`` messages are only shown when verbose output is enabled.
    """
    if level == "debug" and not _VERBOSE:
        return
    default_icon, style = _STYLES.get(level, _STYLES["default"])
    icon = icon or default_icon
    prefix = f"{icon} " if icon else ""
    if style:
        console.print(f"{prefix}[{style}]{message}[/{style}]")
    else:
        console.print(f"{prefix}{message}")


def current_arch() -> str:
    """Detect the current CPU architecture.

    Returns ``amd64`` or ``arm64``, or the raw machine name for anything else.
    """
    machine = os.uname().machine.lower()
    if machine in ["x86_64", "amd64"]:
        return "amd64"
    if machine in ["arm64", "aarch64"]:
        return "arm64"
    return machine


def is_root() -> bool:
    """Return True when running with an effective uid of 0."""
    return os.geteuid() == 0
