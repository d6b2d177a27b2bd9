"""devbox - Development Workstation Provisioner.

Detects the Linux distribution, installs a fixed set of command-line tools
through apt or dnf (or from pinned release archives when neither works),
installs a pinned editor build, adds shell aliases, and deploys a personal
editor configuration archive.
"""

from __future__ import annotations

__version__ = "0.1.0"

from . import aliases, cli, config, distro, download, packages, utils
from .cli import main

# Re-export commonly used functions
from .config import DevboxConfig
from .distro import Distribution, Family, detect_distribution
from .errors import ProvisionError
from .results import Status, StepResult
from .sequencer import Provisioner

__all__ = [
    "DevboxConfig",
    "Distribution",
    "Family",
    "ProvisionError",
    "Provisioner",
    "Status",
    "StepResult",
    "aliases",
    "cli",
    "config",
    "detect_distribution",
    "distro",
    "download",
    "main",
    "packages",
    "utils",
]
