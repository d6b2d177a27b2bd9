"""Linux distribution detection from os-release."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import DistroDetectionError
from .utils import log

DEBIAN_IDS = ("debian", "ubuntu")
EPEL_IDS = ("rocky", "almalinux", "centos")

_UNESCAPE = {'\\"': '"', "\\\\": "\\", "\\$": "$", "\\`": "`"}


class Family(enum.Enum):
    """Distribution families that share a package manager."""

    DEBIAN = "debian"
    FEDORA = "fedora"
    OTHER = "other"


@dataclass(frozen=True)
class Distribution:
    """Identity of the running distribution, read once at startup."""

    id: str = "unknown"
    id_like: str = ""
    name: str = ""
    family: Family = Family.OTHER

    @property
    def needs_epel(self) -> bool:
        """Return True for RHEL-like systems that need the EPEL repository."""
        return (
            "rhel" in self.id_like
            or "fedora" in self.id_like
            or self.id in EPEL_IDS
        )

    def __str__(self) -> str:
        """Return the human readable name and identifier."""
        return f"{self.name or self.id} ({self.id})"


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":  # noqa: PLR2004
        quote = value[0]
        value = value[1:-1]
        if quote == '"':
            for escaped, plain in _UNESCAPE.items():
                value = value.replace(escaped, plain)
    return value


def parse_os_release(text: str) -> dict[str, str]:
    """Parse the key=value lines of an os-release file."""
    fields: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        fields[key.strip()] = _unquote(value)
    return fields


def read_os_release(path: str | os.PathLike = "/etc/os-release") -> dict[str, str]:
    """Read and parse an os-release file, failing if it does not exist."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        msg = f"Cannot detect distribution ({path} not found)."
        raise DistroDetectionError(msg) from e
    return parse_os_release(text)


def classify(distro_id: str, id_like: str = "") -> Family:
    """Map an os-release ID and ID_LIKE pair to a distribution family."""
    if distro_id in DEBIAN_IDS or "debian" in id_like:
        return Family.DEBIAN
    if distro_id == "fedora" or "fedora" in id_like or "rhel" in id_like:
        return Family.FEDORA
    return Family.OTHER


def distribution_from_fields(fields: dict[str, str]) -> Distribution:
    """Build a Distribution from parsed os-release fields."""
    distro_id = fields.get("ID") or "unknown"
    id_like = fields.get("ID_LIKE", "")
    return Distribution(
        id=distro_id,
        id_like=id_like,
        name=fields.get("NAME", distro_id),
        family=classify(distro_id, id_like),
    )


def detect_distribution(path: str | os.PathLike = "/etc/os-release") -> Distribution:
    """Detect the running distribution."""
    distro = distribution_from_fields(read_os_release(path))
    log(f"Detected distribution: {distro}", "info")
    return distro
