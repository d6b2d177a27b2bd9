"""Exceptions raised by devbox."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .command import CmdResult


class ProvisionError(RuntimeError):
    """A failure that aborts the provisioning run."""


class DistroDetectionError(ProvisionError):
    """The system description file is missing or unreadable."""


class CommandError(ProvisionError):
    """An external command exited with a non-zero status."""

    def __init__(self, message: str, result: CmdResult) -> None:
        """Initialize the CommandError."""
        self.message = message
        self.result = result
        super().__init__(message)


class DownloadError(ProvisionError):
    """A release artifact could not be fetched."""


class ExtractionError(ProvisionError):
    """An archive could not be unpacked or did not contain what we expected."""


class UnsupportedArchitectureError(ProvisionError):
    """No release asset is configured for the current CPU architecture."""
