"""Run external commands with consistent logging."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

from .errors import CommandError
from .utils import is_root

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    """Outcome of a single external command."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return True if the command exited with status 0."""
        return self.returncode == 0


def format_argv(argv: Sequence[str]) -> str:
    """Quote an argument vector for display."""
    return " ".join(shlex.quote(a) for a in argv)


def privileged(argv: Sequence[str], *, use_sudo: bool = True) -> list[str]:
    """Prefix ``argv`` with ``sudo`` unless it is disabled or we are root."""
    if use_sudo and not is_root():
        return ["sudo", *argv]
    return list(argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    cwd: str | os.PathLike | None = None,
    env: Mapping[str, str] | None = None,
    interactive: bool = False,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command and return its result.

    - Always logs the command line.
    - Output is captured unless ``interactive`` is set, in which case the
      child inherits the terminal so it can prompt the user.
    - A missing executable is reported as exit status 127, like a shell.
    - ``dry_run`` logs but does not execute.
    """
    argv_list = [str(a) for a in argv]
    logger.debug("CMD %s", format_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0)

    capture = None if interactive else subprocess.PIPE
    try:
        p = subprocess.run(  # noqa: S603
            argv_list,
            text=True,
            stdout=capture,
            stderr=capture,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            check=False,
        )
    except FileNotFoundError as e:
        result = CmdResult(argv=argv_list, returncode=127, stderr=str(e))
    else:
        result = CmdResult(
            argv=argv_list,
            returncode=p.returncode,
            stdout=p.stdout or "",
            stderr=p.stderr or "",
        )

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    if check and not result.ok:
        msg = f"Command failed ({result.returncode}): {format_argv(argv_list)}"
        if result.stderr:
            msg += f"\n{result.stderr.strip()}"
        raise CommandError(msg, result)

    return result
