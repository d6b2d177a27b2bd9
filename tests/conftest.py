"""Configuration for pytest fixtures used in devbox tests."""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Any, Callable

import pytest

import devbox.aliases
import devbox.dotconfig
import devbox.download
import devbox.editor
import devbox.packages
import devbox.verify
from devbox.command import CmdResult, format_argv, run_cmd
from devbox.config import DevboxConfig
from devbox.errors import CommandError
from devbox.utils import console

PASSTHROUGH = ("mv", "ln", "chmod", "rm")


class FakeRunner:
    """Stands in for ``run_cmd``.

    File operations (mv, ln, chmod, rm) really run so tests can inspect the
    filesystem; everything else is recorded and answered from ``responses``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], dict[str, Any]]] = []
        self.responses: dict[tuple[str, ...], tuple[int, str]] = {}

    def respond(self, *prefix: str, returncode: int = 0, stdout: str = "") -> None:
        """Answer commands starting with ``prefix`` (sudo stripped)."""
        self.responses[prefix] = (returncode, stdout)

    @property
    def commands(self) -> list[list[str]]:
        """Recorded argument vectors without a leading sudo."""
        return [argv[1:] if argv[0] == "sudo" else argv for argv, _ in self.calls]

    def _lookup(self, argv: list[str]) -> tuple[int, str]:
        best: tuple[str, ...] = ()
        answer = (0, "")
        for prefix, response in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix and len(prefix) >= len(best):
                best, answer = prefix, response
        return answer

    def __call__(
        self,
        argv: list[str],
        *,
        check: bool = True,
        dry_run: bool = False,
        **kwargs: Any,
    ) -> CmdResult:
        argv = [str(a) for a in argv]
        self.calls.append((argv, kwargs))
        bare = argv[1:] if argv[0] == "sudo" else argv
        if bare[0] in PASSTHROUGH and not dry_run:
            return run_cmd(bare, check=check, **kwargs)
        if dry_run:
            return CmdResult(argv=argv, returncode=0)
        returncode, stdout = self._lookup(bare)
        result = CmdResult(argv=argv, returncode=returncode, stdout=stdout)
        if check and returncode != 0:
            msg = f"Command failed ({returncode}): {format_argv(argv)}"
            raise CommandError(msg, result)
        return result


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep long paths on one line in captured output."""
    monkeypatch.setattr(console, "width", 400)


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Replace ``run_cmd`` in every module that shells out."""
    runner = FakeRunner()
    for module in (
        devbox.aliases,
        devbox.dotconfig,
        devbox.download,
        devbox.editor,
        devbox.packages,
        devbox.verify,
    ):
        monkeypatch.setattr(module, "run_cmd", runner)
    return runner


@pytest.fixture
def config(tmp_path: Path) -> DevboxConfig:
    """A configuration that only touches paths under ``tmp_path``."""
    home = tmp_path / "home"
    home.mkdir()
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    cfg = DevboxConfig(
        os_release=tmp_path / "os-release",
        bin_dir=bin_dir,
        home=home,
        use_sudo=False,
    )
    (tmp_path / "opt").mkdir()
    cfg.editor["install_dir"] = str(tmp_path / "opt" / "nvim")
    return cfg


@pytest.fixture
def write_os_release(config: DevboxConfig) -> Callable[..., Path]:
    """Write an os-release file with the given fields."""

    def _write(**fields: str) -> Path:
        lines = [f'{key}="{value}"' for key, value in fields.items()]
        config.os_release.write_text("\n".join(lines) + "\n")
        return config.os_release

    return _write


@pytest.fixture
def path_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, config: DevboxConfig) -> Path:
    """Restrict PATH to a scratch directory plus the configured bin dir.

    The file utilities the installers shell out to stay reachable.
    """
    path_dir = tmp_path / "path"
    path_dir.mkdir()
    for tool in (*PASSTHROUGH, "bash"):
        real = shutil.which(tool)
        if real:
            (path_dir / tool).symlink_to(real)
    monkeypatch.setenv("PATH", f"{path_dir}{os.pathsep}{config.bin_dir}")
    return path_dir


def make_executable(directory: Path, name: str, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Create an executable script in ``directory``."""
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(0o755)
    return path


@pytest.fixture
def create_dummy_archive() -> Callable[[Path, dict[str, str]], Path]:
    r"""Create a .tar.gz holding executable files for testing.

    Usage:
        archive_path = create_dummy_archive(
            tmp_path / "test.tar.gz",
            {"mytool-1.0/bin/mytool": "#!/bin/sh\necho test"},
        )
    """

    def _create_archive(dest_path: Path, files: dict[str, str]) -> Path:
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp_path = Path(tmp_dir)
            with tarfile.open(dest_path, "w:gz") as tar:
                for name, content in files.items():
                    make_executable(tmp_path, name, content)
                    tar.add(tmp_path / name, arcname=name)
        return dest_path

    return _create_archive


@pytest.fixture
def make_script() -> Callable[..., Path]:
    """Return the helper that writes executable scripts."""
    return make_executable
