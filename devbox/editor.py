"""Install a pinned editor build from its release tarball."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .command import privileged, run_cmd
from .download import download_and_extract, replace_variables, resolve_arch
from .errors import ExtractionError
from .results import Status, StepResult
from .utils import log

if TYPE_CHECKING:
    from .config import DevboxConfig

logger = logging.getLogger(__name__)


def install_editor(config: DevboxConfig, work_dir: Path, arch: str | None = None) -> StepResult:
    """Replace the editor installation with the pinned release and link it.

    The download is extracted and checked before the previous installation
    is removed. Removal and move are still two steps, so a failure in
    between leaves no editor installed.
    """
    editor = config.editor
    label = editor.get("label", editor["name"])
    version = editor["version"]
    editor_arch = resolve_arch(editor, arch)
    url = replace_variables(editor["url"], version, editor_arch)
    install_dir = Path(editor["install_dir"])
    link_path = config.bin_dir / editor["name"]

    log(f"Installing {label} {version} (glibc-compatible build for older systems)...", "info", "📝")

    editor_dir = work_dir / "editor"
    editor_dir.mkdir(parents=True, exist_ok=True)
    download_and_extract(url, editor_dir, dry_run=config.dry_run)

    extracted = editor_dir / replace_variables(editor["archive_dir"], version, editor_arch)
    if not config.dry_run and not extracted.is_dir():
        msg = f"Expected {extracted.name} in {label} archive"
        raise ExtractionError(msg)

    def sudo(*argv: str) -> list[str]:
        return privileged(argv, use_sudo=config.use_sudo)

    run_cmd(sudo("rm", "-rf", str(install_dir)), dry_run=config.dry_run)
    run_cmd(sudo("mv", str(extracted), str(install_dir)), dry_run=config.dry_run)
    run_cmd(
        sudo("ln", "-sf", str(install_dir / editor["entry_point"]), str(link_path)),
        dry_run=config.dry_run,
    )

    log(f"{label} {version} (old glibc compatible) installed successfully.", "success")
    return StepResult("editor", Status.OK, f"{label} {version} at {install_dir}")
