"""Deploy the personal editor configuration archive."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .command import run_cmd
from .download import download_file
from .errors import DownloadError, ExtractionError
from .results import Status, StepResult
from .utils import log

if TYPE_CHECKING:
    from .config import DevboxConfig


def deploy_editor_config(config: DevboxConfig) -> StepResult:
    """Download the password-protected archive and unpack it under the home dir.

    7-Zip prompts for the password on the terminal. The archive is removed
    only after a successful extraction so a failed attempt can be retried.
    """
    archive_config = config.config_archive
    archive = config.home / archive_config["filename"]
    extract_dir = archive_config["extract_dir"].rstrip("/") + "/"

    log("Deploying your editor config from GitHub release...", "info", "🚀")
    if config.dry_run:
        log(f"Would download {archive_config['url']} to {archive}", "info", "📥")
    else:
        try:
            download_file(archive_config["url"], archive)
        except DownloadError as e:
            msg = "Download failed! Check URL or network."
            raise DownloadError(msg) from e

    log("Extracting config... (you will be prompted for the password)", "info", "🔐")
    extraction = run_cmd(
        [archive_config["extractor"], "x", archive.name, f"-o{extract_dir}"],
        check=False,
        cwd=config.home,
        interactive=True,
        dry_run=config.dry_run,
    )
    if not extraction.ok:
        msg = (
            f"Extraction failed (wrong password or corrupted archive). "
            f"Keeping {archive} for retry."
        )
        raise ExtractionError(msg)

    if not config.dry_run:
        archive.unlink()
    log("Editor config deployed successfully!", "success")
    return StepResult("config", Status.OK, f"extracted into {config.home / extract_dir}")
