"""Download and extraction functions for devbox."""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from typing import Any

import requests

from .command import privileged, run_cmd
from .errors import DownloadError, ExtractionError, UnsupportedArchitectureError
from .utils import current_arch, log

logger = logging.getLogger(__name__)


def download_file(url: str, destination: str | os.PathLike) -> Path:
    """Download a file from a URL to a destination path."""
    log(f"Downloading from {url}", "info", "📥")
    destination = Path(destination)
    try:
        response = requests.get(url, stream=True, timeout=30)
        response.raise_for_status()

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                f.write(chunk)
    except (requests.RequestException, OSError) as e:
        log(f"Download failed: {e}", "error")
        # A partially written file must not be mistaken for a good download.
        destination.unlink(missing_ok=True)
        msg = f"Failed to download {url}: {e}"
        raise DownloadError(msg) from e
    return destination


def extract_archive(archive_path: str | os.PathLike, dest_dir: str | os.PathLike) -> None:
    """Extract a gzip or bzip2 tarball to a destination directory."""
    archive_path = str(archive_path)
    try:
        is_gzip = False
        with open(archive_path, "rb") as f:
            header = f.read(3)
            if header.startswith(b"\x1f\x8b"):
                is_gzip = True

        if is_gzip or archive_path.endswith((".tar.gz", ".tgz")):
            mode = "r:gz"
        elif archive_path.endswith((".tar.bz2", ".tbz2")):
            mode = "r:bz2"
        else:
            msg = f"Unsupported archive format: {archive_path}"
            raise ExtractionError(msg)  # noqa: TRY301

        with tarfile.open(archive_path, mode=mode) as tar:
            tar.extractall(path=dest_dir, filter="tar")
    except ExtractionError:
        raise
    except Exception as e:
        log(f"Extraction failed: {e}", "error")
        msg = f"Failed to extract {archive_path}: {e}"
        raise ExtractionError(msg) from e


def resolve_arch(tool_config: dict[str, Any], arch: str | None = None) -> str:
    """Map the machine architecture to the name used by a tool's releases."""
    arch = arch or current_arch()
    arch_map = tool_config.get("arch_map") or {}
    if arch_map:
        if arch not in arch_map:
            msg = f"No release configured for architecture {arch}"
            raise UnsupportedArchitectureError(msg)
        return arch_map[arch]
    return tool_config["arch"]


def replace_variables(template: str, version: str, arch: str) -> str:
    """Replace ``{version}`` and ``{arch}`` in a template."""
    return template.replace("{version}", version).replace("{arch}", arch)


def release_url(tool_config: dict[str, Any], arch: str | None = None) -> str:
    """Build the pinned download URL for a tool."""
    return replace_variables(
        tool_config["url"],
        tool_config["version"],
        resolve_arch(tool_config, arch),
    )


def auto_detect_binary_path(extract_dir: Path, binary_name: str) -> Path | None:
    """Find a binary by name inside an extracted archive.

    Returns None when no match, or more than one ambiguous match, is found.
    """
    exact_matches = [p for p in extract_dir.glob(f"**/{binary_name}") if p.is_file()]
    if len(exact_matches) == 1:
        return exact_matches[0]

    executable_matches = [p for p in exact_matches if os.access(p, os.X_OK)]
    if len(executable_matches) == 1:
        return executable_matches[0]

    bin_matches = [p for p in executable_matches if p.parent.name == "bin"]
    if len(bin_matches) == 1:
        return bin_matches[0]
    return None


def find_binary_in_extracted_files(
    extract_dir: Path,
    binary_name: str,
    binary_path: str | None,
) -> Path:
    """Find a specific binary in the extracted files."""
    if not binary_path:
        source_path = auto_detect_binary_path(extract_dir, binary_name)
        if source_path is None:
            msg = f"Could not auto-detect {binary_name} in archive. Please specify binary_path in config."
            raise ExtractionError(msg)
        return source_path

    if "*" in binary_path:
        matches = list(extract_dir.glob(binary_path))
        if not matches:
            msg = f"No files matching {binary_path} in archive"
            raise ExtractionError(msg)
        return matches[0]

    source_path = extract_dir / binary_path
    if not source_path.exists():
        msg = f"Binary not found at {source_path}"
        raise ExtractionError(msg)
    return source_path


def download_and_extract(
    url: str,
    work_dir: Path,
    *,
    dry_run: bool = False,
) -> Path:
    """Download a tarball into ``work_dir`` and extract it next to it."""
    archive = work_dir / url.rsplit("/", 1)[-1]
    if dry_run:
        log(f"Would download {url}", "info", "📥")
        return work_dir
    download_file(url, archive)
    extract_archive(archive, work_dir)
    log(f"Archive extracted to {work_dir}", "debug")
    return work_dir


def install_release_binary(
    tool_name: str,
    tool_config: dict[str, Any],
    work_dir: Path,
    bin_dir: Path,
    *,
    use_sudo: bool = True,
    dry_run: bool = False,
    arch: str | None = None,
) -> Path:
    """Download a pinned release archive and place its binary in ``bin_dir``.

    No checksum or signature of the archive is verified.
    """
    tool_arch = resolve_arch(tool_config, arch)
    version = tool_config["version"]
    url = replace_variables(tool_config["url"], version, tool_arch)
    log(f"Installing {tool_name} {version} from release archive", "info", "📦")

    # Each tool gets its own directory so archive layouts cannot collide.
    tool_dir = work_dir / tool_name
    tool_dir.mkdir(parents=True, exist_ok=True)
    download_and_extract(url, tool_dir, dry_run=dry_run)

    binary_name = tool_config.get("binary_name", tool_name)
    binary_path = tool_config.get("binary_path")
    if binary_path:
        binary_path = replace_variables(binary_path, version, tool_arch)
    dest_path = bin_dir / binary_name

    if dry_run:
        source_path = tool_dir / (binary_path or binary_name)
    else:
        source_path = find_binary_in_extracted_files(tool_dir, binary_name, binary_path)

    run_cmd(
        privileged(["mv", "-f", str(source_path), str(dest_path)], use_sudo=use_sudo),
        dry_run=dry_run,
    )
    run_cmd(
        privileged(["chmod", "+x", str(dest_path)], use_sudo=use_sudo),
        dry_run=dry_run,
    )
    log(f"Installed {tool_name} to {dest_path}", "success")
    return dest_path
