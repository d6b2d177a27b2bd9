"""Tests for downloading and unpacking release archives."""

import os
import tarfile
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock, patch

import pytest
import requests

from devbox.download import (
    download_file,
    extract_archive,
    find_binary_in_extracted_files,
    install_release_binary,
    release_url,
    resolve_arch,
)
from devbox.errors import DownloadError, ExtractionError, UnsupportedArchitectureError
from devbox.utils import current_arch

FD_CONFIG = {
    "version": "v10.3.0",
    "arch": "x86_64-unknown-linux-gnu",
    "arch_map": {
        "amd64": "x86_64-unknown-linux-gnu",
        "arm64": "aarch64-unknown-linux-gnu",
    },
    "url": "https://github.com/sharkdp/fd/releases/download/{version}/fd-{version}-{arch}.tar.gz",
    "binary_path": "fd-{version}-{arch}/fd",
}


def test_release_url() -> None:
    """The pinned version and mapped arch are substituted."""
    assert (
        release_url(FD_CONFIG, "amd64")
        == "https://github.com/sharkdp/fd/releases/download/v10.3.0/fd-v10.3.0-x86_64-unknown-linux-gnu.tar.gz"
    )
    assert release_url(FD_CONFIG, "arm64").endswith("fd-v10.3.0-aarch64-unknown-linux-gnu.tar.gz")


def test_resolve_arch() -> None:
    """Without an arch_map the tool's fixed arch is used."""
    assert resolve_arch({"arch": "amd64"}, "arm64") == "amd64"
    assert resolve_arch(FD_CONFIG, "arm64") == "aarch64-unknown-linux-gnu"
    with pytest.raises(UnsupportedArchitectureError):
        resolve_arch(FD_CONFIG, "riscv64")


@pytest.mark.parametrize(
    ("machine", "expected"),
    [("x86_64", "amd64"), ("aarch64", "arm64"), ("arm64", "arm64"), ("riscv64", "riscv64")],
)
def test_current_arch(machine: str, expected: str) -> None:
    """Known machine names are normalized and others are passed through."""
    with patch("devbox.utils.os.uname", return_value=MagicMock(machine=machine)):
        assert current_arch() == expected


def test_unmapped_host_arch_is_rejected() -> None:
    """A host without a configured release raises instead of using x86_64."""
    with (
        patch("devbox.utils.os.uname", return_value=MagicMock(machine="riscv64")),
        pytest.raises(UnsupportedArchitectureError, match="riscv64"),
    ):
        resolve_arch(FD_CONFIG)


def test_download_file(tmp_path: Path) -> None:
    """Streamed chunks are written to the destination."""
    response = MagicMock()
    response.iter_content.return_value = [b"abc", b"def"]
    with patch("devbox.download.requests.get", return_value=response) as mock_get:
        path = download_file("https://example.com/tool.tar.gz", tmp_path / "tool.tar.gz")
    mock_get.assert_called_once_with("https://example.com/tool.tar.gz", stream=True, timeout=30)
    assert path.read_bytes() == b"abcdef"


def test_download_file_failure(tmp_path: Path) -> None:
    """HTTP errors become DownloadError and leave no partial file."""
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
    destination = tmp_path / "tool.tar.gz"
    with (
        patch("devbox.download.requests.get", return_value=response),
        pytest.raises(DownloadError, match="404"),
    ):
        download_file("https://example.com/tool.tar.gz", destination)
    assert not destination.exists()


def test_download_file_connection_error(tmp_path: Path) -> None:
    """Network errors become DownloadError."""
    with (
        patch(
            "devbox.download.requests.get",
            side_effect=requests.ConnectionError("no route to host"),
        ),
        pytest.raises(DownloadError),
    ):
        download_file("https://example.com/tool.tar.gz", tmp_path / "tool.tar.gz")


def test_extract_archive(tmp_path: Path, create_dummy_archive: Callable) -> None:
    """Tarballs are unpacked with their executable bits."""
    archive = create_dummy_archive(tmp_path / "tool.tar.gz", {"tool-1.0/bin/tool": "#!/bin/sh\n"})
    dest = tmp_path / "out"
    dest.mkdir()
    extract_archive(archive, dest)
    assert os.access(dest / "tool-1.0" / "bin" / "tool", os.X_OK)


def test_extract_archive_rejects_unknown_format(tmp_path: Path) -> None:
    """Files that are not tarballs raise ExtractionError."""
    bogus = tmp_path / "tool.7z"
    bogus.write_bytes(b"7z\xbc\xaf\x27\x1c")
    with pytest.raises(ExtractionError, match="Unsupported archive format"):
        extract_archive(bogus, tmp_path)


def test_extract_archive_corrupt(tmp_path: Path) -> None:
    """A truncated gzip stream raises ExtractionError."""
    corrupt = tmp_path / "tool.tar.gz"
    corrupt.write_bytes(b"\x1f\x8b\x08\x00garbage")
    with pytest.raises(ExtractionError):
        extract_archive(corrupt, tmp_path)


def test_extract_archive_rejects_escaping_members(tmp_path: Path) -> None:
    """Members that would land outside the destination are refused."""
    payload = tmp_path / "payload"
    payload.write_text("evil")
    archive = tmp_path / "evil.tar.gz"
    with tarfile.open(archive, "w:gz") as tar:
        tar.add(payload, arcname="../escaped")
    dest = tmp_path / "dest"
    dest.mkdir()
    with pytest.raises(ExtractionError):
        extract_archive(archive, dest)
    assert not (tmp_path / "escaped").exists()


def test_find_binary(tmp_path: Path, make_script: Callable) -> None:
    """Binaries are found by explicit path, glob, or name."""
    make_script(tmp_path, "fd-v1-x86/fd")
    make_script(tmp_path, "fd-v1-x86/README.md")
    assert find_binary_in_extracted_files(tmp_path, "fd", "fd-v1-x86/fd") == tmp_path / "fd-v1-x86/fd"
    assert find_binary_in_extracted_files(tmp_path, "fd", "fd-*/fd") == tmp_path / "fd-v1-x86/fd"
    with pytest.raises(ExtractionError):
        find_binary_in_extracted_files(tmp_path, "fd", "rg-*/rg")
    assert find_binary_in_extracted_files(tmp_path, "fd", None) == tmp_path / "fd-v1-x86/fd"
    with pytest.raises(ExtractionError):
        find_binary_in_extracted_files(tmp_path, "fd", "fd")
    with pytest.raises(ExtractionError):
        find_binary_in_extracted_files(tmp_path, "rg", None)


def test_install_release_binary(
    tmp_path: Path,
    config,  # noqa: ANN001
    fake_runner,  # noqa: ANN001
    create_dummy_archive: Callable,
) -> None:
    """The binary ends up in the bin dir, executable."""
    work_dir = tmp_path / "work"
    work_dir.mkdir()

    def mock_download_file(url: str, destination: Path) -> Path:
        assert url == release_url(FD_CONFIG, "arm64")
        return create_dummy_archive(
            Path(destination),
            {"fd-v10.3.0-aarch64-unknown-linux-gnu/fd": "#!/bin/sh\necho fd 10.3.0\n"},
        )

    with patch("devbox.download.download_file", side_effect=mock_download_file):
        dest = install_release_binary(
            "fd",
            FD_CONFIG,
            work_dir,
            config.bin_dir,
            use_sudo=False,
            arch="arm64",
        )

    assert dest == config.bin_dir / "fd"
    assert os.access(dest, os.X_OK)
    assert [argv[0] for argv in fake_runner.commands] == ["mv", "chmod"]
