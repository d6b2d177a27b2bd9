"""Configuration management for devbox."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .utils import log

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(os.path.expanduser("~/.config/devbox/devbox.yaml"))

_PATH_FIELDS = ("os_release", "bin_dir", "home", "rc_file")


def _default_packages() -> dict[str, list[str]]:
    return {
        "debian": [
            "build-essential",
            "software-properties-common",
            "git",
            "ripgrep",
            "xclip",
            "fd-find",
            "fzf",
            "p7zip-full",
            "colordiff",
        ],
        "fedora": [
            "gcc",
            "gcc-c++",
            "make",
            "git",
            "ripgrep",
            "xclip",
            "fd-find",
            "fzf",
            "p7zip",
            "p7zip-plugins",
            "colordiff",
        ],
        "fallback_dnf": ["git", "ripgrep", "xclip", "fzf", "p7zip", "p7zip-plugins", "colordiff"],
        "fallback_apt": ["git", "ripgrep", "xclip", "fzf", "p7zip-full", "colordiff"],
    }


def _default_fd_sources() -> dict[str, str]:
    return {"debian": "fdfind", "fedora": "fd-find"}


def _default_fallback_tools() -> dict[str, dict[str, Any]]:
    return {
        "fzf": {
            "version": "0.67.0",
            "arch": "amd64",
            "arch_map": {"amd64": "amd64", "arm64": "arm64"},
            "url": "https://github.com/junegunn/fzf/releases/download/{version}/fzf-{version}-linux_{arch}.tar.gz",
            "binary_path": "fzf",
        },
        "fd": {
            "version": "v10.3.0",
            "arch": "x86_64-unknown-linux-gnu",
            "arch_map": {
                "amd64": "x86_64-unknown-linux-gnu",
                "arm64": "aarch64-unknown-linux-gnu",
            },
            "url": "https://github.com/sharkdp/fd/releases/download/{version}/fd-{version}-{arch}.tar.gz",
            "binary_path": "fd-{version}-{arch}/fd",
        },
    }


def _default_editor() -> dict[str, Any]:
    return {
        "name": "nvim",
        "label": "Neovim",
        "version": "v0.11.5",
        "arch": "x86_64",
        "arch_map": {"amd64": "x86_64"},
        "url": "https://github.com/neovim/neovim-releases/releases/download/{version}/nvim-linux-{arch}.tar.gz",
        "archive_dir": "nvim-linux-{arch}",
        "install_dir": "/usr/local/nvim",
        "entry_point": "bin/nvim",
    }


def _default_verify_tools() -> dict[str, str]:
    return {
        "git": "git",
        "ripgrep": "rg",
        "xclip": "xclip",
        "fd": "fd",
        "fzf": "fzf",
        "7-Zip (7z)": "7z",
    }


def _default_config_archive() -> dict[str, str]:
    return {
        "url": "https://github.com/fadedreams/n/releases/download/v1.0/n.7z",
        "filename": "n.7z",
        "extract_dir": ".config",
        "extractor": "7z",
    }


_TABLE_DEFAULTS = {
    "packages": _default_packages,
    "fd_sources": _default_fd_sources,
    "fallback_tools": _default_fallback_tools,
    "editor": _default_editor,
    "verify_tools": _default_verify_tools,
    "config_archive": _default_config_archive,
}


def _merge_tables(config_data: dict[str, Any]) -> None:
    """Overlay YAML tables on their defaults instead of replacing them.

    Tables merge one level deep; fallback tools merge per tool.
    """
    for key, default_factory in _TABLE_DEFAULTS.items():
        override = config_data.get(key)
        if not isinstance(override, dict):
            continue
        merged = default_factory()
        if key == "fallback_tools":
            for tool_name, tool_config in override.items():
                merged[tool_name] = {**merged.get(tool_name, {}), **(tool_config or {})}
        else:
            merged.update(override)
        config_data[key] = merged


@dataclass
class DevboxConfig:
    """Configuration for devbox."""

    os_release: Path = Path("/etc/os-release")
    bin_dir: Path = Path("/usr/local/bin")
    home: Path = field(default_factory=Path.home)
    rc_file: Path | None = None
    use_sudo: bool = True
    dry_run: bool = False
    epel_package: str = "epel-release"
    packages: dict[str, list[str]] = field(default_factory=_default_packages)
    fd_sources: dict[str, str] = field(default_factory=_default_fd_sources)
    fallback_tools: dict[str, dict[str, Any]] = field(default_factory=_default_fallback_tools)
    editor: dict[str, Any] = field(default_factory=_default_editor)
    verify_tools: dict[str, str] = field(default_factory=_default_verify_tools)
    config_archive: dict[str, str] = field(default_factory=_default_config_archive)

    def __post_init__(self) -> None:
        """Fill in paths that default relative to the home directory."""
        if self.rc_file is None:
            self.rc_file = self.home / ".bashrc"

    def validate(self) -> None:
        """Validate the configuration."""
        for tool_name, tool_config in self.fallback_tools.items():
            for _field in ("url", "version"):
                if _field not in tool_config:
                    log(
                        f"Fallback tool {tool_name} is missing required field '{_field}'",
                        "warning",
                    )
        for _field in ("url", "version", "install_dir", "archive_dir"):
            if _field not in self.editor:
                log(f"Editor is missing required field '{_field}'", "warning")
        for family in ("debian", "fedora", "fallback_dnf", "fallback_apt"):
            if family not in self.packages:
                log(f"No package list defined for '{family}'", "warning")

    @classmethod
    def load_from_file(cls, config_path: str | os.PathLike | None = None) -> DevboxConfig:
        """Load configuration from YAML file.

        Without an explicit path the user config file is used when it exists,
        otherwise the built-in defaults are returned.
        """
        if not config_path:
            if not DEFAULT_CONFIG_PATH.exists():
                return cls()
            config_path = DEFAULT_CONFIG_PATH

        try:
            with open(config_path) as file:
                config_data = yaml.safe_load(file) or {}
        except FileNotFoundError:
            log(f"Configuration file not found: {config_path}", "warning")
            return cls()
        except yaml.YAMLError:
            log(f"Invalid YAML in configuration file: {config_path}", "error")
            logger.debug("YAML parse error", exc_info=True)
            return cls()

        # Expand paths
        for key in _PATH_FIELDS:
            if isinstance(config_data.get(key), str):
                config_data[key] = Path(os.path.expanduser(config_data[key]))

        _merge_tables(config_data)
        config = cls(**config_data)
        config.validate()
        return config
