"""Command-line interface for devbox."""

from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from pathlib import Path
from typing import Any

from . import __version__
from .aliases import install_aliases
from .config import DevboxConfig
from .distro import detect_distribution
from .dotconfig import deploy_editor_config
from .editor import install_editor
from .errors import ProvisionError
from .sequencer import Provisioner, print_summary
from .utils import console, log, setup_logging
from .verify import verify_tools

logger = logging.getLogger(__name__)


def run_all(args: argparse.Namespace, config: DevboxConfig) -> int:
    """Provision the workstation."""
    provisioner = Provisioner(
        config,
        skip_aliases=args.skip_aliases,
        skip_config=args.skip_config,
    )
    try:
        provisioner.run()
    finally:
        print_summary(provisioner.results)
    return 0


def detect(_args: Any, config: DevboxConfig) -> int:
    """Print the detected distribution and the branch it selects."""
    distro = detect_distribution(config.os_release)
    console.print(f"  family: [green]{distro.family.value}[/green]")
    console.print(f"  EPEL:   [green]{'yes' if distro.needs_epel else 'no'}[/green]")
    return 0


def verify(_args: Any, config: DevboxConfig) -> int:
    """Report installed and missing tools."""
    verify_tools(config)
    return 0


def aliases(_args: Any, config: DevboxConfig) -> int:
    """Add the alias block to the shell startup file."""
    install_aliases(config)
    return 0


def editor(_args: Any, config: DevboxConfig) -> int:
    """Install only the pinned editor build."""
    with tempfile.TemporaryDirectory(prefix="devbox-") as tmp:
        install_editor(config, Path(tmp))
    return 0


def deploy_config(_args: Any, config: DevboxConfig) -> int:
    """Download and extract the editor config archive."""
    deploy_editor_config(config)
    return 0


def print_version(_args: Any, _config: DevboxConfig) -> int:
    """Print version information."""
    console.print(f"[yellow]devbox[/] [bold]v{__version__}[/]")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        description="devbox - Provision a Linux development workstation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--config-file",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print commands without running them",
    )
    parser.add_argument(
        "--no-sudo",
        action="store_true",
        help="Do not prefix privileged commands with sudo",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # run command
    run_parser = subparsers.add_parser("run", help="Run every provisioning step")
    run_parser.add_argument(
        "--skip-aliases",
        action="store_true",
        help="Do not touch the shell startup file",
    )
    run_parser.add_argument(
        "--skip-config",
        action="store_true",
        help="Do not deploy the editor config archive",
    )
    run_parser.set_defaults(func=run_all)

    detect_parser = subparsers.add_parser("detect", help="Show the detected distribution")
    detect_parser.set_defaults(func=detect)

    verify_parser = subparsers.add_parser("verify", help="Check which tools are installed")
    verify_parser.set_defaults(func=verify)

    aliases_parser = subparsers.add_parser("aliases", help="Add shell aliases")
    aliases_parser.set_defaults(func=aliases)

    editor_parser = subparsers.add_parser("editor", help="Install the pinned editor")
    editor_parser.set_defaults(func=editor)

    deploy_parser = subparsers.add_parser("deploy-config", help="Deploy the editor config archive")
    deploy_parser.set_defaults(func=deploy_config)

    # version command
    version_parser = subparsers.add_parser("version", help="Print version information")
    version_parser.set_defaults(func=print_version)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main function to parse arguments and execute commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = DevboxConfig.load_from_file(args.config_file)
        if args.dry_run:
            config.dry_run = True
        if args.no_sudo:
            config.use_sudo = False

        if not hasattr(args, "func"):
            parser.print_help()
            sys.exit(0)
        sys.exit(args.func(args, config))

    except ProvisionError as e:
        log(f"Error: {e!s}", "error")
        sys.exit(1)
    except KeyboardInterrupt:
        log("Interrupted", "error")
        sys.exit(130)
    except Exception as e:
        log(f"Error: {e!s}", "error")
        console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
