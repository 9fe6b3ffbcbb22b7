"""
Command-line interface for binary-update tool
"""

import sys
import logging
import argparse
from pathlib import Path

from .config import UpdateConfig
from .constants import LATEST_ALIAS
from .exceptions import SwapFailedError, UpdateError
from .fetcher import BinaryFetcher
from .installer import InstallTransaction
from .local import LocalBinary
from .revert import RevertController
from .stash import StashStore
from .transport import HttpTransport
from .versions import VersionDirectory


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser"""
    parser = argparse.ArgumentParser(
        prog="binary-update",
        description="Install, stash and revert versions of a daemon binary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # See what is published and what is installed
  binary-update versions
  binary-update version

  # Upgrade to the newest release, keeping the current binary for rollback
  binary-update install latest

  # Go back to the binary that was replaced
  binary-update revert

  # Download a release without installing it
  binary-update fetch v0.4.1 --output ./ipfs-new

Settings may also come from BINARY_UPDATE_* environment variables,
e.g. BINARY_UPDATE_BASE_URL or BINARY_UPDATE_INSTALL_PATH.
        """
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print verbose output"
    )
    parser.add_argument("--base-url", help="Root URL of the release distribution")
    parser.add_argument("--dist-path", help="Path of the distribution under the base URL")
    parser.add_argument("--dist-name", help="Release name used in artifact file names")
    parser.add_argument("--binary-name", help="Name of the managed binary")
    parser.add_argument("--install-path", help="Path of the active binary (default: look up on PATH)")
    parser.add_argument("--stash-dir", help="Directory holding stashed binaries")
    parser.add_argument("--api-url", help="Local daemon API URL (empty to disable)")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    subparsers.add_parser("versions", help="Print out all available versions")
    subparsers.add_parser("version", help="Print out the currently installed version")

    install = subparsers.add_parser("install", help="Install a version of the binary")
    install.add_argument("version", help="Version to install, or 'latest'")
    install.add_argument(
        "--no-check",
        action="store_true",
        help="Skip running the new binary's self-check before installing"
    )
    install.add_argument(
        "--tag",
        help="Tag for the stashed binary (default: its version)"
    )

    stash = subparsers.add_parser("stash", help="Stash a copy of the currently installed binary")
    stash.add_argument("--tag", help="Optionally specify tag for stashed binary")

    revert = subparsers.add_parser(
        "revert",
        help="Revert to the previously installed binary",
        description="Restore a stashed binary to the path it was installed at. "
                    "Without --tag the most recently stashed binary is used."
    )
    revert.add_argument("--tag", help="Tag of the stashed binary to restore")

    subparsers.add_parser("stashes", help="List stashed binaries")

    fetch = subparsers.add_parser("fetch", help="Fetch a given (default: latest) version")
    fetch.add_argument("version", nargs='?', default=LATEST_ALIAS,
                       help="Version to fetch (default: latest)")
    fetch.add_argument("--output", "-o",
                       help="Where to save the downloaded binary (default: <binary>-<version>)")

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
    )


class Commands:
    """Wires the components together for one invocation"""

    def __init__(self, config: UpdateConfig) -> None:
        self.config = config
        self.transport = HttpTransport(config)
        self.directory = VersionDirectory(self.transport, config.dist_path)
        self.fetcher = BinaryFetcher(
            self.transport, config.dist_path, config.dist_name, config.binary_name
        )
        self.local = LocalBinary(config)
        self.stash_store = StashStore(config.stash_dir, config.binary_name)

    def versions(self, args) -> None:
        for v in self.directory.list_versions():
            print(v)

    def version(self, args) -> None:
        print(self.local.current_version())

    def install(self, args) -> None:
        versions = self.directory.list_versions()
        version = self.directory.resolve(args.version, versions)
        install_path = self.local.find_install_path()

        print(f"Installing {version} to {install_path}")
        transaction = InstallTransaction(self.fetcher, self.stash_store, self.local, install_path)
        result = transaction.run(
            version, no_check=args.no_check, tag=args.tag, known_versions=versions
        )

        if result.stash_entry is not None:
            print(f"✓ Previous binary stashed as '{result.stash_entry.tag}'")
        print(f"✓ Installation of {version} complete.")
        self._remind_restart()

    def stash(self, args) -> None:
        install_path = self.local.find_install_path()
        tag = args.tag or self.local.current_version()
        entry = self.stash_store.stash(tag, install_path, install_path)
        print(f"✓ Stashed {install_path} as '{entry.tag}' ({entry.binary_path})")

    def revert(self, args) -> None:
        restored = RevertController(self.stash_store).revert(args.tag)
        print(f"✓ Restored stashed binary to {restored}")
        self._remind_restart()

    def stashes(self, args) -> None:
        entries = self.stash_store.list_entries()
        if not entries:
            print("No stashed binaries.")
            return

        pointer = self.stash_store.pointer()
        current = pointer.tag if pointer else None
        print(f"  {'Tag':20} {'Stashed':16} {'Restores to'}")
        print("-" * 60)
        for entry in entries:
            mark = "*" if entry.tag == current else " "
            stashed = entry.stashed_at[:16].replace("T", " ")
            print(f"{mark} {entry.tag:20} {stashed:16} {entry.original_install_path}")

    def fetch(self, args) -> None:
        versions = self.directory.list_versions()
        version = self.directory.resolve(args.version, versions)
        output = Path(args.output or f"{self.config.binary_name}-{version}")
        self.fetcher.fetch(version, output, known_versions=versions)
        print(f"✓ Fetched {version} to {output}")

    def _remind_restart(self) -> None:
        if self.local.daemon_running():
            print("Remember to restart your daemon before continuing.")


def main() -> None:
    """Main entry point for CLI"""
    parser = create_parser()
    args = parser.parse_args()
    configure_logging(args.verbose)

    try:
        config = UpdateConfig.from_environment(
            base_url=args.base_url,
            dist_path=args.dist_path,
            dist_name=args.dist_name,
            binary_name=args.binary_name,
            install_path=args.install_path,
            stash_dir=args.stash_dir,
            api_url=args.api_url,
        )
        commands = Commands(config)
        getattr(commands, args.command)(args)
    except SwapFailedError as e:
        print(f"✗ Installation failed: {e}")
        sys.exit(1)
    except UpdateError as e:
        print(f"✗ {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
