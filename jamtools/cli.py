"""The jam command line."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from .semver import SemverError
from .update import CommandError, update_dependencies_run

__all__ = ["main"]

JAM_VERSION = ""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jam")
    commands = parser.add_subparsers(dest="command")

    commands.add_parser("version", help="version of jam")

    update = commands.add_parser(
        "update-dependencies",
        help="updates all depdendencies in a buildpack.toml from a metadata JSON file.",
    )
    update.add_argument(
        "--buildpack-file", required=True, help="path to the buildpack.toml file (required)"
    )
    update.add_argument(
        "--metadata-file",
        required=True,
        help="metadata.json file with all entries to be added to the buildpack.toml (required)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the jam command line and return its exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "version":
        print(f"jam {JAM_VERSION}")
        return 0

    try:
        update_dependencies_run(args.buildpack_file, args.metadata_file)
    except (CommandError, SemverError, OSError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())