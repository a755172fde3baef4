"""Command-line interface for composite-sync.

Usage:
    composite-sync pipeline --composite-repository <url> [--repository <path>]
                            [--git-ref refs/heads/<name>] [-C "<header>" ...]
                            [--config <file>] [--no-reuse-branch] [--always-commit]
                            [--allow-file-protocol] [--dry-run]
"""

import argparse
import logging
import sys

from composite_sync import __version__
from composite_sync.cli.pipeline_cmds import cmd_pipeline


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="composite-sync",
        description="Propagate a component repository's commit into a composite repository",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command")

    pipe = sub.add_parser(
        "pipeline", help="Update the composite repository's submodule pin and push it",
    )
    pipe.add_argument(
        "-r", "--repository", default=".",
        help="Component repository that was updated (default: .)",
    )
    pipe.add_argument(
        "-g", "--git-ref", default=None,
        help="Branch ref to propagate, e.g. refs/heads/main (default: component HEAD)",
    )
    pipe.add_argument(
        "-c", "--composite-repository", default=None,
        help="URL of the composite repository (required here or in the config file)",
    )
    pipe.add_argument(
        "-C", "--custom-headers", action="append", default=[],
        help="Transport header for fetch and push (repeatable)",
    )
    pipe.add_argument(
        "--config", default=None,
        help="YAML config file (default: <repository>/.composite-sync.yaml)",
    )
    pipe.add_argument(
        "--no-reuse-branch", action="store_true",
        help="Fail if the composite branch already exists locally",
    )
    pipe.add_argument(
        "--always-commit", action="store_true",
        help="Commit and push even if the submodule already pins the commit",
    )
    pipe.add_argument(
        "--allow-file-protocol", action="store_true",
        help="Allow cloning submodules from local paths",
    )
    pipe.add_argument(
        "--dry-run", action="store_true",
        help="Commit in the temporary clone without pushing",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    dispatch = {
        "pipeline": cmd_pipeline,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.parse_args([args.command, "--help"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
