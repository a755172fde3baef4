"""Pipeline CLI command."""

import argparse
import sys

from composite_sync.config import config_path, env_custom_headers, load_config
from composite_sync.errors import ConfigError, SyncError
from composite_sync.pipeline import PipelineOptions


def build_options(args: argparse.Namespace) -> PipelineOptions:
    """Merge CLI flags over the config file and environment.

    Raises:
        ConfigError: Bad config file, or no composite repository anywhere.
    """
    path = config_path(args.repository, args.config)
    cfg = load_config(path) if path else {}

    composite = args.composite_repository or cfg.get("composite_repository")
    if not composite:
        raise ConfigError("No composite repository given (--composite-repository)")

    headers = args.custom_headers or cfg.get("custom_headers") or env_custom_headers()

    return PipelineOptions(
        composite_repository=composite,
        repository=args.repository,
        git_ref=args.git_ref or cfg.get("git_ref"),
        custom_headers=list(headers),
        reuse_existing_branch=(
            False if args.no_reuse_branch else cfg.get("reuse_existing_branch", True)
        ),
        skip_unchanged=False if args.always_commit else cfg.get("skip_unchanged", True),
        allow_file_protocol=args.allow_file_protocol or cfg.get("allow_file_protocol", False),
        dry_run=args.dry_run,
        timeout=cfg.get("timeout"),
    )


def cmd_pipeline(args: argparse.Namespace) -> int:
    from composite_sync.pipeline import run_pipeline

    try:
        options = build_options(args)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    try:
        result = run_pipeline(options)
    except SyncError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if result.noop:
        print(f"  {result.submodule_path} already at {result.target_sha}; nothing to push")
        return 0

    prefix = "[DRY RUN] " if result.dry_run else ""
    print(f"  {prefix}Updated submodule {result.submodule_path} to {result.target_sha}")
    print(f"  Commit: {result.commit_sha}")
    if result.pushed:
        print(f"  Pushed: {result.git_ref}")
    return 0
