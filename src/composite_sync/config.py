"""Configuration resolution.

Options come from, in order of precedence: command-line flags, a YAML
config file, environment variables, built-in defaults.

Environment variables:
    COMPOSITE_SYNC_CONFIG — config file path (default: <repository>/.composite-sync.yaml)
    COMPOSITE_SYNC_CUSTOM_HEADERS — newline-separated transport headers
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml

from composite_sync.errors import ConfigError

DEFAULT_CONFIG_NAME = ".composite-sync.yaml"

CONFIG_KEYS = {
    "composite_repository": str,
    "git_ref": str,
    "custom_headers": list,
    "reuse_existing_branch": bool,
    "skip_unchanged": bool,
    "allow_file_protocol": bool,
    "timeout": (int, float),
}


def config_path(repository: Path | str = ".", explicit: Path | str | None = None) -> Path | None:
    """Return the config file to load, or None if there is none."""
    if explicit:
        return Path(explicit)
    env = os.environ.get("COMPOSITE_SYNC_CONFIG")
    if env:
        return Path(env)
    default = Path(repository) / DEFAULT_CONFIG_NAME
    return default if default.is_file() else None


def load_config(path: Path | str) -> dict:
    """Read and validate a YAML config file.

    Args:
        path: Path to the config file.

    Returns:
        Parsed config dict (empty for an empty file).

    Raises:
        ConfigError: If the file is missing, malformed, not a mapping, or
            has unknown keys or wrongly typed values.
    """
    cfg_path = Path(path)
    try:
        with open(cfg_path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {cfg_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {cfg_path} is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {cfg_path} is not a YAML mapping")

    for key, value in data.items():
        expected = CONFIG_KEYS.get(key)
        if expected is None:
            raise ConfigError(f"Unknown config key '{key}' in {cfg_path}")
        if value is None:
            continue
        # bool is an int subclass; only accept it where a bool is expected
        if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
            raise ConfigError(f"Config key '{key}' in {cfg_path} has the wrong type")

    headers = data.get("custom_headers") or []
    if not all(isinstance(h, str) for h in headers):
        raise ConfigError(f"custom_headers in {cfg_path} must be a list of strings")

    return data


def env_custom_headers() -> list[str]:
    """Headers from COMPOSITE_SYNC_CUSTOM_HEADERS, one per line."""
    raw = os.environ.get("COMPOSITE_SYNC_CUSTOM_HEADERS", "")
    return [line.strip() for line in raw.splitlines() if line.strip()]
