"""Subprocess wrapper around the git executable.

All repository access in composite-sync goes through :func:`run_git`.
Transport options (custom HTTP headers, local-path protocol permission,
timeouts) are expressed as ``-c`` configuration parameters, which git
passes on to every child process it spawns, submodule clones included.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from composite_sync.errors import GitCommandError

logger = logging.getLogger(__name__)

_REDACTED = "<redacted>"


@dataclass
class Transport:
    """Options applied to every network-facing git call (clone, fetch, push)."""

    custom_headers: list[str] = field(default_factory=list)
    allow_file_protocol: bool = False
    timeout: float | None = None

    def config_args(self) -> list[str]:
        """Return the ``-c key=value`` arguments for this transport."""
        args: list[str] = []
        for header in self.custom_headers:
            args += ["-c", f"http.extraHeader={header}"]
        if self.allow_file_protocol:
            args += ["-c", "protocol.file.allow=always"]
        return args


def _redact(args: list[str]) -> list[str]:
    """Hide header values so credentials never reach the log."""
    redacted = []
    for arg in args:
        if arg.lower().startswith("http.extraheader="):
            key = arg.split("=", 1)[0]
            redacted.append(f"{key}={_REDACTED}")
        else:
            redacted.append(arg)
    return redacted


def run_git(
    args: list[str],
    cwd: Path | str,
    transport: Transport | None = None,
    input: str | bytes | None = None,
    env: dict[str, str] | None = None,
    check: bool = False,
    binary: bool = False,
) -> subprocess.CompletedProcess:
    """Run a git command and return the result.

    Args:
        args: Arguments after ``git``.
        cwd: Repository working directory.
        transport: If given, its config parameters are prepended and its
            timeout applies.
        input: Data written to the command's stdin.
        env: Extra environment variables layered over ``os.environ``.
        check: Raise :class:`GitCommandError` on a non-zero exit.
        binary: Return raw bytes instead of decoded text.

    Raises:
        GitCommandError: On a non-zero exit with ``check``, or on timeout.
    """
    full_args = (transport.config_args() if transport else []) + list(args)
    timeout = transport.timeout if transport else None

    run_env = dict(os.environ)
    run_env["GIT_TERMINAL_PROMPT"] = "0"
    if env:
        run_env.update(env)

    logger.debug("git %s (cwd=%s)", " ".join(_redact(full_args)), cwd)
    try:
        if binary:
            result = subprocess.run(
                ["git"] + full_args,
                cwd=cwd,
                input=input,
                capture_output=True,
                env=run_env,
                timeout=timeout,
            )
        else:
            result = subprocess.run(
                ["git"] + full_args,
                cwd=cwd,
                input=input,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=run_env,
                timeout=timeout,
            )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(args, -1, f"timed out after {exc.timeout}s") from exc

    if check and result.returncode != 0:
        stderr = result.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        raise GitCommandError(args, result.returncode, stderr)
    return result


def rev_parse(repo: Path | str, rev: str) -> str | None:
    """Resolve ``rev`` to an object id, or None if it does not exist."""
    result = run_git(["rev-parse", "--verify", "-q", rev], repo)
    if result.returncode == 0:
        return result.stdout.strip()
    if result.returncode == 1:
        return None
    raise GitCommandError(["rev-parse", rev], result.returncode, result.stderr)


def get_remote_url(repo: Path | str, remote: str = "origin") -> str | None:
    """Get the URL of a remote, or None if it is not configured."""
    result = run_git(["remote", "get-url", remote], repo)
    if result.returncode == 0:
        return result.stdout.strip()
    return None
