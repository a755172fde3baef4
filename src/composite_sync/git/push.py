"""Publish the composite branch to its upstream remote."""

from __future__ import annotations

import logging
from pathlib import Path

from composite_sync.errors import CompositeNotOnBranchError, GitCommandError, PushFailedError
from composite_sync.git.refs import head_ref
from composite_sync.git.runner import Transport, get_remote_url, run_git

logger = logging.getLogger(__name__)


def push_branch(repo: Path | str, transport: Transport | None = None, remote: str = "origin") -> str:
    """Push HEAD's branch to the same ref on ``remote``.

    No force and no other refspecs. Errors are reported verbatim and never
    retried.

    Returns:
        The pushed ref.

    Raises:
        CompositeNotOnBranchError: HEAD is detached; nothing is pushed.
        PushFailedError: The remote is missing, rejected the push, or the
            transport failed.
    """
    git_ref = head_ref(repo)
    if git_ref is None:
        raise CompositeNotOnBranchError("Composite repository is not on a branch")

    if get_remote_url(repo, remote) is None:
        raise PushFailedError(f"Remote {remote} is not configured in {repo}")

    refspec = f"{git_ref}:{git_ref}"
    logger.info("Pushing %s to %s", git_ref, remote)
    try:
        result = run_git(["push", remote, refspec], repo, transport=transport)
    except GitCommandError as exc:
        raise PushFailedError(str(exc)) from exc

    if result.returncode != 0:
        raise PushFailedError(result.stderr.strip() or f"git push exited {result.returncode}")
    return git_ref
