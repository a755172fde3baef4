"""Prepare the composite branch that mirrors the component branch."""

from __future__ import annotations

import logging
from pathlib import Path

from composite_sync.errors import CompositeCheckoutFailedError, GitCommandError
from composite_sync.git.refs import BRANCH_PREFIX
from composite_sync.git.runner import rev_parse, run_git

logger = logging.getLogger(__name__)


def ensure_branch(repo: Path | str, shorthand: str, reuse_existing: bool = True) -> str:
    """Make a local branch ``shorthand`` exist and check it out.

    The branch starts at ``origin/<shorthand>`` when the remote has it, and
    at the clone's HEAD otherwise. An existing local branch of that name is
    reused as-is, which makes re-runs idempotent.

    Args:
        repo: Composite repository working copy.
        shorthand: Branch name without ``refs/heads/``.
        reuse_existing: If False, an existing local branch is an error.

    Returns:
        The full ref of the checked-out branch.

    Raises:
        CompositeCheckoutFailedError: On any lookup or backend failure.
    """
    branch_ref = f"{BRANCH_PREFIX}{shorthand}"
    remote_ref = f"refs/remotes/origin/{shorthand}"
    logger.debug("Checking out %s in %s", branch_ref, repo)

    try:
        basis = rev_parse(repo, f"{remote_ref}^{{commit}}")
        if basis:
            logger.debug("Found reference %s at %s", remote_ref, basis)
        else:
            basis = rev_parse(repo, "HEAD^{commit}")
            logger.debug("Did not find reference %s, using HEAD %s", remote_ref, basis)
        if basis is None:
            raise CompositeCheckoutFailedError(f"Composite repository {repo} has no commits")

        created = run_git(["branch", shorthand, basis], repo)
        if created.returncode != 0:
            if rev_parse(repo, branch_ref) is None:
                raise CompositeCheckoutFailedError(
                    f"Could not create branch {shorthand}: {created.stderr.strip()}"
                )
            if not reuse_existing:
                raise CompositeCheckoutFailedError(f"Local branch {shorthand} already exists")
            logger.info("Branch %s already exists, reusing it", shorthand)

        run_git(["checkout", "-q", shorthand], repo, check=True)
    except GitCommandError as exc:
        raise CompositeCheckoutFailedError(f"Could not check out {shorthand}: {exc}") from exc

    return branch_ref
