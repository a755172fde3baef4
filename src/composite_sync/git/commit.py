"""Record a submodule pin change as a new composite commit."""

from __future__ import annotations

import logging
from pathlib import Path

from composite_sync.errors import CompositeCheckoutFailedError
from composite_sync.git.refs import CommitInfo
from composite_sync.git.runner import rev_parse, run_git
from composite_sync.git.submodules import Submodule, pinned_commit

logger = logging.getLogger(__name__)


def format_commit_message(path: str, sha: str, message: str) -> str:
    """Build the composite commit message around the original one."""
    return f"Update submodule {path} to {sha}\n---\n{message}"


def commit_submodule_update(repo: Path | str, submodule: Submodule, original: CommitInfo) -> str:
    """Commit the staged index on top of the current branch tip.

    The new commit reuses the original commit's author and committer
    (name, email and date) and embeds its message verbatim. It has exactly
    one parent, the previous tip, and HEAD's branch is advanced to it.

    Returns:
        The id of the new commit.

    Raises:
        InvalidCommitMetadataError: The original message or identities
            cannot be reused verbatim.
        CompositeCheckoutFailedError: The composite has no commit to build on.
    """
    # Validate before touching the object store.
    author = original.author
    committer = original.committer
    message = original.message

    parent = rev_parse(repo, "HEAD^{commit}")
    if parent is None:
        raise CompositeCheckoutFailedError(f"Composite repository {repo} has no HEAD commit")

    tree = run_git(["write-tree"], repo, check=True).stdout.strip()
    new_pin = pinned_commit(repo, submodule.path, rev="") or original.sha
    full_message = format_commit_message(submodule.path, new_pin, message)

    env = {
        "GIT_AUTHOR_NAME": author.name,
        "GIT_AUTHOR_EMAIL": author.email,
        "GIT_AUTHOR_DATE": f"@{author.date}",
        "GIT_COMMITTER_NAME": committer.name,
        "GIT_COMMITTER_EMAIL": committer.email,
        "GIT_COMMITTER_DATE": f"@{committer.date}",
    }
    result = run_git(
        ["commit-tree", tree, "-p", parent, "-F", "-"],
        repo,
        input=full_message,
        env=env,
        check=True,
    )
    commit_sha = result.stdout.strip()

    run_git(
        ["update-ref", "-m", f"composite-sync: update {submodule.path}", "HEAD", commit_sha, parent],
        repo,
        check=True,
    )
    logger.info("Committed %s on top of %s", commit_sha, parent)
    return commit_sha
