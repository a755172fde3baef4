"""Locate the submodule that carries a commit, and repoint it.

Submodules are matched by content: the one whose object store contains the
target commit is the component's mirror, wherever it lives in the tree.
The scan follows ``.gitmodules`` order and stops at the first match; if
several submodules contain the commit, the first one wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from composite_sync.errors import CommitNotFoundError, GitCommandError, SubmoduleNotFoundError
from composite_sync.git.runner import Transport, rev_parse, run_git

logger = logging.getLogger(__name__)


@dataclass
class Submodule:
    name: str
    path: str
    url: str | None = None


def list_submodules(repo: Path | str) -> list[Submodule]:
    """List submodule entries registered in ``.gitmodules``, in file order."""
    repo = Path(repo)
    if not (repo / ".gitmodules").exists():
        return []

    result = run_git(
        ["config", "--file", ".gitmodules", "--get-regexp", r"^submodule\..*\.path$"],
        repo,
    )
    if result.returncode == 1:
        return []
    if result.returncode != 0:
        raise GitCommandError(["config", ".gitmodules"], result.returncode, result.stderr)

    submodules = []
    for line in result.stdout.splitlines():
        if not line.strip():
            continue
        key, _, path = line.partition(" ")
        name = key[len("submodule."):-len(".path")]
        url = run_git(
            ["config", "--file", ".gitmodules", "--get", f"submodule.{name}.url"],
            repo,
        )
        submodules.append(Submodule(
            name=name,
            path=path.strip(),
            url=url.stdout.strip() if url.returncode == 0 else None,
        ))
    return submodules


def init_submodule(repo: Path, submodule: Submodule, transport: Transport | None = None) -> Path:
    """Initialize and update one submodule; return its working directory."""
    run_git(
        ["submodule", "update", "--init", "--", submodule.path],
        repo,
        transport=transport,
        check=True,
    )
    sub_repo = repo / submodule.path
    if not (sub_repo / ".git").exists():
        raise GitCommandError(
            ["submodule", "update"], 1, f"{submodule.path} was not checked out",
        )
    return sub_repo


def contains_commit(sub_repo: Path | str, sha: str) -> bool:
    """Whether the repository's object store holds commit ``sha``."""
    result = run_git(["cat-file", "-e", f"{sha}^{{commit}}"], sub_repo)
    return result.returncode == 0


def pinned_commit(repo: Path | str, path: str, rev: str = "HEAD") -> str | None:
    """Commit id a submodule is pinned to in ``rev`` (``""`` for the index)."""
    return rev_parse(repo, f"{rev}:{path}")


def find_submodule_by_commit(
    repo: Path | str,
    sha: str,
    transport: Transport | None = None,
) -> Submodule:
    """Return the first submodule whose repository contains ``sha``.

    Entries that fail to initialize are skipped with a logged reason.

    Raises:
        SubmoduleNotFoundError: No submodule contains the commit.
    """
    repo = Path(repo)
    submodules = list_submodules(repo)
    skipped: list[str] = []

    for submodule in submodules:
        logger.debug("Found submodule %s at %s", submodule.name, submodule.path)
        try:
            sub_repo = init_submodule(repo, submodule, transport)
        except GitCommandError as exc:
            logger.warning("Skipping submodule %s: %s", submodule.path, exc)
            skipped.append(f"{submodule.path} ({exc})")
            continue

        if contains_commit(sub_repo, sha):
            logger.info("Found submodule: %s", submodule.path)
            return submodule

    detail = f" ({len(submodules)} scanned"
    if skipped:
        detail += f"; skipped: {', '.join(skipped)}"
    detail += ")"
    raise SubmoduleNotFoundError(f"No submodule contains commit {sha}{detail}")


def update_submodule_to_commit(repo: Path | str, submodule: Submodule, sha: str) -> bool:
    """Detach the submodule at ``sha`` and stage the new pin.

    Returns:
        True if the staged pin differs from the one in the composite HEAD.

    Raises:
        CommitNotFoundError: The submodule does not contain ``sha``.
    """
    repo = Path(repo)
    sub_repo = repo / submodule.path
    if not (sub_repo / ".git").exists() or not contains_commit(sub_repo, sha):
        raise CommitNotFoundError(f"Commit {sha} not found in submodule {submodule.path}")

    run_git(["checkout", "-q", "--detach", sha], sub_repo, check=True)
    run_git(["add", "--", submodule.path], repo, check=True)
    logger.info("Updated %s to %s", submodule.path, sha)

    return pinned_commit(repo, submodule.path) != sha
