"""Resolve the component branch being propagated and read its commit."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from composite_sync.errors import (
    GitCommandError,
    InvalidCommitMetadataError,
    NotABranchError,
    RefMismatchError,
)
from composite_sync.git.runner import rev_parse, run_git

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "refs/heads/"

# "Name <email> 1700000000 +0100"
_SIGNATURE_RE = re.compile(rb"^(?P<name>.*?) ?<(?P<email>[^>]*)> (?P<date>\d+ [+-]\d{4})$")


@dataclass
class ResolvedRef:
    """A full branch ref and the commit it points at."""

    name: str
    sha: str

    @property
    def shorthand(self) -> str:
        return branch_name_from_ref(self.name)


@dataclass
class Signature:
    name: str
    email: str
    date: str  # git internal format: "<unix-timestamp> <tz-offset>"


@dataclass
class CommitInfo:
    """Raw fields of an existing commit, decoded lazily and strictly."""

    sha: str
    raw_author: bytes
    raw_committer: bytes
    raw_message: bytes
    encoding: str | None = None

    @property
    def author(self) -> Signature:
        return _parse_signature(self.sha, "author", self.raw_author)

    @property
    def committer(self) -> Signature:
        return _parse_signature(self.sha, "committer", self.raw_committer)

    @property
    def message(self) -> str:
        if self.encoding and self.encoding.lower().replace("-", "") != "utf8":
            raise InvalidCommitMetadataError(
                f"Commit {self.sha} message is encoded as {self.encoding}, not UTF-8"
            )
        try:
            message = self.raw_message.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidCommitMetadataError(
                f"Commit {self.sha} message is not valid UTF-8: {exc}"
            ) from exc
        if not message.strip():
            raise InvalidCommitMetadataError(f"Commit {self.sha} has no message")
        return message


def _parse_signature(sha: str, role: str, raw: bytes) -> Signature:
    match = _SIGNATURE_RE.match(raw)
    if not match:
        raise InvalidCommitMetadataError(f"Commit {sha} has a malformed {role} line")
    if not match.group("name").strip():
        raise InvalidCommitMetadataError(f"Commit {sha} has an empty {role} name")
    try:
        return Signature(
            name=match.group("name").decode("utf-8"),
            email=match.group("email").decode("utf-8"),
            date=match.group("date").decode("ascii"),
        )
    except UnicodeDecodeError as exc:
        raise InvalidCommitMetadataError(
            f"Commit {sha} {role} is not valid UTF-8: {exc}"
        ) from exc


def branch_name_from_ref(git_ref: str) -> str:
    """Strip ``refs/heads/`` from a full branch ref."""
    if not git_ref.startswith(BRANCH_PREFIX) or git_ref == BRANCH_PREFIX:
        raise NotABranchError(f"Not a branch ref: {git_ref}")
    return git_ref[len(BRANCH_PREFIX):]


def head_ref(repo: Path | str) -> str | None:
    """Return the full ref HEAD points to, or None if HEAD is detached."""
    result = run_git(["symbolic-ref", "-q", "HEAD"], repo)
    if result.returncode == 0:
        return result.stdout.strip()
    if result.returncode == 1:
        return None
    raise GitCommandError(["symbolic-ref", "HEAD"], result.returncode, result.stderr)


def resolve_ref(repo: Path | str, git_ref: str | None = None) -> ResolvedRef:
    """Determine which branch of the component repository is propagated.

    Args:
        repo: Component repository working copy.
        git_ref: Full ref override (e.g. ``refs/heads/main``). Used verbatim
            when given; otherwise HEAD's branch is used.

    Returns:
        The resolved ref and the commit it points at.

    Raises:
        NotABranchError: HEAD is detached and no override was given, or the
            ref is not a ``refs/heads/`` branch that exists.
        RefMismatchError: The ref does not point at HEAD's commit.
    """
    current = head_ref(repo)
    if git_ref:
        name = git_ref
    elif current:
        name = current
    else:
        raise NotABranchError("No branch name given and HEAD is not a branch")

    branch_name_from_ref(name)

    head_sha = rev_parse(repo, "HEAD^{commit}")
    ref_sha = rev_parse(repo, f"{name}^{{commit}}")
    if ref_sha is None:
        raise NotABranchError(f"Branch {name} does not exist in {repo}")
    if head_sha != ref_sha:
        raise RefMismatchError(f"HEAD is not on the given branch {name}")

    logger.info("Propagating %s at %s", name, ref_sha)
    return ResolvedRef(name=name, sha=ref_sha)


def read_commit(repo: Path | str, sha: str) -> CommitInfo:
    """Read the raw commit object ``sha`` from ``repo``."""
    result = run_git(["cat-file", "commit", sha], repo, check=True, binary=True)
    header, _, message = result.stdout.partition(b"\n\n")

    fields: dict[bytes, bytes] = {}
    for line in header.split(b"\n"):
        if not line or line.startswith(b" "):
            continue  # continuation of a multi-line header (gpgsig)
        key, _, value = line.partition(b" ")
        fields.setdefault(key, value)

    if b"author" not in fields or b"committer" not in fields:
        raise InvalidCommitMetadataError(f"Commit {sha} is missing author or committer")

    encoding = fields.get(b"encoding")
    return CommitInfo(
        sha=sha,
        raw_author=fields[b"author"],
        raw_committer=fields[b"committer"],
        raw_message=message,
        encoding=encoding.decode("ascii", errors="replace") if encoding else None,
    )
