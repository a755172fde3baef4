"""Error taxonomy for the synchronization pipeline.

Every stage raises one of these instead of proceeding. Nothing in the
pipeline retries; the CLI reports the message and exits non-zero.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(SyncError):
    """Invalid or incomplete configuration, detected before any I/O."""


class GitCommandError(SyncError):
    """A git invocation exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = ""):
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"git {args[0] if args else ''} failed ({returncode}){detail}")


class NotABranchError(SyncError):
    """Component HEAD is detached, or the given ref is not a branch."""


class RefMismatchError(SyncError):
    """The given ref does not point at the checked-out commit."""


class CloneFailedError(SyncError):
    """The composite repository could not be cloned."""


class CompositeCheckoutFailedError(SyncError):
    """The composite branch could not be prepared."""


class SubmoduleNotFoundError(SyncError):
    """No submodule of the composite repository contains the target commit."""


class CommitNotFoundError(SyncError):
    """The target commit is missing from the located submodule."""


class InvalidCommitMetadataError(SyncError):
    """The original commit's message or identities cannot be reused verbatim."""


class CompositeNotOnBranchError(SyncError):
    """The composite HEAD is detached at push time."""


class PushFailedError(SyncError):
    """The remote rejected the push or the transport failed."""


class WorkspaceReleasedError(SyncError):
    """A temporary workspace was used after it had been removed."""
