"""Ephemeral clone of the composite repository.

The clone lives in a temporary directory owned by a single pipeline run.
:class:`TemporaryWorkspace` is a context manager: the repository path it
hands out is valid only inside the ``with`` block, and the directory is
removed exactly once when the block exits, whether it succeeded or not.

    with TemporaryWorkspace(url, transport) as workspace:
        run_git(["status"], workspace.repo)
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from composite_sync.errors import CloneFailedError, GitCommandError, WorkspaceReleasedError
from composite_sync.git.runner import Transport, run_git

logger = logging.getLogger(__name__)


def clone_repository(url: str, target: Path, transport: Transport | None = None) -> Path:
    """Clone ``url`` into ``target``.

    Submodules are left uninitialized; each one is fetched on its own while
    scanning, so an unreachable submodule does not fail the clone.

    Raises:
        CloneFailedError: On any transport or backend failure.
    """
    logger.debug("Cloning %s into %s", url, target)
    try:
        result = run_git(
            ["clone", url, str(target)],
            target.parent,
            transport=transport,
        )
    except GitCommandError as exc:
        raise CloneFailedError(f"Failed to clone {url}: {exc}") from exc

    if result.returncode != 0:
        raise CloneFailedError(f"Failed to clone {url}: {result.stderr.strip()}")
    return target


class TemporaryWorkspace:
    """Scoped clone of a remote repository in a private temp directory."""

    def __init__(self, url: str, transport: Transport | None = None, prefix: str = "composite-sync-"):
        self.url = url
        self.transport = transport or Transport()
        self.prefix = prefix
        self.path: Path | None = None
        self._tempdir: tempfile.TemporaryDirectory | None = None
        self._repo: Path | None = None

    @property
    def repo(self) -> Path:
        """Path of the cloned repository. Invalid once the workspace is released."""
        if self._repo is None:
            raise WorkspaceReleasedError(f"Workspace for {self.url} is not active")
        return self._repo

    @property
    def active(self) -> bool:
        return self._repo is not None

    def __enter__(self) -> TemporaryWorkspace:
        if self._tempdir is not None:
            raise WorkspaceReleasedError("A workspace can only be acquired once")
        self._tempdir = tempfile.TemporaryDirectory(prefix=self.prefix)
        self.path = Path(self._tempdir.name)
        try:
            self._repo = clone_repository(self.url, self.path / "composite", self.transport)
        except BaseException:
            self._release()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._release()
        return False

    def _release(self) -> None:
        self._repo = None
        if self._tempdir is not None and self.path is not None and self.path.exists():
            logger.debug("Removing workspace %s", self.path)
            self._tempdir.cleanup()
