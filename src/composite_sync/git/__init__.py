"""Git stages of the synchronization pipeline, driven through the git executable."""

from composite_sync.git.checkout import ensure_branch
from composite_sync.git.commit import commit_submodule_update, format_commit_message
from composite_sync.git.push import push_branch
from composite_sync.git.refs import CommitInfo, ResolvedRef, read_commit, resolve_ref
from composite_sync.git.runner import Transport, run_git
from composite_sync.git.submodules import (
    Submodule,
    find_submodule_by_commit,
    list_submodules,
    update_submodule_to_commit,
)
from composite_sync.git.workspace import TemporaryWorkspace

__all__ = [
    "CommitInfo",
    "ResolvedRef",
    "Submodule",
    "TemporaryWorkspace",
    "Transport",
    "commit_submodule_update",
    "ensure_branch",
    "find_submodule_by_commit",
    "format_commit_message",
    "list_submodules",
    "push_branch",
    "read_commit",
    "resolve_ref",
    "run_git",
    "update_submodule_to_commit",
]
