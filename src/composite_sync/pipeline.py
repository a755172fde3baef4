"""The synchronization pipeline.

RefResolver -> TemporaryWorkspace + CompositeCheckout -> SubmoduleLocator
-> SubmodulePatcher -> CompositeCommitter -> Pusher. Each stage raises on
failure and nothing is pushed until every earlier stage has succeeded, so
a failed run leaves the upstream repositories untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from composite_sync.errors import ConfigError
from composite_sync.git.checkout import ensure_branch
from composite_sync.git.commit import commit_submodule_update
from composite_sync.git.push import push_branch
from composite_sync.git.refs import read_commit, resolve_ref
from composite_sync.git.runner import Transport
from composite_sync.git.submodules import find_submodule_by_commit, update_submodule_to_commit
from composite_sync.git.workspace import TemporaryWorkspace

logger = logging.getLogger(__name__)


@dataclass
class PipelineOptions:
    """Everything one pipeline run needs."""

    composite_repository: str
    repository: Path | str = "."
    git_ref: str | None = None
    custom_headers: list[str] = field(default_factory=list)
    reuse_existing_branch: bool = True
    skip_unchanged: bool = True
    allow_file_protocol: bool = False
    dry_run: bool = False
    timeout: float | None = None

    def transport(self) -> Transport:
        return Transport(
            custom_headers=list(self.custom_headers),
            allow_file_protocol=self.allow_file_protocol,
            timeout=self.timeout,
        )


@dataclass
class SyncResult:
    """Outcome of a pipeline run."""

    git_ref: str
    target_sha: str
    submodule_path: str | None = None
    commit_sha: str | None = None
    pushed: bool = False
    noop: bool = False
    dry_run: bool = False


def run_pipeline(options: PipelineOptions) -> SyncResult:
    """Propagate the component's branch tip into the composite repository.

    Args:
        options: Run configuration.

    Returns:
        A SyncResult. ``noop`` is set when the composite already pins the
        commit and ``skip_unchanged`` is on; nothing is committed or pushed
        in that case. With ``dry_run`` the commit is made in the temporary
        clone but not pushed.

    Raises:
        SyncError: Any stage failure (see composite_sync.errors).
    """
    component = Path(options.repository)
    if not component.is_dir():
        raise ConfigError(f"Component repository not found: {component}")
    resolved = resolve_ref(component, options.git_ref)
    original = read_commit(component, resolved.sha)
    transport = options.transport()

    result = SyncResult(git_ref=resolved.name, target_sha=resolved.sha, dry_run=options.dry_run)

    with TemporaryWorkspace(options.composite_repository, transport) as workspace:
        repo = workspace.repo
        ensure_branch(repo, resolved.shorthand, reuse_existing=options.reuse_existing_branch)

        submodule = find_submodule_by_commit(repo, resolved.sha, transport)
        result.submodule_path = submodule.path

        changed = update_submodule_to_commit(repo, submodule, resolved.sha)
        if not changed and options.skip_unchanged:
            logger.info("%s already pins %s, nothing to do", submodule.path, resolved.sha)
            result.noop = True
            return result

        result.commit_sha = commit_submodule_update(repo, submodule, original)

        if options.dry_run:
            logger.info("Dry run, not pushing %s", resolved.name)
            return result

        push_branch(repo, transport)
        result.pushed = True

    return result
