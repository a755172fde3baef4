"""Shared test fixtures for composite-sync.

Builds throwaway repositories with the git executable:

    remotes/composite.git   bare, main has submodules services/service1, services/service2
    remotes/service1.git    bare component remote
    remotes/service2.git    bare component remote
    work/service1           component working copy (clone of service1.git)
    work/service2           second component working copy
    work/composite          working copy the composite remote was pushed from
"""

import os
import subprocess
import uuid
from pathlib import Path

import pytest

from composite_sync.git.runner import Transport
from composite_sync.pipeline import PipelineOptions

ALICE = {
    "GIT_AUTHOR_NAME": "Alice Example",
    "GIT_AUTHOR_EMAIL": "alice@example.com",
    "GIT_AUTHOR_DATE": "2024-01-02T03:04:05+01:00",
    "GIT_COMMITTER_NAME": "CI Bot",
    "GIT_COMMITTER_EMAIL": "ci@example.com",
    "GIT_COMMITTER_DATE": "2024-01-02T04:00:00+01:00",
}


def git(*args, cwd, env=None, input=None) -> str:
    """Run git for test setup; fail the test on a non-zero exit."""
    result = subprocess.run(
        ["git", "-c", "protocol.file.allow=always", *args],
        cwd=cwd,
        input=input,
        capture_output=True,
        text=isinstance(input, str) or input is None,
        env={**os.environ, **(env or {})},
    )
    if result.returncode != 0:
        raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
    out = result.stdout
    return out.strip() if isinstance(out, str) else out.decode().strip()


class Repos:
    """Paths and helpers for the throwaway repository set."""

    def __init__(self, root: Path):
        self.root = root
        self.remotes = root / "remotes"
        self.work = root / "work"
        self.composite_remote = self.remotes / "composite.git"
        self.component = self.work / "service1"
        self.component2 = self.work / "service2"
        self.composite_work = self.work / "composite"

    git = staticmethod(git)

    def build(self) -> "Repos":
        self.remotes.mkdir()
        self.work.mkdir()
        for name in ("composite", "service1", "service2"):
            git("init", "--bare", "-b", "main", f"{name}.git", cwd=self.remotes)

        for name in ("service1", "service2"):
            path = self.work / name
            git("init", "-b", "main", name, cwd=self.work)
            git("commit", "--allow-empty", "-m", "Initial commit", cwd=path)
            git("remote", "add", "origin", str(self.remotes / f"{name}.git"), cwd=path)
            git("push", "origin", "main", cwd=path)

        git("init", "-b", "main", "composite", cwd=self.work)
        for name in ("service1", "service2"):
            git(
                "submodule", "add", str(self.remotes / f"{name}.git"), f"services/{name}",
                cwd=self.composite_work,
            )
        git("commit", "-m", "Add submodules", cwd=self.composite_work)
        git("remote", "add", "origin", str(self.composite_remote), cwd=self.composite_work)
        git("push", "origin", "main", cwd=self.composite_work)
        return self

    def commit(self, repo: Path, message: str, push: bool = True, env: dict | None = None) -> str:
        """Commit a file change in ``repo``; push the current branch if asked."""
        (repo / "file").write_text(uuid.uuid4().hex)
        git("add", "file", cwd=repo)
        git("commit", "-m", message, cwd=repo, env=env if env is not None else ALICE)
        if push:
            git("push", "origin", "HEAD", cwd=repo)
        return git("rev-parse", "HEAD", cwd=repo)

    def commit_component(self, message: str = "fix bug", push: bool = True) -> str:
        return self.commit(self.component, message, push=push)

    def remote_rev(self, rev: str) -> str:
        return git("rev-parse", rev, cwd=self.composite_remote)

    def clone_composite(self, name: str = "clone", recurse: bool = True) -> Path:
        target = self.root / name
        flags = ["--recurse-submodules"] if recurse else []
        git("clone", *flags, str(self.composite_remote), str(target), cwd=self.root)
        return target

    def options(self, **overrides) -> PipelineOptions:
        values = {
            "composite_repository": str(self.composite_remote),
            "repository": self.component,
            "allow_file_protocol": True,
        }
        values.update(overrides)
        return PipelineOptions(**values)


@pytest.fixture(autouse=True)
def git_env(tmp_path, monkeypatch):
    """Isolate git from the developer's configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "t@t")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "t@t")
    for var in (
        "GIT_CONFIG_GLOBAL", "GIT_DIR", "GIT_WORK_TREE", "GIT_AUTHOR_DATE",
        "GIT_COMMITTER_DATE", "COMPOSITE_SYNC_CONFIG", "COMPOSITE_SYNC_CUSTOM_HEADERS",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def repos(tmp_path):
    root = tmp_path / "repos"
    root.mkdir()
    return Repos(root).build()


@pytest.fixture
def transport():
    return Transport(allow_file_protocol=True)
