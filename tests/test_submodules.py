"""Tests for locating a submodule by commit and repointing it."""

import shutil
import subprocess

import pytest

from composite_sync.errors import CommitNotFoundError, GitCommandError, SubmoduleNotFoundError
from composite_sync.git import submodules
from composite_sync.git.refs import head_ref
from composite_sync.git.submodules import (
    find_submodule_by_commit,
    list_submodules,
    pinned_commit,
    update_submodule_to_commit,
)


def _index_is_clean(repo) -> bool:
    result = subprocess.run(["git", "diff", "--cached", "--quiet"], cwd=repo)
    return result.returncode == 0


class TestListSubmodules:
    def test_lists_in_gitmodules_order(self, repos):
        clone = repos.clone_composite()

        entries = list_submodules(clone)

        assert [s.path for s in entries] == ["services/service1", "services/service2"]
        assert [s.name for s in entries] == ["services/service1", "services/service2"]
        assert entries[0].url == str(repos.remotes / "service1.git")

    def test_no_gitmodules(self, tmp_path):
        repo = tmp_path / "plain"
        repo.mkdir()
        subprocess.run(["git", "init", "-b", "main"], cwd=repo, capture_output=True, check=True)

        assert list_submodules(repo) == []


class TestFindSubmoduleByCommit:
    def test_finds_first_submodule(self, repos, transport):
        sha = repos.commit_component()
        clone = repos.clone_composite()

        found = find_submodule_by_commit(clone, sha, transport)

        assert found.path == "services/service1"

    def test_finds_by_content_not_position(self, repos, transport):
        sha = repos.commit(repos.component2, "service2 change")
        clone = repos.clone_composite()

        found = find_submodule_by_commit(clone, sha, transport)

        assert found.path == "services/service2"

    def test_not_found_scans_all_and_leaves_index(self, repos, transport):
        clone = repos.clone_composite()

        with pytest.raises(SubmoduleNotFoundError, match="2 scanned"):
            find_submodule_by_commit(clone, "deadbeef" * 5, transport)

        assert _index_is_clean(clone)

    def test_unpushed_commit_not_found(self, repos, transport):
        sha = repos.commit_component("local only", push=False)
        clone = repos.clone_composite()

        with pytest.raises(SubmoduleNotFoundError, match=sha):
            find_submodule_by_commit(clone, sha, transport)

    def test_failing_entry_is_skipped(self, repos, transport, monkeypatch):
        sha = repos.commit(repos.component2, "service2 change")
        clone = repos.clone_composite()
        real_init = submodules.init_submodule

        def flaky_init(repo, submodule, transport=None):
            if submodule.path == "services/service1":
                raise GitCommandError(["submodule", "update"], 128, "fatal: unreachable")
            return real_init(repo, submodule, transport)

        monkeypatch.setattr(submodules, "init_submodule", flaky_init)

        found = find_submodule_by_commit(clone, sha, transport)
        assert found.path == "services/service2"

    def test_unreachable_remote_is_skipped(self, repos, transport, caplog):
        sha = repos.commit(repos.component2, "service2 change")
        clone = repos.clone_composite(recurse=False)
        shutil.rmtree(repos.remotes / "service1.git")

        found = find_submodule_by_commit(clone, sha, transport)

        assert found.path == "services/service2"
        assert "Skipping submodule services/service1" in caplog.text

    def test_all_entries_failing(self, repos, transport, monkeypatch):
        sha = repos.commit_component()
        clone = repos.clone_composite()

        def broken_init(repo, submodule, transport=None):
            raise GitCommandError(["submodule", "update"], 128, "fatal: unreachable")

        monkeypatch.setattr(submodules, "init_submodule", broken_init)

        with pytest.raises(SubmoduleNotFoundError, match="skipped: services/service1"):
            find_submodule_by_commit(clone, sha, transport)


class TestUpdateSubmoduleToCommit:
    def test_detaches_and_stages(self, repos, transport):
        sha = repos.commit_component()
        clone = repos.clone_composite()
        submodule = find_submodule_by_commit(clone, sha, transport)

        changed = update_submodule_to_commit(clone, submodule, sha)

        assert changed is True
        sub_repo = clone / "services" / "service1"
        assert head_ref(sub_repo) is None
        assert repos.git("rev-parse", "HEAD", cwd=sub_repo) == sha
        assert pinned_commit(clone, "services/service1", rev="") == sha
        assert not _index_is_clean(clone)

    def test_unchanged_pin(self, repos):
        clone = repos.clone_composite()
        submodule = list_submodules(clone)[0]
        current = pinned_commit(clone, submodule.path)

        assert update_submodule_to_commit(clone, submodule, current) is False
        assert _index_is_clean(clone)

    def test_missing_commit(self, repos):
        clone = repos.clone_composite()
        submodule = list_submodules(clone)[0]

        with pytest.raises(CommitNotFoundError, match="services/service1"):
            update_submodule_to_commit(clone, submodule, "deadbeef" * 5)
