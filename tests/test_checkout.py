"""Tests for the selective checkout engine."""

import os
from pathlib import Path
from unittest.mock import Mock

import git
import pytest

from git_file_loader.checkout import (
    build_plan,
    find_conflicts,
    locked_index,
    read_contents,
    restrict_plan,
    validate_paths,
)
from git_file_loader.exceptions import (
    IndexLockError,
    InputException,
    PathNotFoundError,
    TransportError,
)

from .remote import A_TXT_V2, PRIMARY_PATHS, RUN_SH, RemoteRepo


def test_validate_paths() -> None:
    """Test that duplicates are removed keeping the request order."""
    assert validate_paths(["b", "a", "b", "dir/c"]) == ["b", "a", "dir/c"]


def test_validate_paths_lists_invalid() -> None:
    """Test that every invalid path is reported."""
    with pytest.raises(InputException, match="'/a'.*'b/'"):
        validate_paths(["/a", "ok.txt", "b/"])


def test_restrict_plan() -> None:
    """Test restricting a plan to the requested paths."""
    blob_a, blob_b = Mock(), Mock()
    plan = {"a": blob_a, "b": blob_b, "c": None, "d": Mock()}

    restricted = restrict_plan(plan, ["c", "a"])

    assert restricted == {"c": None, "a": blob_a}
    assert list(restricted) == ["c", "a"]


def test_restrict_plan_missing_paths() -> None:
    """Test that all missing paths are reported, not just the first."""
    plan = {"a": Mock(), "b": None}

    with pytest.raises(PathNotFoundError) as exc_info:
        restrict_plan(plan, ["z", "a", "m"])

    assert exc_info.value.paths == ["m", "z"]
    assert str(exc_info.value) == "Path(s) not found in remote repo:\nm\nz"


def test_build_plan_without_head(remote: RemoteRepo) -> None:
    """Test the plan for a repository with an unborn HEAD."""
    tree = remote.repo.head.commit.tree

    plan = build_plan(None, [], tree)

    assert sorted(plan) == PRIMARY_PATHS
    assert all(blob is not None for blob in plan.values())
    assert plan["a.txt"].hexsha == (tree / "a.txt").hexsha


def test_build_plan_unchanged_head(remote: RemoteRepo) -> None:
    """Test that files unchanged relative to HEAD are still planned."""
    tree = remote.repo.head.commit.tree

    plan = build_plan(tree, [], tree)

    assert sorted(plan) == PRIMARY_PATHS


def test_build_plan_removes_paths(remote: RemoteRepo) -> None:
    """Test that paths missing from the target tree are planned as removals."""
    first_tree = remote.first_commit.tree
    tree = remote.repo.head.commit.tree

    plan = build_plan(first_tree, [], tree)
    assert plan["old.txt"] is None
    assert sorted(plan) == sorted(PRIMARY_PATHS + ["old.txt"])

    plan = build_plan(tree, ["old.txt"], tree)
    assert plan["old.txt"] is None

    plan = build_plan(tree, [], first_tree)
    assert plan["old.txt"] is not None
    assert plan["dir/nested/c.txt"] is None
    assert plan["run.sh"] is None


def test_find_conflicts_clean(remote: RemoteRepo, tmp_path: Path) -> None:
    """Test that an empty worktree has no conflicts."""
    plan = build_plan(None, [], remote.repo.head.commit.tree)

    assert find_conflicts(tmp_path, {}, plan) == {}


def test_find_conflicts_untracked_removal(remote: RemoteRepo, tmp_path: Path) -> None:
    """Test that removing an untracked file is a conflict."""
    (tmp_path / "old.txt").write_text("untracked\n")

    conflicts = find_conflicts(tmp_path, {}, {"old.txt": None})

    assert conflicts == {"old.txt": "untracked file would be removed"}


def test_locked_index(remote: RemoteRepo) -> None:
    """Test that the index lock is held and entries are written back."""
    repo = remote.repo
    lock = Path(repo.git_dir) / "index.lock"

    with locked_index(repo) as index:
        assert lock.exists()
        assert ("a.txt", 0) in index.entries
        del index.entries[("a.txt", 0)]

    assert not lock.exists()
    assert ("a.txt", 0) not in git.IndexFile(repo).entries
    assert ("dir/b.txt", 0) in git.IndexFile(repo).entries


def test_locked_index_rollback(remote: RemoteRepo) -> None:
    """Test that the index is untouched when the block raises."""
    repo = remote.repo
    lock = Path(repo.git_dir) / "index.lock"
    index_path = Path(repo.git_dir) / "index"
    before = index_path.read_bytes()

    with pytest.raises(RuntimeError):
        with locked_index(repo) as index:
            index.entries.clear()
            raise RuntimeError("failure while holding the lock")

    assert not lock.exists()
    assert index_path.read_bytes() == before


def test_locked_index_held(remote: RemoteRepo) -> None:
    """Test that an existing lock is reported and left in place."""
    lock = Path(remote.repo.git_dir) / "index.lock"
    lock.touch()

    with pytest.raises(IndexLockError):
        with locked_index(remote.repo):
            pass

    assert lock.exists()
    os.unlink(lock)


def test_read_contents(remote: RemoteRepo) -> None:
    """Test reading the content of every blob in a plan."""
    tree = remote.repo.head.commit.tree
    plan = {
        "a.txt": tree / "a.txt",
        "run.sh": tree / "run.sh",
        "link": tree / "link",
        "old.txt": None,
    }

    assert read_contents(remote.repo, plan) == {
        "a.txt": A_TXT_V2.encode(),
        "run.sh": RUN_SH.encode(),
        "link": b"a.txt",
    }


def test_read_contents_missing_object(remote: RemoteRepo) -> None:
    """Test that a blob that can't be read is reported as a transport error."""
    blob = git.Blob(remote.repo, bytes.fromhex("ab" * 20), mode=0o100644, path="x")

    with pytest.raises(TransportError, match="Unable to read content of x"):
        read_contents(remote.repo, {"x": blob}, {"GIT_TERMINAL_PROMPT": "0"})
