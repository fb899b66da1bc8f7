"""Selective checkout of individual files from a repository without a worktree.

A checkout moves through these states:

  START -> RESOLVED -> PLANNED -> RESTRICTED -> APPLIED

with any failure ending in FAILED. The plan holds, for every path that a full
checkout of the target reference would touch, either the blob to write or
`None` when the path must be removed. The plan is restricted to the requested
paths before anything is written, so unrequested files never reach the disk and
a request naming an unknown path writes nothing at all.

Paths present in the target tree are always written, even when they are
unchanged relative to HEAD, so a requested path is materialized on every call.

The index lock (`.git/index.lock`) is held from planning until the updated
index has been written.
"""

import contextlib
from dataclasses import dataclass
import enum
import hashlib
import logging
import os
from collections.abc import Collection, Iterable, Mapping
from pathlib import Path, PurePosixPath
from typing import Generator

import git
from git.index.fun import write_cache
from git.index.typ import IndexEntry
from git.objects import Blob, Tree
from git.util import LockedFD

from .exceptions import (
    ApplyConflictError,
    IndexLockError,
    InputException,
    PathNotFoundError,
    TransportError,
)
from .tree import resolve_commit, walk_blobs

__all__ = [
    "CheckoutPlan",
    "CheckoutState",
    "LockedIndex",
    "validate_paths",
    "locked_index",
    "build_plan",
    "restrict_plan",
    "find_conflicts",
    "read_contents",
    "apply_plan",
    "selective_checkout",
]

_LOGGER = logging.getLogger(__name__)

CheckoutPlan = dict[str, Blob | None]
"""Path to the blob to write, or None when the path is removed."""

IndexEntries = dict[tuple[str, int], IndexEntry]

STAGE = 0
EXECUTABLE_PERMISSIONS = 0o755


class CheckoutState(enum.Enum):
    """Progress of a single checkout."""

    START = "start"
    RESOLVED = "resolved"
    PLANNED = "planned"
    RESTRICTED = "restricted"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class LockedIndex:
    """Index entries read while holding the index lock."""

    entries: IndexEntries
    """Entries keyed by (path, stage), written back when the lock is released."""

    @property
    def paths(self) -> set[str]:
        """Return all paths tracked by the index."""
        return {path for path, _ in self.entries}


def _is_valid_path(path: str) -> bool:
    if not path or path.startswith("/"):
        return False
    parts = path.split("/")
    if any(part in ("", ".", "..") for part in parts):
        return False
    return parts[0] != ".git"


def validate_paths(paths: Iterable[str]) -> list[str]:
    """Return the requested paths in order with duplicates removed."""
    requested = list(dict.fromkeys(paths))
    if not requested:
        raise InputException("At least one path must be requested")
    if invalid := [path for path in requested if not _is_valid_path(path)]:
        raise InputException(
            "Paths must be relative and '/' separated: "
            + ", ".join(repr(path) for path in invalid)
        )
    return requested


@contextlib.contextmanager
def locked_index(repo: git.Repo) -> Generator[LockedIndex, None, None]:
    """Create a ContextManager holding the index lock of the repository.

    The entries are written back to the index when the block completes and the
    previous index is left untouched when it raises. The lock is released in
    both cases.
    """
    lock = LockedFD(os.path.join(repo.git_dir, "index"))
    try:
        stream = lock.open(write=True, stream=True)
    except OSError as err:
        raise IndexLockError(f"Unable to lock index in {repo.git_dir}: {err}") from err
    _LOGGER.debug("Acquired index lock in %s", repo.git_dir)
    try:
        index = LockedIndex(entries=dict(git.IndexFile(repo).entries))
        yield index
        entries = sorted(index.entries.values(), key=lambda e: (e.path, e.stage))
        write_cache(entries, stream)
    except BaseException:
        lock.rollback()
        _LOGGER.debug("Released index lock in %s without changes", repo.git_dir)
        raise
    lock.commit()
    _LOGGER.debug("Released index lock in %s", repo.git_dir)


def build_plan(
    base_tree: Tree | None, index_paths: Collection[str], target_tree: Tree
) -> CheckoutPlan:
    """Return the full plan for moving from the base to the target tree.

    The base is the HEAD tree (None when HEAD is unborn) plus every path in the
    index. Every file of the target tree is written and every base path missing
    from the target tree is removed.
    """
    plan: CheckoutPlan = {blob.path: blob for blob in walk_blobs(target_tree)}
    base_paths = set(index_paths)
    if base_tree is not None and base_tree.binsha != target_tree.binsha:
        base_paths.update(blob.path for blob in walk_blobs(base_tree))
    for path in base_paths - plan.keys():
        plan[path] = None
    return plan


def restrict_plan(plan: CheckoutPlan, requested: Iterable[str]) -> CheckoutPlan:
    """Return the plan limited to exactly the requested paths."""
    requested = list(dict.fromkeys(requested))
    if missing := [path for path in requested if path not in plan]:
        raise PathNotFoundError(missing)
    return {path: plan[path] for path in requested}


def _worktree_sha(path: Path) -> bytes:
    """Return the binary blob id of a file or symlink in the worktree."""
    if path.is_symlink():
        data = os.fsencode(os.readlink(path))
    else:
        data = path.read_bytes()
    return hashlib.sha1(b"blob %d\0" % len(data) + data).digest()


def _find_conflict(
    root: Path, path: str, entry: IndexEntry | None, blob: Blob | None
) -> str | None:
    parts = PurePosixPath(path).parts
    for depth in range(1, len(parts)):
        parent = root.joinpath(*parts[:depth])
        if parent.is_symlink() or (parent.exists() and not parent.is_dir()):
            return f"'{'/'.join(parts[:depth])}' is not a directory"
    target = root.joinpath(*parts)
    if not os.path.lexists(target):
        return None
    if target.is_dir() and not target.is_symlink():
        return "a directory is in the way"
    on_disk = _worktree_sha(target)
    if entry is not None:
        if on_disk != entry.binsha:
            return "local changes would be overwritten"
        return None
    if blob is None:
        return "untracked file would be removed"
    if on_disk != blob.binsha:
        return "untracked file would be overwritten"
    return None


def find_conflicts(
    root: Path, entries: IndexEntries, plan: CheckoutPlan
) -> dict[str, str]:
    """Return the reason for every plan entry that clashes with the worktree."""
    conflicts: dict[str, str] = {}
    for path, blob in plan.items():
        if reason := _find_conflict(root, path, entries.get((path, STAGE)), blob):
            conflicts[path] = reason
    return conflicts


def read_contents(
    repo: git.Repo, plan: CheckoutPlan, env: Mapping[str, str] | None = None
) -> dict[str, bytes]:
    """Return the content of every blob in the plan.

    Each blob is read by a separate `git cat-file` run with the given
    environment, so a partial clone fetches missing contents from the remote
    with the credentials of the caller. All contents are read before anything
    is written.
    """
    contents: dict[str, bytes] = {}
    with repo.git.custom_environment(**(env or {})):
        for path, blob in plan.items():
            if blob is None:
                continue
            try:
                contents[path] = repo.git.cat_file(
                    "blob",
                    blob.hexsha,
                    stdout_as_string=False,
                    strip_newline_in_stdout=False,
                )
            except git.GitCommandError as err:
                raise TransportError(
                    f"Unable to read content of {path} ({blob.hexsha}): {err}"
                ) from err
    return contents


def _write_blob(target: Path, blob: Blob, data: bytes) -> None:
    if blob.mode == Blob.link_mode:
        os.symlink(os.fsdecode(data), target)
        return
    target.write_bytes(data)
    if blob.mode == Blob.executable_mode:
        target.chmod(EXECUTABLE_PERMISSIONS)


def _prune_empty_dirs(root: Path, directory: Path) -> None:
    while directory != root and directory.is_dir() and not any(directory.iterdir()):
        directory.rmdir()
        directory = directory.parent


def apply_plan(
    root: Path, index: LockedIndex, plan: CheckoutPlan, contents: dict[str, bytes]
) -> None:
    """Write or remove every plan entry in the worktree and the index."""
    for path, blob in plan.items():
        target = root.joinpath(*PurePosixPath(path).parts)
        if os.path.lexists(target):
            target.unlink()
        if blob is None:
            index.entries.pop((path, STAGE), None)
            _prune_empty_dirs(root, target.parent)
            _LOGGER.debug("Removed %s", path)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        _write_blob(target, blob, contents[path])
        index.entries[(path, STAGE)] = IndexEntry.from_blob(blob, stage=STAGE)
        _LOGGER.debug("Wrote %s (%s)", path, blob.hexsha)


def _transition(state: CheckoutState, new_state: CheckoutState) -> CheckoutState:
    _LOGGER.debug("Checkout %s -> %s", state.name, new_state.name)
    return new_state


def selective_checkout(
    repo: git.Repo,
    reference: str,
    paths: Iterable[str],
    env: Mapping[str, str] | None = None,
) -> dict[str, Path]:
    """Check out only the requested paths of the reference into the worktree.

    Returns the local path of every requested path. A path removed by the
    target reference is returned as well, even though no file exists there.
    The environment is used for any git process that may contact the remote.
    """
    requested = validate_paths(paths)
    root = Path(str(repo.working_tree_dir))
    state = CheckoutState.START
    try:
        target = resolve_commit(repo, reference)
        head_tree = repo.head.commit.tree if repo.head.is_valid() else None
        state = _transition(state, CheckoutState.RESOLVED)

        with locked_index(repo) as index:
            plan = build_plan(head_tree, index.paths, target.tree)
            state = _transition(state, CheckoutState.PLANNED)

            restricted = restrict_plan(plan, requested)
            state = _transition(state, CheckoutState.RESTRICTED)

            if conflicts := find_conflicts(root, index.entries, restricted):
                raise ApplyConflictError(conflicts)
            contents = read_contents(repo, restricted, env)
            apply_plan(root, index, restricted, contents)
        state = _transition(state, CheckoutState.APPLIED)
    except Exception:
        _transition(state, CheckoutState.FAILED)
        raise
    return {path: root / path for path in requested}
