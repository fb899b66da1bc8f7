"""Library for listing the files of a tree in a cloned repository.

Example usage:

```python
from git_file_loader import tree

for record in tree.list_paths(repo, "refs/remotes/origin/HEAD"):
    print(f"{record.object_id} {record.path}")
```
"""

from dataclasses import dataclass
import logging
from collections.abc import Iterator

import git
from git.exc import BadName, BadObject
from git.objects import Blob, Commit, Tree
from mashumaro import DataClassDictMixin

from .exceptions import ReferenceNotFoundError

__all__ = [
    "RemoteFileRecord",
    "resolve_commit",
    "walk_blobs",
    "list_paths",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class RemoteFileRecord(DataClassDictMixin):
    """Identifies one file in a remote tree."""

    object_id: str
    """Hex object id of the file content."""

    path: str
    """Path of the file relative to the repository root."""


def resolve_commit(repo: git.Repo, reference: str) -> Commit:
    """Resolve a reference (branch, tag, remote ref or sha) to a commit."""
    try:
        return repo.commit(reference)
    except (BadName, BadObject, ValueError) as err:
        raise ReferenceNotFoundError(reference, str(err)) from err


def walk_blobs(tree: Tree) -> Iterator[Blob]:
    """Yield every blob below the tree depth-first in native tree order.

    Submodule entries are skipped since their content is not in this repository.
    """
    for item in tree:
        if isinstance(item, Tree):
            yield from walk_blobs(item)
        elif isinstance(item, Blob):
            yield item


def _records(tree: Tree) -> Iterator[RemoteFileRecord]:
    for blob in walk_blobs(tree):
        yield RemoteFileRecord(object_id=blob.hexsha, path=blob.path)


def list_paths(repo: git.Repo, reference: str) -> Iterator[RemoteFileRecord]:
    """Return an iterator over every file in the tree of the reference.

    The reference is resolved immediately; the tree is walked lazily. Each call
    returns a new iterator.
    """
    commit = resolve_commit(repo, reference)
    _LOGGER.debug("Listing files of %s at %s", reference, commit.hexsha)
    return _records(commit.tree)
