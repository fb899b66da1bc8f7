"""Load single files from a remote git repository without a full checkout.

The loader clones the remote into a temporary directory without checking out
any files, then checks out only the files that are asked for. The temporary
directory is removed when the loader is disposed.

Example usage:

```python
from pathlib import Path

from git_file_loader import GitLoader, RepositoryConnection

connection = RepositoryConnection(
    url="git@github.com:example/project.git",
    private_key_path=Path("~/.ssh/id_ed25519"),
)
with GitLoader(connection) as loader:
    loader.clone()
    for record in loader.list_paths():
        print(record.path)
    print(loader.checkout_and_read("README.md"))
```
"""

import enum
import logging
import shutil
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import TracebackType

import git
from slugify import slugify

from . import checkout, transport, tree
from .connection import DEFAULT_REF, RepositoryConnection
from .context import trace_context
from .exceptions import AlreadyInitializedError, NotInitializedError
from .tree import RemoteFileRecord

__all__ = [
    "GitLoader",
    "RepositoryState",
]

_LOGGER = logging.getLogger(__name__)

STORAGE_PREFIX = "git-loader"


class RepositoryState(enum.Enum):
    """Lifecycle of the local repository."""

    UNINITIALIZED = "uninitialized"
    CLONED = "cloned"
    DISPOSED = "disposed"


class GitLoader:
    """Checks out individual files of a remote repository into local storage."""

    def __init__(self, connection: RepositoryConnection) -> None:
        """Initialize GitLoader and allocate its local storage directory."""
        self._connection = connection
        prefix = STORAGE_PREFIX
        if connection.suffix:
            if suffix := slugify(connection.suffix, max_length=50):
                prefix = f"{prefix}-{suffix}"
        if connection.storage_dir is not None:
            connection.storage_dir.mkdir(parents=True, exist_ok=True)
        self._local_path = Path(
            tempfile.mkdtemp(prefix=f"{prefix}-", dir=connection.storage_dir)
        ).resolve()
        self._repo: git.Repo | None = None
        self._state = RepositoryState.UNINITIALIZED
        _LOGGER.debug("Allocated local storage %s", self._local_path)

    @property
    def connection(self) -> RepositoryConnection:
        """Return the connection used by this loader."""
        return self._connection

    @property
    def local_path(self) -> Path:
        """Return the root of the local storage."""
        return self._local_path

    @property
    def state(self) -> RepositoryState:
        """Return the lifecycle state of the local repository."""
        return self._state

    def _assert_cloned(self) -> git.Repo:
        if self._state != RepositoryState.CLONED or self._repo is None:
            raise NotInitializedError(
                f"Repository is {self._state.value}, "
                "please make sure 'clone' was called before using it"
            )
        return self._repo

    def clone(self) -> None:
        """Clone the remote repository into local storage without any files."""
        if self._state != RepositoryState.UNINITIALIZED:
            raise AlreadyInitializedError(f"Repository is already {self._state.value}")
        with trace_context(f"Clone {self._connection.url}"):
            self._repo = transport.clone(self._connection, self._local_path)
        self._state = RepositoryState.CLONED

    def list_paths(self, ref: str | None = None) -> Iterator[RemoteFileRecord]:
        """Return all files at the reference, the configured one by default."""
        repo = self._assert_cloned()
        return tree.list_paths(repo, ref or self._connection.ref)

    def list_primary_paths(self) -> Iterator[RemoteFileRecord]:
        """Return all files of the remote primary branch."""
        return self.list_paths(DEFAULT_REF)

    def checkout_files(
        self, paths: Iterable[str], ref: str | None = None
    ) -> dict[str, Path]:
        """Check out the paths in one go.

        Returns a mapping of each requested path to its local file. No other
        file of the repository is written.
        """
        repo = self._assert_cloned()
        ref = ref or self._connection.ref
        paths = list(paths)
        with trace_context(f"Checkout {len(paths)} path(s) at {ref}"):
            with transport.transport_session(self._connection.credentials) as session:
                return checkout.selective_checkout(repo, ref, paths, env=session.env)

    def checkout_file(self, path: str, ref: str | None = None) -> Path:
        """Check out a single path and return its local file."""
        return self.checkout_files([path], ref=ref)[path]

    def checkout_and_read(
        self, path: str, ref: str | None = None, encoding: str = "utf-8"
    ) -> str:
        """Check out a single path and return the file contents."""
        return self.checkout_file(path, ref=ref).read_text(encoding=encoding)

    def dispose(self) -> None:
        """Close the repository and remove the local storage.

        Calling this more than once has no effect.
        """
        if self._state == RepositoryState.DISPOSED:
            return
        if self._repo is not None:
            self._repo.close()
            self._repo = None
        if self._local_path.exists():
            _LOGGER.info("Removing local repository %s", self._local_path)
            shutil.rmtree(self._local_path)
        self._state = RepositoryState.DISPOSED

    def __enter__(self) -> "GitLoader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.dispose()
