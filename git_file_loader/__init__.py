"""Load individual files from a remote git repository.

The repository is cloned without a working tree and only the requested files
are checked out. See `loader.GitLoader` for the entry point.
"""

from .connection import RepositoryConnection, load_connection
from .loader import GitLoader, RepositoryState
from .tree import RemoteFileRecord

__all__ = [
    "GitLoader",
    "RepositoryConnection",
    "RepositoryState",
    "RemoteFileRecord",
    "load_connection",
    "checkout",
    "connection",
    "exceptions",
    "transport",
    "tree",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
