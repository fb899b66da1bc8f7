"""Test fixtures for git-file-loader."""

from collections.abc import Generator
from pathlib import Path

import pytest

from git_file_loader import GitLoader, RepositoryConnection

from .remote import RemoteRepo, create_remote


@pytest.fixture(name="remote")
def remote_fixture(tmp_path: Path) -> RemoteRepo:
    """Repository to clone from."""
    return create_remote(tmp_path / "remote")


@pytest.fixture(name="storage_dir")
def storage_dir_fixture(tmp_path: Path) -> Path:
    """Parent directory of the local storage created by loaders."""
    return tmp_path / "storage"


@pytest.fixture(name="connection")
def connection_fixture(remote: RemoteRepo, storage_dir: Path) -> RepositoryConnection:
    """Connection to the test remote with storage below the test directory."""
    return RepositoryConnection(
        url=remote.url,
        suffix="for-test",
        storage_dir=storage_dir,
    )


@pytest.fixture(name="loader")
def loader_fixture(
    connection: RepositoryConnection,
) -> Generator[GitLoader, None, None]:
    """A loader with the remote already cloned."""
    with GitLoader(connection) as loader:
        loader.clone()
        yield loader
