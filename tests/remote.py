"""Test helpers for building a repository that stands in for the remote."""

from dataclasses import dataclass
import os
from pathlib import Path

import git

AUTHOR = git.Actor("Test Author", "author@example.com")

A_TXT_V1 = "Test Тест\nversion 1\n"
A_TXT_V2 = "Test Тест\nversion 2\n"
B_TXT = "content of b\n"
C_TXT = "content of c\n"
OLD_TXT = "obsolete\n"
RUN_SH = "#!/bin/sh\necho hello\n"

# Files of the remote primary branch in native tree order
PRIMARY_PATHS = [
    "a.txt",
    "dir/b.txt",
    "dir/nested/c.txt",
    "link",
    "run.sh",
]


@dataclass
class RemoteRepo:
    """A local repository standing in for the remote."""

    path: Path
    repo: git.Repo
    first_commit: git.Commit
    """Commit that still contains old.txt and version 1 of a.txt."""

    @property
    def url(self) -> str:
        return str(self.path)


def _write(root: Path, path: str, content: str) -> None:
    target = root / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


def create_remote(path: Path) -> RemoteRepo:
    """Create a repository with two commits to clone from."""
    repo = git.Repo.init(path)

    _write(path, "a.txt", A_TXT_V1)
    _write(path, "old.txt", OLD_TXT)
    _write(path, "dir/b.txt", B_TXT)
    repo.index.add(["a.txt", "old.txt", "dir/b.txt"])
    first_commit = repo.index.commit("Initial commit", author=AUTHOR, committer=AUTHOR)

    _write(path, "a.txt", A_TXT_V2)
    _write(path, "dir/nested/c.txt", C_TXT)
    _write(path, "run.sh", RUN_SH)
    (path / "run.sh").chmod(0o755)
    os.symlink("a.txt", path / "link")
    repo.index.remove(["old.txt"], working_tree=True)
    repo.index.add(["a.txt", "dir/nested/c.txt", "run.sh", "link"])
    repo.index.commit("Second commit", author=AUTHOR, committer=AUTHOR)

    return RemoteRepo(path=path, repo=repo, first_commit=first_commit)


def worktree_files(root: Path) -> list[str]:
    """Return every file below root outside of the git directory."""
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name != ".git"]
        for name in filenames:
            files.append(Path(dirpath, name).relative_to(root).as_posix())
    return sorted(files)
