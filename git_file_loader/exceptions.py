"""Exceptions related to git-file-loader."""

from collections.abc import Iterable

__all__ = [
    "GitLoaderException",
    "InputException",
    "TransportError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "ReferenceNotFoundError",
    "PathNotFoundError",
    "ApplyConflictError",
    "IndexLockError",
]


class GitLoaderException(Exception):
    """Generic base exception used for this library."""


class InputException(GitLoaderException):
    """Raised when a request or configuration is not formatted as expected."""


class TransportError(GitLoaderException):
    """Raised when cloning the remote repository fails."""


class AlreadyInitializedError(GitLoaderException):
    """Raised when cloning a repository that was already cloned."""


class NotInitializedError(GitLoaderException):
    """Raised when using a repository that has not been cloned."""


class ReferenceNotFoundError(GitLoaderException):
    """Raised when a reference does not resolve to a commit."""

    def __init__(self, reference: str, message: str | None = None) -> None:
        super().__init__(
            f"Reference '{reference}' not found{': ' + message if message else ''}"
        )
        self.reference = reference


class PathNotFoundError(GitLoaderException):
    """Raised when requested paths are not present in the target tree."""

    def __init__(self, paths: Iterable[str]) -> None:
        self.paths = sorted(paths)
        super().__init__(
            "Path(s) not found in remote repo:\n" + "\n".join(self.paths)
        )


class ApplyConflictError(GitLoaderException):
    """Raised when the working tree state conflicts with a checkout."""

    def __init__(self, conflicts: dict[str, str]) -> None:
        self.conflicts = dict(sorted(conflicts.items()))
        super().__init__(
            "Checkout conflicts:\n"
            + "\n".join(f"{path}: {reason}" for path, reason in self.conflicts.items())
        )

    @property
    def paths(self) -> list[str]:
        """Return the conflicting paths."""
        return list(self.conflicts)


class IndexLockError(GitLoaderException):
    """Raised when the repository index is locked by another process."""
