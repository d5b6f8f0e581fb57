"""Exception hierarchy shared by fragmenters and reassemblers."""

from __future__ import annotations

from pathlib import Path


class FragmentError(RuntimeError):
    """Base class for all frgmnt errors."""


class PathError(FragmentError):
    """Raised when a path-backed source or sink cannot be opened."""

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(message)
        self.path = Path(path)


class PathNotFoundError(PathError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(path, f"path does not exist: {path}")


class PathIsDirectoryError(PathError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(path, f"path is a directory: {path}")


class PathAccessError(PathError):
    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(path, f"path is not accessible: {path}: {reason}")


class SourceError(FragmentError):
    """Raised when a source cannot be sized, rewound or read."""


class HandlerError(FragmentError):
    """Raised when a fragment handler fails; the cause is chained."""

    def __init__(self, index: int) -> None:
        super().__init__(f"fragment handler failed at fragment {index}")
        self.index = index


class ValidationError(FragmentError):
    """Raised when a submitted fragment is rejected before any mutation."""

    def __init__(self, index: int, message: str) -> None:
        super().__init__(message)
        self.index = index


class InvalidIndexError(ValidationError):
    def __init__(self, index: int) -> None:
        super().__init__(index, "fragment index must be greater than 0")


class OutOfBoundsError(ValidationError):
    def __init__(self, index: int, total: int) -> None:
        super().__init__(
            index, f"fragment index {index} is out of bounds (total={total})"
        )
        self.total = total


class EmptyFragmentError(ValidationError):
    def __init__(self, index: int) -> None:
        super().__init__(index, f"fragment {index} is empty")


class MissingFragmentsError(FragmentError):
    """Raised when output or hash is requested before all fragments arrived."""

    def __init__(self, missing: int) -> None:
        super().__init__(f"missing {missing} fragment(s)")
        self.missing = missing


class SinkError(FragmentError):
    """Raised when a sink lacks a requested capability."""


class SinkClosedError(SinkError):
    """Raised when writing to a sink that has been finalized."""
