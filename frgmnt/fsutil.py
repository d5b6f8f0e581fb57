"""Path helpers for file-backed sources and sinks."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

from frgmnt.errors import (
    PathAccessError,
    PathIsDirectoryError,
    PathNotFoundError,
)


def normalize_path(raw: str | os.PathLike[str]) -> Path:
    return Path(os.fspath(raw)).expanduser()


def open_for_reading(raw: str | os.PathLike[str]) -> tuple[BinaryIO, int]:
    """Open an existing regular file and return it with its size."""
    path = normalize_path(raw)
    if not path.exists():
        raise PathNotFoundError(raw)
    if path.is_dir():
        raise PathIsDirectoryError(raw)
    try:
        handle = path.open("rb")
    except FileNotFoundError as exc:
        raise PathNotFoundError(raw) from exc
    except OSError as exc:
        raise PathAccessError(raw, exc.strerror or str(exc)) from exc
    try:
        size = os.fstat(handle.fileno()).st_size
    except OSError as exc:
        handle.close()
        raise PathAccessError(raw, exc.strerror or str(exc)) from exc
    return handle, size


def open_for_writing(raw: str | os.PathLike[str]) -> BinaryIO:
    """Create or truncate a file whose parent directory already exists."""
    path = normalize_path(raw)
    if path.is_dir():
        raise PathIsDirectoryError(raw)
    if not path.parent.is_dir():
        raise PathNotFoundError(raw)
    try:
        return path.open("wb")
    except IsADirectoryError as exc:
        raise PathIsDirectoryError(raw) from exc
    except FileNotFoundError as exc:
        raise PathNotFoundError(raw) from exc
    except OSError as exc:
        raise PathAccessError(raw, exc.strerror or str(exc)) from exc
