"""Lazy fragmentation of seekable byte sources."""

from __future__ import annotations

import hashlib
import io
import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator

from frgmnt import fsutil
from frgmnt.errors import HandlerError, SourceError
from frgmnt.s3 import S3ObjectSource

DEFAULT_FRAGMENT_SIZE = 1024 * 1024

FragmentHandler = Callable[[int, int, bytes], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fragment:
    index: int
    total: int
    payload: bytes


class Fragmenter:
    """Splits a seekable source into 1-based, fixed-size fragments.

    Nothing is read until the fragments are iterated. Every iteration starts
    from the beginning of the source, so repeated iterations over unchanged
    content yield identical fragments. ``hash()`` runs its own iteration
    once and caches the digest.
    """

    def __init__(
        self,
        stream: BinaryIO,
        size: int | None = None,
        fragment_size: int | None = None,
        *,
        owns_stream: bool = False,
    ) -> None:
        if not fragment_size:
            fragment_size = DEFAULT_FRAGMENT_SIZE
        if fragment_size < 0:
            raise ValueError("fragment_size must be > 0")
        if size is None:
            size = _measure(stream)
        if size < 0:
            raise ValueError("size must be >= 0")
        self._stream = stream
        self._owns_stream = owns_stream
        self._size = size
        self._fragment_size = fragment_size
        self._total = -(-size // fragment_size)
        self._sha256: str | None = None

    @classmethod
    def from_bytes(
        cls, data: bytes, fragment_size: int | None = None
    ) -> "Fragmenter":
        return cls(io.BytesIO(bytes(data)), len(data), fragment_size)

    @classmethod
    def from_file(
        cls, path: str | os.PathLike[str], fragment_size: int | None = None
    ) -> "Fragmenter":
        handle, size = fsutil.open_for_reading(path)
        try:
            return cls(handle, size, fragment_size, owns_stream=True)
        except BaseException:
            handle.close()
            raise

    @classmethod
    def from_s3(
        cls, client, bucket: str, key: str, fragment_size: int | None = None
    ) -> "Fragmenter":
        source = S3ObjectSource(client, bucket, key)
        return cls(source, source.size, fragment_size, owns_stream=True)

    @property
    def size(self) -> int:
        return self._size

    @property
    def fragment_size(self) -> int:
        return self._fragment_size

    @property
    def total(self) -> int:
        return self._total

    def __iter__(self) -> Iterator[Fragment]:
        self._rewind()
        # Each iteration tracks its own offset so a nested iteration (e.g.
        # hash() called from a handler) cannot shift this one.
        offset = 0
        index = 0
        while True:
            payload = self._read_window(offset)
            if not payload:
                return
            offset += len(payload)
            index += 1
            yield Fragment(index=index, total=self._total, payload=payload)

    def each(self, handler: FragmentHandler) -> None:
        """Call ``handler(index, total, payload)`` for every fragment in order.

        An exception raised by the handler stops the iteration and is
        re-raised as ``HandlerError`` with the original exception chained.
        Source failures raise ``SourceError`` unwrapped.
        """
        for fragment in self:
            try:
                handler(fragment.index, fragment.total, fragment.payload)
            except Exception as exc:
                raise HandlerError(fragment.index) from exc

    def hash(self) -> str:
        if self._sha256 is None:
            hasher = hashlib.sha256()
            for fragment in self:
                hasher.update(fragment.payload)
            self._sha256 = hasher.hexdigest()
            logger.debug(
                "event=source_hashed size=%d total=%d sha256=%s",
                self._size,
                self._total,
                self._sha256,
            )
        return self._sha256

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "Fragmenter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _rewind(self) -> None:
        try:
            offset = self._stream.seek(0)
        except (OSError, ValueError) as exc:
            raise SourceError(f"failed to seek to beginning: {exc}") from exc
        if offset != 0:
            raise SourceError("failed to seek to beginning")

    def _read_window(self, offset: int) -> bytes:
        buffer = bytearray()
        try:
            self._stream.seek(offset)
            while len(buffer) < self._fragment_size:
                data = self._stream.read(self._fragment_size - len(buffer))
                if not data:
                    break
                buffer.extend(data)
        except (OSError, ValueError) as exc:
            raise SourceError(f"failed to read at offset {offset}: {exc}") from exc
        return bytes(buffer)


def _measure(stream: BinaryIO) -> int:
    try:
        current = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(current)
    except (OSError, ValueError) as exc:
        raise SourceError(f"failed to determine source size: {exc}") from exc
    return end
