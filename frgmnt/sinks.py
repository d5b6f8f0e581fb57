"""Sinks that receive reassembled bytes in final order.

Every sink exposes the same three operations so the reassembler never has
to inspect a concrete type:

``write(data)``
    Append bytes. Raises ``SinkClosedError`` once the sink is finalized.
``contents()``
    Return everything written so far, or raise ``SinkError`` when the sink
    does not retain its output.
``finalize()``
    Release any resource the sink owns. Idempotent.
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO

from frgmnt import fsutil
from frgmnt.errors import SinkClosedError, SinkError


class Sink:
    def __init__(self) -> None:
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def write(self, data: bytes) -> None:
        if self._finalized:
            raise SinkClosedError(f"{type(self).__name__} is finalized")
        self._write(data)

    def contents(self) -> bytes:
        raise SinkError(f"{type(self).__name__} does not retain output")

    def finalize(self) -> None:
        self._finalized = True

    def _write(self, data: bytes) -> None:
        raise NotImplementedError


class BufferSink(Sink):
    """Keeps output in memory; the only sink that supports ``contents()``."""

    def __init__(self) -> None:
        super().__init__()
        self._buffer = io.BytesIO()

    def contents(self) -> bytes:
        return self._buffer.getvalue()

    def _write(self, data: bytes) -> None:
        self._buffer.write(data)


class StreamSink(Sink):
    """Writes to a caller-owned binary stream, which is never closed here."""

    def __init__(self, stream: BinaryIO) -> None:
        super().__init__()
        self._stream = stream

    def finalize(self) -> None:
        if not self._finalized:
            flush = getattr(self._stream, "flush", None)
            if flush is not None:
                flush()
        super().finalize()

    def _write(self, data: bytes) -> None:
        self._stream.write(data)


class FileSink(Sink):
    """Creates or truncates a file and closes it when finalized."""

    def __init__(self, handle: BinaryIO) -> None:
        super().__init__()
        self._handle = handle

    @classmethod
    def open(cls, path: str | os.PathLike[str]) -> "FileSink":
        return cls(fsutil.open_for_writing(path))

    @property
    def name(self) -> str:
        return str(getattr(self._handle, "name", ""))

    def finalize(self) -> None:
        if not self._finalized:
            self._handle.close()
        super().finalize()

    def _write(self, data: bytes) -> None:
        self._handle.write(data)
