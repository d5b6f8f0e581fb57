"""Order-tolerant reassembly of fragments with running SHA-256."""

from __future__ import annotations

import hashlib
import logging
import os
from typing import BinaryIO

from frgmnt.errors import (
    EmptyFragmentError,
    InvalidIndexError,
    MissingFragmentsError,
    OutOfBoundsError,
    SinkClosedError,
)
from frgmnt.sinks import BufferSink, FileSink, Sink, StreamSink

logger = logging.getLogger(__name__)


class Reassembler:
    """Rebuilds a byte sequence from fragments delivered in any order.

    Fragments at the write cursor are written and hashed immediately,
    followed by any buffered successors. Fragments ahead of the cursor are
    copied into a buffer. Fragments behind it are duplicates and are
    dropped. When the last fragment is written the sink is finalized,
    which closes it if the sink owns a file.

    Not safe for concurrent ``add`` calls; serialize access externally.
    """

    def __init__(self, sink: Sink | BinaryIO, total: int) -> None:
        if total < 0:
            raise ValueError("total must be >= 0")
        if not isinstance(sink, Sink):
            sink = StreamSink(sink)
        self._sink = sink
        self._total = total
        self._next = 1
        self._pending: dict[int, bytes] = {}
        self._hasher = hashlib.sha256()
        self._closed = False
        if self.finished:
            self.close()

    @classmethod
    def to_bytes(cls, total: int) -> "Reassembler":
        return cls(BufferSink(), total)

    @classmethod
    def to_file(cls, path: str | os.PathLike[str], total: int) -> "Reassembler":
        return cls(FileSink.open(path), total)

    @property
    def sink(self) -> Sink:
        return self._sink

    @property
    def total(self) -> int:
        return self._total

    @property
    def received(self) -> int:
        return self._next - 1

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def finished(self) -> bool:
        return self._next - 1 == self._total

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, index: int, payload: bytes) -> None:
        if index <= 0:
            raise InvalidIndexError(index)
        if index > self._total:
            raise OutOfBoundsError(index, self._total)
        if len(payload) == 0:
            raise EmptyFragmentError(index)

        if index < self._next:
            logger.debug("event=fragment_duplicate index=%d", index)
            return
        if self._closed:
            raise SinkClosedError(
                f"cannot accept fragment {index}: reassembler is closed"
            )
        if index > self._next:
            if index not in self._pending:
                self._pending[index] = bytes(payload)
                logger.debug(
                    "event=fragment_buffered index=%d pending=%d",
                    index,
                    len(self._pending),
                )
            else:
                logger.debug("event=fragment_duplicate index=%d", index)
            return

        self._commit(payload)
        self._pending.pop(index, None)
        while self._next in self._pending:
            # Removed from the buffer only once the write succeeded.
            self._commit(self._pending[self._next])
            del self._pending[self._next - 1]
        if self.finished:
            logger.info(
                "event=reassembly_complete total=%d sha256=%s",
                self._total,
                self._hasher.hexdigest(),
            )
            self.close()

    def get(self) -> bytes:
        self._check_missing()
        return self._sink.contents()

    def hash(self) -> str:
        self._check_missing()
        return self._hasher.hexdigest()

    def missing(self) -> int:
        """Count indices neither written nor buffered.

        This is the loose count reported by ``get()`` and ``hash()``: it does
        not check that the buffered indices actually close the gap up to
        ``total``.
        """
        return self._total - (self._next - 1) - len(self._pending)

    def close(self) -> None:
        if self._closed:
            return
        self._sink.finalize()
        self._closed = True
        logger.debug("event=sink_finalized received=%d", self._next - 1)

    def __enter__(self) -> "Reassembler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _commit(self, payload: bytes) -> None:
        self._sink.write(payload)
        self._hasher.update(payload)
        self._next += 1

    def _check_missing(self) -> None:
        missing = self.missing()
        if missing > 0:
            raise MissingFragmentsError(missing)
