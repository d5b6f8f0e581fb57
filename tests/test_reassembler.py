"""Reassembler tests."""

from __future__ import annotations

import hashlib
import io
import random
import tempfile
import unittest
from pathlib import Path

from frgmnt.errors import (
    EmptyFragmentError,
    InvalidIndexError,
    MissingFragmentsError,
    OutOfBoundsError,
    PathIsDirectoryError,
    PathNotFoundError,
    SinkClosedError,
    SinkError,
)
from frgmnt.reassembler import Reassembler
from frgmnt.sinks import BufferSink, Sink


class RecordingSink(Sink):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[bytes] = []
        self.finalize_calls = 0

    def contents(self) -> bytes:
        return b"".join(self.writes)

    def finalize(self) -> None:
        self.finalize_calls += 1
        super().finalize()

    def _write(self, data: bytes) -> None:
        self.writes.append(bytes(data))


class FailingSink(Sink):
    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.calls = 0
        self.writes: list[bytes] = []

    def _write(self, data: bytes) -> None:
        self.calls += 1
        if self.calls == self.fail_on:
            raise OSError("disk full")
        self.writes.append(bytes(data))


def _split(data: bytes, size: int) -> list[tuple[int, bytes]]:
    return [
        (number, data[offset:offset + size])
        for number, offset in enumerate(range(0, len(data), size), start=1)
    ]


class ReassemblerTests(unittest.TestCase):
    def test_in_order_reassembly(self) -> None:
        data = b"the quick brown fox jumps"
        fragments = _split(data, 4)
        reassembler = Reassembler.to_bytes(len(fragments))
        for index, payload in fragments:
            self.assertFalse(reassembler.finished)
            reassembler.add(index, payload)
        self.assertTrue(reassembler.finished)
        self.assertEqual(reassembler.get(), data)
        self.assertEqual(reassembler.hash(), hashlib.sha256(data).hexdigest())

    def test_any_permutation_with_duplicates(self) -> None:
        rng = random.Random(1234)
        for trial in range(20):
            with self.subTest(trial=trial):
                data = bytes(rng.randrange(256) for _ in range(rng.randrange(1, 300)))
                fragments = _split(data, rng.randrange(1, 40))
                deliveries = list(fragments)
                rng.shuffle(deliveries)
                for _ in range(rng.randrange(0, 10)):
                    deliveries.insert(
                        rng.randrange(len(deliveries) + 1), rng.choice(fragments)
                    )
                reassembler = Reassembler.to_bytes(len(fragments))
                for index, payload in deliveries:
                    reassembler.add(index, payload)
                self.assertEqual(reassembler.get(), data)
                self.assertEqual(
                    reassembler.hash(), hashlib.sha256(data).hexdigest()
                )

    def test_reverse_order_drains_in_single_call(self) -> None:
        fragments = _split(b"abcdefghijkl", 2)
        sink = RecordingSink()
        reassembler = Reassembler(sink, len(fragments))
        for index, payload in reversed(fragments[1:]):
            reassembler.add(index, payload)
            self.assertEqual(sink.writes, [])
        self.assertEqual(reassembler.pending, len(fragments) - 1)
        reassembler.add(*fragments[0])
        self.assertEqual(sink.writes, [payload for _, payload in fragments])
        self.assertEqual(reassembler.pending, 0)
        self.assertTrue(reassembler.finished)

    def test_duplicates_are_ignored(self) -> None:
        reassembler = Reassembler.to_bytes(3)
        reassembler.add(1, b"aa")
        reassembler.add(1, b"XX")
        reassembler.add(3, b"cc")
        reassembler.add(3, b"ZZ")
        self.assertEqual(reassembler.pending, 1)
        reassembler.add(2, b"bb")
        reassembler.add(2, b"YY")
        self.assertEqual(reassembler.get(), b"aabbcc")
        self.assertEqual(reassembler.hash(), hashlib.sha256(b"aabbcc").hexdigest())

    def test_buffered_payload_is_copied(self) -> None:
        reassembler = Reassembler.to_bytes(2)
        payload = bytearray(b"late")
        reassembler.add(2, payload)
        payload[:] = b"gone"
        reassembler.add(1, b"early-")
        self.assertEqual(reassembler.get(), b"early-late")

    def test_validation_does_not_mutate(self) -> None:
        reassembler = Reassembler.to_bytes(3)
        reassembler.add(2, b"b")
        with self.assertRaises(InvalidIndexError):
            reassembler.add(0, b"x")
        with self.assertRaises(OutOfBoundsError) as context:
            reassembler.add(4, b"x")
        self.assertEqual(context.exception.index, 4)
        for index in (1, 2, 3):
            with self.assertRaises(EmptyFragmentError):
                reassembler.add(index, b"")
        self.assertEqual(reassembler.received, 0)
        self.assertEqual(reassembler.pending, 1)

    def test_missing_fragments_reported(self) -> None:
        reassembler = Reassembler.to_bytes(10)
        for index in range(1, 10):
            reassembler.add(index, bytes([index]))
        with self.assertRaises(MissingFragmentsError) as context:
            reassembler.hash()
        self.assertEqual(context.exception.missing, 1)
        self.assertEqual(str(context.exception), "missing 1 fragment(s)")
        with self.assertRaises(MissingFragmentsError):
            reassembler.get()
        self.assertEqual(reassembler.received, 9)

        reassembler.add(10, b"\x0a")
        expected = bytes(range(1, 11))
        self.assertEqual(reassembler.get(), expected)
        self.assertEqual(reassembler.hash(), hashlib.sha256(expected).hexdigest())

    def test_missing_count_excludes_buffered(self) -> None:
        reassembler = Reassembler.to_bytes(5)
        reassembler.add(3, b"c")
        reassembler.add(5, b"e")
        self.assertEqual(reassembler.missing(), 3)

    def test_zero_total_is_finished(self) -> None:
        sink = RecordingSink()
        reassembler = Reassembler(sink, 0)
        self.assertTrue(reassembler.finished)
        self.assertTrue(reassembler.closed)
        self.assertEqual(reassembler.get(), b"")
        self.assertEqual(reassembler.hash(), hashlib.sha256(b"").hexdigest())
        with self.assertRaises(OutOfBoundsError):
            reassembler.add(1, b"x")

    def test_rejects_negative_total(self) -> None:
        with self.assertRaises(ValueError):
            Reassembler.to_bytes(-1)

    def test_completion_finalizes_sink_once(self) -> None:
        sink = RecordingSink()
        reassembler = Reassembler(sink, 2)
        reassembler.add(1, b"a")
        self.assertEqual(sink.finalize_calls, 0)
        reassembler.add(2, b"b")
        self.assertEqual(sink.finalize_calls, 1)
        reassembler.close()
        reassembler.add(2, b"b")
        self.assertEqual(sink.finalize_calls, 1)

    def test_add_after_manual_close_is_rejected(self) -> None:
        sink = RecordingSink()
        reassembler = Reassembler(sink, 3)
        reassembler.add(1, b"a")
        reassembler.close()
        reassembler.add(1, b"a")
        with self.assertRaises(SinkClosedError):
            reassembler.add(2, b"b")
        with self.assertRaises(SinkClosedError):
            reassembler.add(3, b"c")
        self.assertEqual(reassembler.received, 1)
        self.assertEqual(reassembler.pending, 0)
        self.assertEqual(sink.writes, [b"a"])

    def test_write_failure_keeps_fragment_buffered(self) -> None:
        sink = FailingSink(fail_on=2)
        reassembler = Reassembler(sink, 3)
        reassembler.add(2, b"b")
        reassembler.add(3, b"c")
        with self.assertRaises(OSError):
            reassembler.add(1, b"a")
        self.assertEqual(reassembler.received, 1)
        self.assertEqual(reassembler.pending, 2)
        reassembler.add(2, b"b")
        self.assertTrue(reassembler.finished)
        self.assertEqual(sink.writes, [b"a", b"b", b"c"])
        self.assertEqual(reassembler.hash(), hashlib.sha256(b"abc").hexdigest())

    def test_get_requires_retaining_sink(self) -> None:
        stream = io.BytesIO()
        reassembler = Reassembler(stream, 1)
        reassembler.add(1, b"data")
        self.assertEqual(stream.getvalue(), b"data")
        self.assertFalse(stream.closed)
        self.assertEqual(reassembler.hash(), hashlib.sha256(b"data").hexdigest())
        with self.assertRaises(SinkError):
            reassembler.get()

    def test_context_manager_closes(self) -> None:
        sink = BufferSink()
        with Reassembler(sink, 2) as reassembler:
            reassembler.add(1, b"a")
        self.assertTrue(reassembler.closed)
        self.assertTrue(sink.finalized)


class FileReassemblerTests(unittest.TestCase):
    def test_to_file_writes_and_closes(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "out.bin"
            reassembler = Reassembler.to_file(path, 3)
            reassembler.add(3, b"ghi")
            reassembler.add(1, b"abc")
            self.assertFalse(reassembler.closed)
            reassembler.add(2, b"def")
            self.assertTrue(reassembler.closed)
            self.assertEqual(path.read_bytes(), b"abcdefghi")
            with self.assertRaises(SinkError):
                reassembler.get()

    def test_to_file_rejects_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            with self.assertRaises(PathIsDirectoryError):
                Reassembler.to_file(temp_dir, 0)

    def test_to_file_rejects_missing_parent(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = Path(temp_dir) / "noexist" / "file"
            with self.assertRaises(PathNotFoundError):
                Reassembler.to_file(missing, 0)


if __name__ == "__main__":
    unittest.main()
