"""Split byte streams into numbered fragments and reassemble them."""

from __future__ import annotations

from frgmnt.errors import (
    EmptyFragmentError,
    FragmentError,
    HandlerError,
    InvalidIndexError,
    MissingFragmentsError,
    OutOfBoundsError,
    PathAccessError,
    PathError,
    PathIsDirectoryError,
    PathNotFoundError,
    SinkClosedError,
    SinkError,
    SourceError,
    ValidationError,
)
from frgmnt.fragmenter import DEFAULT_FRAGMENT_SIZE, Fragment, Fragmenter
from frgmnt.reassembler import Reassembler
from frgmnt.sinks import BufferSink, FileSink, Sink, StreamSink

__version__ = "1.5.0"

__all__ = [
    "DEFAULT_FRAGMENT_SIZE",
    "BufferSink",
    "EmptyFragmentError",
    "FileSink",
    "Fragment",
    "FragmentError",
    "Fragmenter",
    "HandlerError",
    "InvalidIndexError",
    "MissingFragmentsError",
    "OutOfBoundsError",
    "PathAccessError",
    "PathError",
    "PathIsDirectoryError",
    "PathNotFoundError",
    "Reassembler",
    "Sink",
    "SinkClosedError",
    "SinkError",
    "SourceError",
    "StreamSink",
    "ValidationError",
    "__version__",
]
