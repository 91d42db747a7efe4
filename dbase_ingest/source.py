"""
Byte sources for the decoder.

The decoder itself never touches storage.  It asks a ``ByteSource`` for
either the whole file (``read_all``) or a byte range (``read_range``).
Three adapters cover the usual inputs:

- ``BufferSource``: bytes already in memory.
- ``PathSource``: a file on disk, opened per call.
- ``StreamSource``: a seekable binary file object owned by the caller.

I/O errors (``FileNotFoundError``, ``PermissionError``, ...) propagate
unchanged.

Design: Strategy Pattern, same as the reader/parser split elsewhere --
new storage backends are added by subclassing ``ByteSource``.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO

logger = logging.getLogger(__name__)


class ByteSource(ABC):
    """Abstract base class for anything the decoder can read bytes from."""

    @abstractmethod
    def read_all(self) -> bytes:
        """Return the complete file contents."""

    @abstractmethod
    def read_range(self, offset: int, size: int) -> bytes:
        """Return up to *size* bytes starting at *offset*.

        Fewer bytes are returned when the source ends first.
        """

    @property
    def name(self) -> str:
        """Human-readable source name used in logs and export lineage."""
        return "<bytes>"


class BufferSource(ByteSource):
    """An in-memory buffer."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)

    def read_all(self) -> bytes:
        return self._data

    def read_range(self, offset: int, size: int) -> bytes:
        return self._data[offset:offset + size]


class PathSource(ByteSource):
    """A file on disk.  Each read opens and closes the file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    def read_all(self) -> bytes:
        data = self.path.read_bytes()
        logger.debug("Read %d bytes from %s", len(data), self.path)
        return data

    def read_range(self, offset: int, size: int) -> bytes:
        with open(self.path, "rb") as f:
            f.seek(offset)
            return f.read(size)


class StreamSource(ByteSource):
    """A seekable binary stream.  The caller keeps ownership (it is not closed)."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    @property
    def name(self) -> str:
        return str(getattr(self._stream, "name", "<stream>"))

    def read_all(self) -> bytes:
        self._stream.seek(0)
        return self._stream.read()

    def read_range(self, offset: int, size: int) -> bytes:
        self._stream.seek(offset)
        return self._stream.read(size)


def as_source(obj: Any) -> ByteSource:
    """Wrap *obj* in the matching ``ByteSource`` adapter.

    Raises:
        TypeError: If *obj* is none of the supported source kinds.
    """
    if isinstance(obj, ByteSource):
        return obj
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return BufferSource(obj)
    if isinstance(obj, (str, os.PathLike)):
        return PathSource(obj)
    if hasattr(obj, "read") and hasattr(obj, "seek"):
        return StreamSource(obj)
    raise TypeError(
        f"Unsupported source type: {type(obj).__name__}. "
        "Expected bytes, a path, a seekable binary stream or a ByteSource."
    )
