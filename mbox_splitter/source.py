"""Byte sources feeding the decoder.

A source is a forward-only cursor over raw archive bytes: ``read`` hands out
the next slice and the offset never moves backwards.
"""

from __future__ import annotations

import logging
import mmap
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from mbox_splitter.errors import SourceUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSource(Protocol):
    @property
    def remaining(self) -> int:
        """Bytes not yet handed out by :meth:`read`."""
        ...

    def read(self, size: int) -> bytes:
        """Return up to ``size`` bytes and advance the cursor past them."""
        ...

    def close(self) -> None:
        """Release the underlying resource; safe to call repeatedly."""
        ...


class BytesSource:
    """In-memory source over an existing ``bytes`` object."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._offset = 0
        self.closed = False

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read(self, size: int) -> bytes:
        end = min(self._offset + max(size, 0), len(self._data))
        chunk = self._data[self._offset : end].tobytes()
        self._offset = end
        return chunk

    def close(self) -> None:
        self.closed = True


class MappedByteSource:
    """Read-only memory map of a file.

    Parameters
    ----------
    path:
        File to map. Empty files are accepted and behave as an exhausted
        source, since ``mmap`` cannot map zero bytes.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._mm: mmap.mmap | None = None
        self._offset = 0
        try:
            self._fd = os.open(str(self.path), os.O_RDONLY)
        except OSError as exc:
            raise SourceUnavailableError(f"Cannot open {self.path}: {exc.strerror}") from exc
        try:
            self._size = os.fstat(self._fd).st_size
            if self._size:
                self._mm = mmap.mmap(self._fd, 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as exc:
            os.close(self._fd)
            self._fd = -1
            raise SourceUnavailableError(f"Cannot map {self.path}: {exc}") from exc
        logger.debug("mapped %s (%d bytes)", self.path, self._size)

    @property
    def closed(self) -> bool:
        return self._fd < 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return self._size - self._offset

    def read(self, size: int) -> bytes:
        if self._mm is None:
            return b""
        end = min(self._offset + max(size, 0), self._size)
        chunk = self._mm[self._offset : end]
        self._offset = end
        return chunk

    def close(self) -> None:
        if self._mm is not None:
            self._mm.close()
            self._mm = None
        if self._fd >= 0:
            os.close(self._fd)
            self._fd = -1
            logger.debug("closed %s", self.path)


def open_source(path: str | os.PathLike) -> MappedByteSource:
    """Map ``path`` for reading; raises ``SourceUnavailableError``."""
    return MappedByteSource(path)
