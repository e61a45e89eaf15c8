"""Fixed-capacity text chunk and the zero-copy record views borrowed from it.

The chunk is reused for every decode batch. Views record the chunk's
``generation`` when created; once the chunk is refilled by a carry-over the
generation moves on and reading an older view raises ``StaleRecordError``.
Copy a record with ``str(view)`` before asking for the next one if it must
outlive the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import overload

from mbox_splitter.errors import StaleRecordError


@dataclass(frozen=True)
class MarkerSpan:
    """Extent ``[start, end)`` of a marker match inside the current chunk."""

    start: int
    end: int


class TextChunk:
    """Decoded text with ``position``/``limit`` bookkeeping.

    Invariant: ``0 <= position <= limit <= capacity``. Between ``flip`` and the
    next ``carry_over`` the chunk is in read mode and ``[position, limit)``
    holds decoded text not yet handed out as a record.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self.position = 0
        self.generation = 0
        self._text = ""

    @property
    def limit(self) -> int:
        return len(self._text)

    @property
    def free(self) -> int:
        return self.capacity - self.limit

    @property
    def text(self) -> str:
        """Backing text ``[0, limit)``; regex scans run over it in place."""
        return self._text

    def write(self, *parts: str) -> None:
        size = sum(len(p) for p in parts)
        if size > self.free:
            raise BufferError(f"chunk overflow: {size} chars into {self.free} free")
        if size:
            self._text = "".join((self._text, *parts))

    def flip(self) -> None:
        self.position = 0

    def carry_over(self, start: int) -> int:
        """Move ``[start, limit)`` to the front of a cleared chunk.

        Returns the number of characters carried. Every view created before
        the call becomes stale.
        """
        if not 0 <= start <= self.limit:
            raise IndexError(f"carry-over start {start} outside [0, {self.limit}]")
        self._text = self._text[start:]
        self.position = 0
        self.generation += 1
        return self.limit

    def view(self, start: int, end: int, marker: MarkerSpan | None = None) -> RecordView:
        """Return a view over ``[start, end)`` clamped to the valid region."""
        stop = max(0, min(end, self.limit))
        return RecordView(self, min(max(start, 0), stop), stop, marker)


class RecordView:
    """Read-only window over a :class:`TextChunk`; nothing is copied until read."""

    __slots__ = ("_chunk", "_generation", "start", "end", "marker_span")

    def __init__(
        self,
        chunk: TextChunk,
        start: int,
        end: int,
        marker_span: MarkerSpan | None = None,
    ) -> None:
        self._chunk = chunk
        self._generation = chunk.generation
        self.start = start
        self.end = end
        self.marker_span = marker_span

    @property
    def is_stale(self) -> bool:
        return self._generation != self._chunk.generation

    def _backing(self) -> str:
        if self.is_stale:
            raise StaleRecordError(
                "record view was invalidated by a chunk refill; "
                "copy it with str() before requesting the next record"
            )
        return self._chunk.text

    @property
    def text(self) -> str:
        return self._backing()[self.start : self.end]

    @property
    def marker(self) -> str:
        """Marker line that opened this record, or ``""`` if unknown."""
        if self.marker_span is None:
            return ""
        return self._backing()[self.marker_span.start : self.marker_span.end]

    def __str__(self) -> str:
        return self.text

    def __len__(self) -> int:
        return self.end - self.start

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> str: ...

    def __getitem__(self, index: int | slice) -> str:
        return self.text[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RecordView):
            return self.text == other.text
        if isinstance(other, str):
            return self.text == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "stale" if self.is_stale else "live"
        return f"RecordView(start={self.start}, end={self.end}, {state})"
