"""Lazy splitting of an mbox archive into record views.

``MboxSplitter`` decodes the archive one chunk at a time into a single reused
``TextChunk`` and yields a ``RecordView`` per marker line. A record runs from
one character after its marker to the start of the next marker, or to the end
of the content for the last one.

When the next marker is not inside the current chunk, the text from the
current marker's start onwards is carried to the front of the chunk and more
bytes are decoded behind it. Views handed out before a carry-over become
stale, see :mod:`mbox_splitter.chunk`.

Example::

    with MboxSplitter.from_file("archive.mbox") as records:
        for record in records:
            handle(str(record))
"""

from __future__ import annotations

import logging
import os
from types import TracebackType
from typing import Any, Iterator

from mbox_splitter.chunk import MarkerSpan, RecordView, TextChunk
from mbox_splitter.config import SplitterSpec
from mbox_splitter.decoder import DecodeOutcome, Decoder
from mbox_splitter.errors import (
    MalformedInputError,
    NoMarkersFoundError,
    MarkerRelocationError,
    RecordTooLargeError,
    UnmappableCharacterError,
    UnsupportedOperationError,
)
from mbox_splitter.matcher import BoundaryMatcher
from mbox_splitter.source import ByteSource, open_source

logger = logging.getLogger(__name__)


def _merge_spec(spec: SplitterSpec | None, options: dict[str, Any]) -> SplitterSpec:
    if not options:
        return spec or SplitterSpec()
    base = spec.model_dump() if spec else {}
    return SplitterSpec.model_validate({**base, **options})


class MboxSplitter:
    """Single-pass iterator over the records of an mbox byte source.

    The splitter owns ``source`` and releases it exactly once: on
    :meth:`close`, on leaving a ``with`` block, or as soon as it knows no
    record is left.
    """

    def __init__(self, source: ByteSource, spec: SplitterSpec | None = None) -> None:
        self.spec = spec or SplitterSpec()
        self.records_emitted = 0
        self._source = source
        self._closed = False
        self._chunk = TextChunk(self.spec.max_message_size)
        self._decoder = Decoder(self.spec.encoding)
        self._matcher = BoundaryMatcher(self.spec.compile())
        try:
            self._previous: MarkerSpan | None = self._find_first_marker()
        except Exception:
            self.close()
            raise
        logger.info(
            "splitting with %s, max %d chars per record",
            self.spec.encoding,
            self.spec.max_message_size,
        )

    @classmethod
    def from_file(
        cls, path: str | os.PathLike, spec: SplitterSpec | None = None, **options: Any
    ) -> MboxSplitter:
        """Map ``path`` and build a splitter; ``options`` override ``spec`` fields."""
        merged = _merge_spec(spec, options)
        return cls(open_source(path), merged)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def _end_of_input(self) -> bool:
        return self._source.remaining <= self.spec.max_message_size

    def _decode_next_chunk(self) -> None:
        outcome = self._decoder.decode(self._source, self._chunk, self._end_of_input())
        if not outcome.is_error:
            return
        where = f"at byte {self._decoder.error_offset} of the batch"
        if outcome is DecodeOutcome.UNMAPPABLE:
            raise UnmappableCharacterError(
                f"Unmappable character for {self.spec.encoding} {where}",
                self._decoder.error_offset,
            ) from self._decoder.error
        raise MalformedInputError(
            f"Malformed {self.spec.encoding} input {where}",
            self._decoder.error_offset,
        ) from self._decoder.error

    def _find_marker(self) -> MarkerSpan | None:
        return self._matcher.find_next(self._chunk, more_input=self._source.remaining > 0)

    def _partial_line_start(self) -> int:
        text = self._chunk.text
        start = text.rfind("\n") + 1
        if start == 0:
            raise RecordTooLargeError(
                f"a line before the first marker exceeds {self.spec.max_message_size} chars"
            )
        return start

    def _find_first_marker(self) -> MarkerSpan:
        self._decode_next_chunk()
        span = self._find_marker()
        while span is None and self._source.remaining > 0:
            # preamble longer than one chunk: keep the unfinished last line
            self._chunk.carry_over(self._partial_line_start())
            self._decode_next_chunk()
            self._matcher.reset()
            span = self._find_marker()
        if span is None:
            raise NoMarkersFoundError(
                "Content does not contain marker lines; it may not be a valid mbox"
            )
        return span

    def _refill(self, previous: MarkerSpan) -> MarkerSpan:
        """Carry the text from ``previous`` onwards over and decode behind it."""
        carried = self._chunk.carry_over(previous.start)
        self._decode_next_chunk()
        self._matcher.reset()
        relocated = self._find_marker()
        if relocated is None or relocated.start != 0:
            raise MarkerRelocationError(
                "marker pattern no longer matches the carried marker line at the chunk start"
            )
        logger.debug(
            "carried %d chars over, chunk now holds %d, %d bytes remaining",
            carried,
            self._chunk.limit,
            self._source.remaining,
        )
        return relocated

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def _next_record(self, previous: MarkerSpan) -> RecordView:
        chunk = self._chunk
        span = self._find_marker()
        if span is None and self._source.remaining > 0:
            previous = self._refill(previous)
            span = self._find_marker()
            if span is None and self._source.remaining > 0:
                raise RecordTooLargeError(
                    f"record {self.records_emitted + 1} exceeds "
                    f"{self.spec.max_message_size} chars"
                )
        if span is None:
            record = chunk.view(previous.end + 1, chunk.limit, previous)
            chunk.position = chunk.limit
            self._previous = None
        else:
            record = chunk.view(previous.end + 1, span.start, previous)
            chunk.position = span.start
            self._previous = span
        self.records_emitted += 1
        return record

    def __iter__(self) -> Iterator[RecordView]:
        return self

    def __next__(self) -> RecordView:
        if self._previous is None:
            self.close()
            raise StopIteration
        try:
            record = self._next_record(self._previous)
        except Exception:
            self._previous = None
            self.close()
            raise
        if self._previous is None:
            self.close()
        return record

    def has_next(self) -> bool:
        """Return whether another record is queued; never consumes one."""
        if self._previous is None:
            self.close()
            return False
        return True

    def remove(self) -> None:
        raise UnsupportedOperationError("records cannot be removed from an mbox sequence")

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the byte source; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._source.close()
        logger.info("released source after %d records", self.records_emitted)

    def __enter__(self) -> MboxSplitter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def iter_records(path: str | os.PathLike, **options: Any) -> Iterator[str]:
    """Yield each record of ``path`` as an independent string."""
    with MboxSplitter.from_file(path, **options) as records:
        for record in records:
            yield str(record)
