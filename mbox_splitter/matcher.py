from __future__ import annotations

import re

from mbox_splitter.chunk import MarkerSpan, TextChunk


class BoundaryMatcher:
    """Find marker lines in a chunk, resuming from ``scan_position``.

    The pattern is searched with ``pos``/``endpos`` over the chunk's backing
    text, so ``^`` only matches at real line starts: a scan that resumes in
    the middle of a line does not treat its starting index as one.
    """

    def __init__(self, pattern: re.Pattern[str]) -> None:
        self.pattern = pattern
        self.scan_position = 0
        self.last: MarkerSpan | None = None

    def reset(self) -> None:
        """Restart from the beginning of a refilled chunk."""
        self.scan_position = 0
        self.last = None

    def find_next(self, chunk: TextChunk, more_input: bool = False) -> MarkerSpan | None:
        """Return the next marker span, or ``None`` if the chunk holds no more.

        With ``more_input`` set, a match that runs into ``chunk.limit`` is not
        trusted: ``$`` matches at the limit, so the line may continue in the
        bytes not decoded yet. It is reported as no match and the scan stays
        at its start, which lets the caller carry over and decode more.
        """
        if self.scan_position > chunk.limit:
            return None
        match = self.pattern.search(chunk.text, self.scan_position, chunk.limit)
        if match is None:
            self.scan_position = chunk.limit
            return None
        if more_input and match.end() == chunk.limit:
            self.scan_position = match.start()
            return None
        span = MarkerSpan(match.start(), match.end())
        # zero-width markers must still make progress
        self.scan_position = span.end if span.end > span.start else span.end + 1
        self.last = span
        return span
