from __future__ import annotations

import codecs
import logging
from enum import Enum

from mbox_splitter.chunk import TextChunk
from mbox_splitter.source import ByteSource

logger = logging.getLogger(__name__)

_UNMAPPABLE_HINTS = ("maps to <undefined>", "unmappable")


class DecodeOutcome(Enum):
    COMPLETE = "complete"  # chunk full, bytes remain
    UNDERFLOW = "underflow"  # every available byte consumed
    MALFORMED = "malformed"
    UNMAPPABLE = "unmappable"

    @property
    def is_error(self) -> bool:
        return self in (DecodeOutcome.MALFORMED, DecodeOutcome.UNMAPPABLE)


def _classify(exc: UnicodeDecodeError) -> DecodeOutcome:
    reason = (exc.reason or "").lower()
    if any(hint in reason for hint in _UNMAPPABLE_HINTS):
        return DecodeOutcome.UNMAPPABLE
    return DecodeOutcome.MALFORMED


class Decoder:
    """Stateful incremental decoder filling a :class:`TextChunk` from a source.

    Slices of at most ``chunk.free`` bytes are fed to the codec, so a batch can
    never overflow the chunk: every supported codec yields at most one
    character per byte. Partial multi-byte sequences at a slice boundary stay
    buffered inside the codec until the next slice arrives.
    """

    def __init__(self, encoding: str) -> None:
        self.encoding = codecs.lookup(encoding).name
        self._codec = codecs.getincrementaldecoder(self.encoding)(errors="strict")
        self.error: UnicodeDecodeError | None = None
        self.error_offset: int | None = None

    def decode(self, source: ByteSource, chunk: TextChunk, is_final: bool) -> DecodeOutcome:
        """Decode into ``chunk[limit:capacity]`` and flip it for reading.

        ``is_final`` is the caller's end-of-input estimate and only feeds the
        batch log. The codec is told the input ended on whichever slice
        drains ``source``: multi-byte text can run the source dry before the
        estimate turns true, and a truncated trailing sequence must be
        reported instead of held back.
        """
        parts: list[str] = []
        free = chunk.free
        consumed = 0
        outcome = DecodeOutcome.COMPLETE
        while free > 0 and source.remaining > 0:
            raw = source.read(free)
            if not raw:
                break
            try:
                text = self._codec.decode(raw, final=source.remaining == 0)
            except UnicodeDecodeError as exc:
                self.error = exc
                self.error_offset = consumed + exc.start
                outcome = _classify(exc)
                break
            consumed += len(raw)
            parts.append(text)
            free -= len(text)
        chunk.write(*parts)
        chunk.flip()
        if outcome.is_error:
            logger.debug("decode failed after %d bytes: %s", consumed, self.error)
            return outcome
        if source.remaining == 0:
            outcome = DecodeOutcome.UNDERFLOW
        logger.debug(
            "decoded %d bytes into %d chars, %d bytes remaining (%s, final=%s)",
            consumed,
            sum(len(p) for p in parts),
            source.remaining,
            outcome.value,
            is_final,
        )
        return outcome
