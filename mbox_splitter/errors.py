"""Exception taxonomy for mbox splitting."""

from __future__ import annotations


class SplitterError(Exception):
    """Base class for every error raised by :mod:`mbox_splitter`."""


class SourceUnavailableError(SplitterError, OSError):
    """The archive could not be opened or memory-mapped."""


class NoMarkersFoundError(SplitterError, ValueError):
    """The content holds no marker line, so it is not an mbox archive."""


class CharConversionError(SplitterError, UnicodeError):
    """Bytes could not be converted under the configured encoding."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class MalformedInputError(CharConversionError):
    """A byte sequence is not valid in the configured encoding."""


class UnmappableCharacterError(CharConversionError):
    """A byte sequence has no mapping to a character in the encoding."""


class RecordTooLargeError(SplitterError, ValueError):
    """A record does not fit into a single decoded chunk."""


class MarkerRelocationError(SplitterError, ValueError):
    """A carried-over marker line no longer matches at the start of the chunk."""


class StaleRecordError(SplitterError, RuntimeError):
    """A record view was read after its chunk had been refilled."""


class UnsupportedOperationError(SplitterError, NotImplementedError):
    """The record sequence is read-only."""
