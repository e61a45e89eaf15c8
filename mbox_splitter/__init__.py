from mbox_splitter.chunk import MarkerSpan, RecordView, TextChunk
from mbox_splitter.config import SplitterSpec, load_spec
from mbox_splitter.errors import (
    CharConversionError,
    MalformedInputError,
    MarkerRelocationError,
    NoMarkersFoundError,
    RecordTooLargeError,
    SourceUnavailableError,
    SplitterError,
    StaleRecordError,
    UnmappableCharacterError,
    UnsupportedOperationError,
)
from mbox_splitter.patterns import FromLinePatterns
from mbox_splitter.splitter import MboxSplitter, iter_records

__all__ = [
    "CharConversionError",
    "FromLinePatterns",
    "MalformedInputError",
    "MarkerRelocationError",
    "MarkerSpan",
    "MboxSplitter",
    "NoMarkersFoundError",
    "RecordTooLargeError",
    "RecordView",
    "SourceUnavailableError",
    "SplitterError",
    "SplitterSpec",
    "StaleRecordError",
    "TextChunk",
    "UnmappableCharacterError",
    "UnsupportedOperationError",
    "iter_records",
    "load_spec",
]
