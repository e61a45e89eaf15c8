from __future__ import annotations

import pytest

from mbox_splitter.errors import (
    MalformedInputError,
    MarkerRelocationError,
    NoMarkersFoundError,
    RecordTooLargeError,
    SourceUnavailableError,
    StaleRecordError,
    UnmappableCharacterError,
    UnsupportedOperationError,
)
from mbox_splitter.patterns import FromLinePatterns
from mbox_splitter.source import BytesSource
from mbox_splitter.splitter import MboxSplitter, iter_records
from tests.utils.mbox import START_PATTERN, TWO_RECORDS, split_bytes, start_spec, texts


def test_two_records_split_on_marker_lines() -> None:
    assert texts(split_bytes(TWO_RECORDS.encode())) == ["body one\n", "body two\n"]


def test_content_without_markers_is_rejected() -> None:
    source = BytesSource(b"just some text\nwith no markers\n")
    with pytest.raises(NoMarkersFoundError):
        MboxSplitter(source, start_spec())
    assert source.closed


def test_empty_content_is_rejected() -> None:
    with pytest.raises(NoMarkersFoundError):
        split_bytes(b"")


def test_small_chunks_yield_the_same_records() -> None:
    splitter = split_bytes(TWO_RECORDS.encode(), max_message_size=30)
    assert texts(splitter) == ["body one\n", "body two\n"]


def test_last_marker_without_trailing_newline() -> None:
    records = texts(split_bytes(b"START id1\nbody one\nSTART id2"))
    assert records == ["body one\n", ""]


def test_final_record_without_trailing_newline_spans_to_end() -> None:
    records = texts(split_bytes(b"START id1\nbody one\nSTART id2\nbody two"))
    assert records == ["body one\n", "body two"]


def test_single_marker_line_yields_one_empty_record() -> None:
    assert texts(split_bytes(b"START only\n")) == [""]


def test_adjacent_markers_yield_empty_record() -> None:
    assert texts(split_bytes(b"START 1\nSTART 2\nbody\n")) == ["", "body\n"]


def test_preamble_before_first_marker_is_skipped() -> None:
    records = texts(split_bytes(b"preamble line\n\nSTART 1\nbody\n"))
    assert records == ["body\n"]


def test_preamble_longer_than_a_chunk_is_skipped() -> None:
    preamble = b"".join(b"noise line %d\n" % i for i in range(20))
    records = texts(split_bytes(preamble + TWO_RECORDS.encode(), max_message_size=32))
    assert records == ["body one\n", "body two\n"]


def test_marker_like_text_inside_a_line_is_not_a_boundary() -> None:
    data = b"START 1\nquoted: START 2 inside\nSTART 3\nlast\n"
    assert texts(split_bytes(data)) == ["quoted: START 2 inside\n", "last\n"]


def test_malformed_bytes_in_later_batch_fail_on_that_record() -> None:
    data = b"START 1\nbody one\nSTART 2\n" + b"a" * 20 + b"\xff\nSTART 3\nbody three\n"
    splitter = split_bytes(data, max_message_size=32)
    first = next(splitter)
    assert str(first) == "body one\n"
    with pytest.raises(MalformedInputError) as excinfo:
        next(splitter)
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
    assert list(splitter) == []
    assert splitter.closed


def test_malformed_bytes_in_first_batch_fail_construction() -> None:
    with pytest.raises(MalformedInputError):
        split_bytes(b"START 1\n\xff\xfe\n")


def test_truncated_multibyte_sequence_at_end_is_malformed() -> None:
    with pytest.raises(MalformedInputError):
        split_bytes(b"START 1\nbody \xc3")


def test_truncated_tail_is_malformed_when_chunk_is_smaller_than_the_bytes() -> None:
    data = b"START 1\n" + "日".encode() + b"\xe6"
    assert len("START 1\n日") < 10 < len(data)
    with pytest.raises(MalformedInputError):
        split_bytes(data, max_message_size=10)


def test_truncated_tail_in_a_later_batch_is_malformed() -> None:
    data = ("START 1\nbody one\nSTART 2\n" + "日" * 20).encode() + b"\xe6\x97"
    splitter = split_bytes(data, max_message_size=32)
    assert str(next(splitter)) == "body one\n"
    with pytest.raises(MalformedInputError):
        next(splitter)
    assert splitter.closed


def test_marker_that_only_matches_after_a_newline_cannot_be_carried_over() -> None:
    data = b"\nSTART 1\nbody one\nSTART 2\nbody two\nSTART 3\nthree\n"
    splitter = split_bytes(data, marker_pattern=r"(?<=\n)START \d$", max_message_size=32)
    assert str(next(splitter)) == "body one\n"
    with pytest.raises(MarkerRelocationError) as excinfo:
        next(splitter)
    assert isinstance(excinfo.value, ValueError)
    assert splitter.closed


def test_unmappable_bytes_are_reported() -> None:
    with pytest.raises(UnmappableCharacterError):
        split_bytes(b"START 1\nbody \x81\n", encoding="cp1252")


def test_record_larger_than_a_chunk_is_an_error() -> None:
    data = b"START 1\n" + b"x" * 100 + b"\nSTART 2\nend\n"
    splitter = split_bytes(data, max_message_size=40)
    with pytest.raises(RecordTooLargeError):
        next(splitter)
    assert splitter.closed
    assert list(splitter) == []


def test_has_next_is_idempotent() -> None:
    splitter = split_bytes(TWO_RECORDS.encode())
    assert all(splitter.has_next() for _ in range(5))
    assert str(next(splitter)) == "body one\n"
    assert splitter.has_next() and splitter.has_next()
    assert str(next(splitter)) == "body two\n"
    assert not splitter.has_next()
    assert not splitter.has_next()
    assert splitter.records_emitted == 2


def test_source_released_once_exhausted() -> None:
    source = BytesSource(TWO_RECORDS.encode())
    splitter = MboxSplitter(source, start_spec())
    next(splitter)
    assert not source.closed
    next(splitter)
    assert source.closed
    with pytest.raises(StopIteration):
        next(splitter)


def test_close_is_idempotent_and_stops_nothing_already_decoded() -> None:
    source = BytesSource(TWO_RECORDS.encode())
    with MboxSplitter(source, start_spec()) as splitter:
        next(splitter)
    assert source.closed and splitter.closed
    splitter.close()
    assert splitter.closed


def test_sequence_is_single_pass() -> None:
    splitter = split_bytes(TWO_RECORDS.encode())
    assert iter(splitter) is splitter
    assert len(texts(splitter)) == 2
    assert texts(splitter) == []


def test_remove_is_unsupported() -> None:
    splitter = split_bytes(TWO_RECORDS.encode())
    with pytest.raises(UnsupportedOperationError):
        splitter.remove()


def test_views_share_the_chunk_until_refill() -> None:
    data = b"START 1\nbody one\nSTART 2\nbody two\nSTART 3\nbody three\n"
    splitter = split_bytes(data, max_message_size=32)
    first = next(splitter)
    assert first == "body one\n"
    second = next(splitter)
    assert first.is_stale
    with pytest.raises(StaleRecordError):
        str(first)
    assert second == "body two\n"


def test_views_expose_their_marker_line() -> None:
    records = [(r.marker, str(r)) for r in split_bytes(TWO_RECORDS.encode())]
    assert records == [("START id1", "body one\n"), ("START id2", "body two\n")]


def test_from_file_maps_the_archive(write_mbox) -> None:
    path = write_mbox(TWO_RECORDS)
    with MboxSplitter.from_file(path, marker_pattern=START_PATTERN) as splitter:
        assert texts(splitter) == ["body one\n", "body two\n"]


def test_from_file_with_default_from_lines(write_mbox) -> None:
    path = write_mbox(
        "From alice@example.org Fri Sep 09 14:04:52 2011\n"
        "Subject: one\n\nhello\n"
        "From bob@example.org Sat Sep 10 09:00:00 2011\n"
        "Subject: two\n\n>From the archive\n"
    )
    records = list(iter_records(path))
    assert records == ["Subject: one\n\nhello\n", "Subject: two\n\n>From the archive\n"]


def test_mailer_daemon_lines_need_the_relaxed_pattern(write_mbox) -> None:
    path = write_mbox(
        "From MAILER-DAEMON Wed Oct 05 21:54:09 2011\nbounce\n"
        "From carol@example.org Wed Oct 05 22:00:00 2011\nreply\n"
    )
    assert list(iter_records(path, marker_pattern=FromLinePatterns.DEFAULT2)) == [
        "bounce\n",
        "reply\n",
    ]
    assert list(iter_records(path)) == ["reply\n"]


def test_missing_file_is_source_unavailable(tmp_path) -> None:
    with pytest.raises(SourceUnavailableError):
        MboxSplitter.from_file(tmp_path / "missing.mbox")


def test_empty_file_has_no_markers(write_mbox) -> None:
    path = write_mbox(b"")
    with pytest.raises(NoMarkersFoundError):
        MboxSplitter.from_file(path)
