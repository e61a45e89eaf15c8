from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, TextIO

from mbox_splitter.chunk import RecordView


def _row(index: int, record: RecordView, drop_meta: bool) -> dict[str, Any]:
    """Copy ``record`` out of its chunk into a JSON-ready mapping."""
    base: dict[str, Any] = {"text": record.text}
    if drop_meta:
        return base
    return base | {"metadata": {"index": index, "marker": record.marker}}


def rows(records: Iterable[RecordView], drop_meta: bool = False) -> Iterator[dict[str, Any]]:
    """Materialise each record before the next one is requested."""
    return (_row(i, r, drop_meta) for i, r in enumerate(records))


def _serialize(items: Iterable[dict[str, Any]]) -> Iterator[str]:
    """Serialize dictionaries to JSON lines."""
    return (json.dumps(r, ensure_ascii=False) for r in items)


def _write_lines(handle: TextIO, lines: Iterable[str]) -> int:
    count = 0
    for line in lines:
        handle.write(f"{line}\n")
        count += 1
    return count


def write(records: Iterable[RecordView], path: str | Path | None, drop_meta: bool = False) -> int:
    """Write ``records`` as JSONL to ``path`` (stdout when ``None``); return the count."""
    lines = _serialize(rows(records, drop_meta))
    if path is None:
        return _write_lines(sys.stdout, lines)
    path_obj = Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)
    with path_obj.open("w", encoding="utf-8") as f:
        return _write_lines(f, lines)
