from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))


@pytest.fixture
def write_mbox(tmp_path: Path) -> Callable[..., Path]:
    def _write(content: str | bytes, name: str = "archive.mbox", encoding: str = "utf-8") -> Path:
        target = tmp_path / name
        data = content.encode(encoding) if isinstance(content, str) else content
        target.write_bytes(data)
        return target

    return _write


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [k for k in os.environ if k.startswith("MBOX_SPLITTER__")]:
        monkeypatch.delenv(key)
