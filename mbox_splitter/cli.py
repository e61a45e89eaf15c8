from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import typer

from mbox_splitter.adapters import emit_jsonl
from mbox_splitter.config import load_spec
from mbox_splitter.splitter import MboxSplitter


def _exit_with_error(exc: Exception) -> None:
    """Print ``exc`` to stderr and exit with status 1."""
    print(f"error: {exc}", file=sys.stderr)
    raise typer.Exit(1)


def _safe(func: Callable[[], None]) -> None:
    """Invoke ``func`` and exit non-zero on any library or I/O error."""
    try:
        func()
    except (OSError, ValueError, UnicodeError, TypeError) as exc:
        _exit_with_error(exc)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _cli_overrides(
    encoding: str | None,
    pattern: str | None,
    max_message_size: int | None,
) -> dict[str, Any]:
    return {
        k: v
        for k, v in {
            "encoding": encoding,
            "marker_pattern": pattern,
            "max_message_size": max_message_size,
        }.items()
        if v is not None
    }


def _open(
    input_path: Path,
    spec: str,
    encoding: str | None,
    pattern: str | None,
    max_message_size: int | None,
) -> MboxSplitter:
    s = load_spec(spec, overrides=_cli_overrides(encoding, pattern, max_message_size))
    return MboxSplitter.from_file(input_path, s)


def _run_split(
    out: Path | None,
    no_metadata: bool,
    opener: Callable[[], MboxSplitter],
) -> None:
    with opener() as records:
        count = emit_jsonl.write(records, out, drop_meta=no_metadata)
    print(f"split: {count} records", file=sys.stderr)


def _run_count(opener: Callable[[], MboxSplitter]) -> None:
    with opener() as records:
        print(sum(1 for _ in records))


app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.command()
def split(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    out: Path | None = typer.Option(None, "--out"),
    no_metadata: bool = typer.Option(False, "--no-metadata"),
    spec: str = typer.Option("mbox_splitter.yaml", "--spec"),
    encoding: str | None = typer.Option(None, "--encoding"),
    pattern: str | None = typer.Option(None, "--pattern"),
    max_message_size: int | None = typer.Option(None, "--max-message-size", min=1),
    verbose: bool = typer.Option(False, "--verbose"),
) -> None:
    """Write each record of INPUT_PATH as a JSON line."""
    _configure_logging(verbose)
    _safe(
        lambda: _run_split(
            out,
            no_metadata,
            lambda: _open(input_path, spec, encoding, pattern, max_message_size),
        )
    )


@app.command()
def count(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    spec: str = typer.Option("mbox_splitter.yaml", "--spec"),
    encoding: str | None = typer.Option(None, "--encoding"),
    pattern: str | None = typer.Option(None, "--pattern"),
    max_message_size: int | None = typer.Option(None, "--max-message-size", min=1),
    verbose: bool = typer.Option(False, "--verbose"),
) -> None:
    """Print the number of records in INPUT_PATH."""
    _configure_logging(verbose)
    _safe(lambda: _run_count(lambda: _open(input_path, spec, encoding, pattern, max_message_size)))


if __name__ == "__main__":
    app()
