from __future__ import annotations

import codecs
import os
import pathlib
import re
import warnings
from functools import reduce
from importlib import import_module
from typing import Any, Dict, Iterable, Mapping, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mbox_splitter.patterns import DEFAULT_FLAGS, FromLinePatterns, compile_marker, parse_flags

yaml = cast(Any, import_module("yaml"))

ENV_PREFIX = "MBOX_SPLITTER__"

# default max message size in chars: ~10M chars
DEFAULT_MAX_MESSAGE_SIZE = 10 * 1024 * 1024


class SplitterSpec(BaseModel):
    """Validated splitter configuration."""

    model_config = ConfigDict(frozen=True)

    encoding: str = "utf-8"
    marker_pattern: str = FromLinePatterns.DEFAULT
    flags: int = DEFAULT_FLAGS
    max_message_size: int = Field(default=DEFAULT_MAX_MESSAGE_SIZE, gt=0)

    @field_validator("encoding")
    @classmethod
    def known_encoding(cls, value: str) -> str:
        try:
            return codecs.lookup(value).name
        except LookupError as exc:
            raise ValueError(f"Unknown encoding: {value}") from exc

    @field_validator("flags", mode="before")
    @classmethod
    def coerce_flags(cls, value: Any) -> int:
        return parse_flags(value)

    @model_validator(mode="after")
    def pattern_compiles(self) -> SplitterSpec:
        compile_marker(self.marker_pattern, self.flags)
        return self

    def compile(self) -> re.Pattern[str]:
        """Return the compiled marker pattern."""
        return compile_marker(self.marker_pattern, self.flags)


def _read_yaml(path: str | os.PathLike | None) -> Dict[str, Any]:
    """Return a dict from YAML or {} if path is None/missing/empty."""
    if not path:
        return {}
    p = pathlib.Path(path)
    if not p.exists():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise TypeError("splitter config must contain a top-level mapping")
    return data


def _env_overrides(environ: Mapping[str, str] | None = None) -> Dict[str, Any]:
    """
    Map MBOX_SPLITTER__KEY=value -> {key: value} (key lower-cased).
    Values are YAML-coerced (so '42' becomes an int).
    """
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for k, v in env.items():
        if not k.startswith(ENV_PREFIX):
            continue
        try:
            val = yaml.safe_load(v)
        except yaml.YAMLError:
            val = v
        out[k[len(ENV_PREFIX) :].lower()] = val
    return out


def _drop_unknown(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Warn about and drop keys that are not ``SplitterSpec`` fields."""
    known = set(SplitterSpec.model_fields)
    unknown = [k for k in options if k not in known]
    if unknown:
        warnings.warn(
            f"Unknown splitter options: {', '.join(sorted(unknown))}",
            stacklevel=3,
        )
    return {k: v for k, v in options.items() if k in known}


def load_spec(
    path: str | os.PathLike | None = "mbox_splitter.yaml",
    overrides: Mapping[str, Any] | None = None,
) -> SplitterSpec:
    """Load YAML + env/CLI overrides into a validated SplitterSpec."""
    sources: Iterable[Mapping[str, Any]] = (
        d for d in (_read_yaml(path), _env_overrides(), overrides) if d
    )
    merged: Dict[str, Any] = reduce(lambda acc, d: {**acc, **d}, sources, {})
    return SplitterSpec.model_validate(_drop_unknown(merged))
