from . import emit_jsonl

__all__ = ["emit_jsonl"]
