"""JSON and JSONL output helpers backed by orjson."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, BinaryIO

import orjson


def _dump_options(*, pretty: bool, sort_keys: bool) -> int:
    opts = orjson.OPT_INDENT_2 if pretty else 0
    if sort_keys:
        opts |= orjson.OPT_SORT_KEYS
    return opts


def dump_json(
    obj: Any, *, stream: BinaryIO | None = None, pretty: bool = True,
) -> None:
    """Write ``obj`` as JSON plus a trailing newline (stdout by default)."""
    out = stream if stream is not None else sys.stdout.buffer
    out.write(orjson.dumps(obj, option=_dump_options(pretty=pretty, sort_keys=False)))
    out.write(b"\n")
    out.flush()


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save ``obj`` to ``path`` with sorted keys, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(
        orjson.dumps(obj, option=_dump_options(pretty=pretty, sort_keys=True))
    )


def save_jsonl(records: list[dict[str, Any]], path: Path) -> None:
    """Save a list of dicts as a JSON Lines file. An empty list writes an empty file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_bytes(b"")
        return
    lines = [orjson.dumps(r) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n")
