"""Line-oriented ``key,value`` record parsing.

Each input line yields either a ``KeyValueRecord`` or a ``RecordError``;
nothing here raises on bad data. Deciding whether a bad line aborts a load,
is skipped, or is reported belongs to the caller (see ``prefixdict.loader``).

Format per line:
  - fields separated by ``,``; the first is the key, the second the value
  - surrounding whitespace on either field is ignored
  - any fields after the second are ignored
  - the value is a base-10 signed 32-bit integer
  - blank lines are skipped
  - a raw (bytes) line that does not decode is rejected on its own
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True, slots=True)
class KeyValueRecord:
    """A validated (key, value) pair and the line it came from."""

    line_number: int
    key: str
    value: int

    def as_pair(self) -> tuple[str, int]:
        return self.key, self.value


@dataclass(frozen=True, slots=True)
class RecordError:
    """A rejected input line."""

    line_number: int
    line: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_number": self.line_number,
            "line": self.line,
            "reason": self.reason,
        }


ParsedLine = KeyValueRecord | RecordError


def in_int32_range(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def parse_value(raw: str) -> int | None:
    """Parse a 32-bit signed integer field. None if malformed or out of range."""
    if not _INT_RE.fullmatch(raw):
        return None
    value = int(raw)
    return value if in_int32_range(value) else None


def parse_record_line(line: str, line_number: int) -> ParsedLine:
    """Parse one ``key,value`` line.

    Args:
        line: Raw line text without its terminator.
        line_number: 1-based position in the source, carried into the result.

    Returns:
        KeyValueRecord on success, RecordError describing the first problem
        otherwise.
    """
    fields = line.split(",")
    if len(fields) < 2:
        return RecordError(line_number, line, "missing value field")

    key = fields[0].strip()
    raw_value = fields[1].strip()
    if not _INT_RE.fullmatch(raw_value):
        return RecordError(
            line_number, line, f"value is not an integer: {raw_value!r}"
        )
    value = int(raw_value)
    if not in_int32_range(value):
        return RecordError(
            line_number, line, f"value out of 32-bit range: {raw_value}"
        )
    return KeyValueRecord(line_number, key, value)


def parse_records(
    lines: Iterable[str | bytes], *, encoding: str = "utf-8",
) -> Iterator[ParsedLine]:
    """Parse a stream of lines, numbering from 1. Blank lines yield nothing.

    ``bytes`` lines are decoded with ``encoding``; a line that fails to
    decode becomes a RecordError and the rest of the stream is still read.
    """
    for line_number, raw in enumerate(lines, start=1):
        if isinstance(raw, bytes):
            try:
                raw = raw.decode(encoding)
            except UnicodeDecodeError as exc:
                text = raw.decode(encoding, errors="replace").rstrip("\r\n")
                yield RecordError(
                    line_number, text, f"undecodable bytes: {exc.reason}"
                )
                continue
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        yield parse_record_line(line, line_number)
