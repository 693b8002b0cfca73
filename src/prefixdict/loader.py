"""Build a PrefixSumIndex from ``key,value`` lines or a CSV-style file.

Bad lines are handled according to an explicit ``ErrorPolicy``:

    abort   raise RecordLoadError on the first bad line
    skip    drop bad lines quietly (DEBUG log only)
    report  drop bad lines and log each one at WARNING

Under ``skip`` and ``report`` the rejected lines come back in
``LoadResult.errors`` so callers can act on them.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, get_args

from prefixdict.index import PrefixSumIndex
from prefixdict.records import KeyValueRecord, RecordError, parse_records

log = logging.getLogger(__name__)

ErrorPolicy = Literal["abort", "skip", "report"]
ERROR_POLICIES: tuple[str, ...] = get_args(ErrorPolicy)


class RecordLoadError(ValueError):
    """Raised under the ``abort`` policy when an input line is malformed."""

    def __init__(self, error: RecordError, source: str) -> None:
        super().__init__(
            f"{source}:{error.line_number}: {error.reason} ({error.line!r})"
        )
        self.error = error
        self.source = source


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of a load: the built index plus per-line bookkeeping."""

    index: PrefixSumIndex
    records_read: int
    errors: tuple[RecordError, ...]
    source: str

    @property
    def duplicate_keys(self) -> int:
        """Records that overwrote an earlier value for the same key."""
        return self.records_read - len(self.index)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_index_from_lines(
    lines: Iterable[str | bytes],
    *,
    on_error: ErrorPolicy = "report",
    source: str = "<lines>",
    encoding: str = "utf-8",
) -> LoadResult:
    """Parse ``lines`` and build an index from the valid records.

    Args:
        lines: Raw input lines (terminators allowed). Bytes lines are
            decoded one at a time; undecodable ones count as bad lines.
        on_error: What to do with malformed lines.
        source: Label used in log messages and errors (usually a path).
        encoding: Codec for bytes lines.

    Returns:
        LoadResult with the index and any rejected lines.

    Raises:
        RecordLoadError: A bad line was seen under the ``abort`` policy.
        ValueError: ``on_error`` is not a known policy.
    """
    if on_error not in ERROR_POLICIES:
        raise ValueError(
            f"Unknown error policy {on_error!r}; expected one of {ERROR_POLICIES}"
        )

    pairs: list[tuple[str, int]] = []
    errors: list[RecordError] = []
    for parsed in parse_records(lines, encoding=encoding):
        if isinstance(parsed, KeyValueRecord):
            pairs.append(parsed.as_pair())
            continue
        if on_error == "abort":
            raise RecordLoadError(parsed, source)
        errors.append(parsed)
        if on_error == "report":
            log.warning(
                "%s:%d: skipping line: %s", source, parsed.line_number, parsed.reason
            )
        else:
            log.debug(
                "%s:%d: skipping line: %s", source, parsed.line_number, parsed.reason
            )

    index = PrefixSumIndex.build(pairs)
    log.info(
        "Loaded %d records (%d keys) from %s, %d rejected",
        len(pairs), len(index), source, len(errors),
    )
    return LoadResult(
        index=index,
        records_read=len(pairs),
        errors=tuple(errors),
        source=source,
    )


def load_index(
    path: Path,
    *,
    on_error: ErrorPolicy = "report",
    encoding: str = "utf-8-sig",
) -> LoadResult:
    """Load an index from a ``key,value`` file.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        RecordLoadError: A bad line was seen under the ``abort`` policy.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    with path.open("rb") as handle:
        return load_index_from_lines(
            handle, on_error=on_error, source=str(path), encoding=encoding,
        )
