"""Immutable prefix-sum dictionary over string keys.

Keys are ordered by code point (Python's native ``str`` comparison). The
index keeps the keys in a sorted list alongside a cumulative-sum array, so
every prefix query reduces to two binary searches:

    lo = bisect_left(keys, prefix)
    hi = bisect_left(keys, upper_bound(prefix))   # or len(keys) if unbounded
    sum = cumulative[hi] - cumulative[lo]

Query strings are stripped of surrounding whitespace before matching
(see ``normalize_prefix``).
"""
from __future__ import annotations

import sys
from bisect import bisect_left
from collections.abc import Iterable, Iterator

# Largest code point a Python str can hold; it has no successor.
MAX_CHAR = chr(sys.maxunicode)


def normalize_prefix(prefix: str) -> str:
    """Strip leading/trailing whitespace from a query string."""
    return prefix.strip()


def upper_bound(prefix: str) -> str | None:
    """Smallest string strictly greater than every string starting with ``prefix``.

    Scans backward for the rightmost character that is not ``MAX_CHAR``,
    increments it by one code point, and drops everything after it.

    Returns:
        The exclusive upper key, or None when no finite bound exists
        (empty prefix, or a prefix made only of ``MAX_CHAR``).
    """
    for pos in range(len(prefix) - 1, -1, -1):
        ch = prefix[pos]
        if ch != MAX_CHAR:
            return prefix[:pos] + chr(ord(ch) + 1)
    return None


class PrefixSumIndex:
    """Read-only ordered map of str -> int answering prefix-sum queries.

    Built once from (key, value) pairs; duplicate keys keep the last value.
    Nothing mutates the index after ``__init__`` returns, so it can be shared
    freely between threads.
    """

    __slots__ = ("_keys", "_values", "_cumulative")

    def __init__(self, entries: Iterable[tuple[str, int]] = ()) -> None:
        latest: dict[str, int] = {}
        for key, value in entries:
            latest[key] = value

        self._keys: list[str] = sorted(latest)
        self._values: list[int] = [latest[k] for k in self._keys]

        running = 0
        cumulative = [0]
        for value in self._values:
            running += value
            cumulative.append(running)
        self._cumulative: list[int] = cumulative

    @classmethod
    def build(cls, entries: Iterable[tuple[str, int]]) -> PrefixSumIndex:
        """Build an index from a possibly unordered stream of pairs."""
        return cls(entries)

    # ── Public API: prefix queries ─────────────────────────────

    def key_range(self, prefix: str) -> tuple[int, int]:
        """Positional half-open range ``[lo, hi)`` of keys starting with ``prefix``.

        ``prefix`` is normalized first. An empty range has ``lo == hi``.
        """
        prefix = normalize_prefix(prefix)
        lo = bisect_left(self._keys, prefix)
        bound = upper_bound(prefix)
        if bound is None:
            hi = len(self._keys)
        else:
            hi = bisect_left(self._keys, bound, lo)
        return lo, hi

    def sum(self, prefix: str) -> int:
        """Sum of the values of every key that starts with ``prefix``.

        Returns 0 when nothing matches, including on an empty index.
        """
        lo, hi = self.key_range(prefix)
        return self._cumulative[hi] - self._cumulative[lo]

    def count(self, prefix: str = "") -> int:
        """Number of keys that start with ``prefix``."""
        lo, hi = self.key_range(prefix)
        return hi - lo

    def items(self, prefix: str = "") -> list[tuple[str, int]]:
        """Matching (key, value) entries in key order."""
        lo, hi = self.key_range(prefix)
        return list(zip(self._keys[lo:hi], self._values[lo:hi]))

    # ── Public API: introspection ──────────────────────────────

    def keys(self) -> list[str]:
        """All keys in ascending order."""
        return list(self._keys)

    @property
    def total(self) -> int:
        """Sum of every value in the index."""
        return self._cumulative[-1]

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._keys))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        pos = bisect_left(self._keys, key)
        return pos < len(self._keys) and self._keys[pos] == key

    def __repr__(self) -> str:
        return f"PrefixSumIndex(keys={len(self._keys)}, total={self.total})"
