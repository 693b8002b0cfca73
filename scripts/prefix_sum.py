#!/usr/bin/env python3
"""Answer prefix-sum queries against a ``key,value`` data file.

Loads the data file into a PrefixSumIndex and prints a JSON report to stdout
with one result per prefix. Log lines go to stderr. When no prefix is given
the empty prefix is queried, which reports the total of all values.

Usage:
    python3 scripts/prefix_sum.py --data data.csv --prefix app --prefix ba
    python3 scripts/prefix_sum.py --data data.csv --queries prefixes.txt \
      --on-error skip --errors-out rejected.jsonl --output report.json
    printf 'app\\nba\\n' | python3 scripts/prefix_sum.py --data data.csv --queries -
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from prefixdict.index import PrefixSumIndex, normalize_prefix
from prefixdict.io_utils import dump_json, save_json, save_jsonl
from prefixdict.loader import ERROR_POLICIES, RecordLoadError, load_index

log = logging.getLogger("prefix_sum")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sum the values of all keys that start with each prefix."
    )
    parser.add_argument(
        "--data", required=True, type=Path, help="Path to key,value data file"
    )
    parser.add_argument(
        "--prefix",
        action="append",
        default=[],
        help="Prefix to query (repeatable)",
    )
    parser.add_argument(
        "--queries",
        default=None,
        help="File with one prefix per line, or '-' for stdin",
    )
    parser.add_argument(
        "--on-error",
        choices=ERROR_POLICIES,
        default="report",
        help="How to handle malformed data lines (default: report)",
    )
    parser.add_argument(
        "--errors-out",
        type=Path,
        default=None,
        help="Write rejected data lines to this JSONL file",
    )
    parser.add_argument(
        "--include-matches",
        action="store_true",
        help="Include the matching key/value entries in each result",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON report to this file instead of stdout",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose logging"
    )
    return parser


def read_queries(source: str) -> list[str]:
    """Read prefixes, one per line. Blank and whitespace-only lines are ignored."""
    if source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Queries file not found: {path}")
        lines = path.read_text(encoding="utf-8").splitlines()
    return [line for line in lines if line.strip()]


def query_result(
    index: PrefixSumIndex, prefix: str, *, include_matches: bool = False,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "prefix": prefix,
        "normalized_prefix": normalize_prefix(prefix),
        "sum": index.sum(prefix),
        "count": index.count(prefix),
    }
    if include_matches:
        row["matches"] = [
            {"key": key, "value": value} for key, value in index.items(prefix)
        ]
    return row


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    prefixes: list[str] = list(args.prefix)
    if args.queries is not None:
        try:
            prefixes.extend(read_queries(args.queries))
        except FileNotFoundError as exc:
            log.error("%s", exc)
            return 1
        except UnicodeDecodeError as exc:
            log.error("Queries are not valid UTF-8 (%s): %s", args.queries, exc)
            return 1
    if not prefixes:
        prefixes = [""]

    try:
        loaded = load_index(args.data, on_error=args.on_error)
    except FileNotFoundError as exc:
        log.error("%s", exc)
        return 1
    except RecordLoadError as exc:
        log.error("Aborted: %s", exc)
        return 1

    if args.errors_out is not None:
        save_jsonl([err.to_dict() for err in loaded.errors], args.errors_out)
        log.info("Wrote %d rejected lines to %s", len(loaded.errors), args.errors_out)

    index = loaded.index
    results = [
        query_result(index, prefix, include_matches=args.include_matches)
        for prefix in prefixes
    ]
    report = {
        "source": loaded.source,
        "keys": len(index),
        "records_read": loaded.records_read,
        "error_count": len(loaded.errors),
        "results": results,
    }
    log.info("Answered %d prefix queries over %d keys", len(results), len(index))

    if args.output is not None:
        save_json(report, args.output)
        log.info("Report written to %s", args.output)
    else:
        dump_json(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
