"""Tests for scripts/prefix_sum.py."""
from __future__ import annotations

import io
import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from prefixdict.index import PrefixSumIndex
from scripts.prefix_sum import main, query_result, read_queries

ROOT = Path(__file__).resolve().parents[1]
SCRIPT = ROOT / "scripts" / "prefix_sum.py"

_DATA = "apple,3\napp,2\napplication,4\nbanana,5\n"


def _write_data(tmp_path: Path, text: str = _DATA) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(text, encoding="utf-8")
    return path


class TestQueryResult:
    def test_basic_row(self) -> None:
        index = PrefixSumIndex.build([("app", 2), ("apple", 3)])
        row = query_result(index, " app ")
        assert row == {
            "prefix": " app ",
            "normalized_prefix": "app",
            "sum": 5,
            "count": 2,
        }

    def test_matches(self) -> None:
        index = PrefixSumIndex.build([("app", 2), ("apple", 3), ("b", 1)])
        row = query_result(index, "appl", include_matches=True)
        assert row["matches"] == [{"key": "apple", "value": 3}]


class TestReadQueries:
    def test_file(self, tmp_path: Path) -> None:
        path = tmp_path / "q.txt"
        path.write_text("app\n\nba\n", encoding="utf-8")
        assert read_queries(str(path)) == ["app", "ba"]

    def test_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "stdin", io.StringIO("c\napp\n"))
        assert read_queries("-") == ["c", "app"]

    def test_whitespace_only_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "q.txt"
        path.write_text("app\n   \n\t\nba\n", encoding="utf-8")
        assert read_queries(str(path)) == ["app", "ba"]

    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_queries(str(tmp_path / "nope.txt"))


class TestMain:
    def test_report_file(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        out = tmp_path / "report.json"
        rc = main([
            "--data", str(data),
            "--prefix", "app", "--prefix", "appl", "--prefix", "ba",
            "--prefix", "c",
            "--output", str(out),
        ])
        assert rc == 0
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["keys"] == 4
        assert report["error_count"] == 0
        assert [r["sum"] for r in report["results"]] == [9, 7, 5, 0]

    def test_defaults_to_total(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        out = tmp_path / "report.json"
        assert main(["--data", str(data), "--output", str(out)]) == 0
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["results"] == [
            {"prefix": "", "normalized_prefix": "", "sum": 14, "count": 4}
        ]

    def test_stdout(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        data = _write_data(tmp_path)
        assert main(["--data", str(data), "--prefix", "app"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["results"][0]["sum"] == 9

    def test_errors_out(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path, _DATA + "broken\nkiwi,x\n")
        errors = tmp_path / "rejected.jsonl"
        out = tmp_path / "report.json"
        rc = main([
            "--data", str(data),
            "--on-error", "skip",
            "--errors-out", str(errors),
            "--output", str(out),
        ])
        assert rc == 0
        rows = [json.loads(line) for line in errors.read_text(encoding="utf-8").splitlines()]
        assert [r["line_number"] for r in rows] == [5, 6]
        assert json.loads(out.read_text(encoding="utf-8"))["error_count"] == 2

    def test_abort_policy_fails(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path, "a,1\nbroken\n")
        assert main(["--data", str(data), "--on-error", "abort"]) == 1

    def test_missing_data(self, tmp_path: Path) -> None:
        assert main(["--data", str(tmp_path / "none.csv")]) == 1

    def test_missing_queries(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        assert main(["--data", str(data), "--queries", str(tmp_path / "q.txt")]) == 1

    def test_undecodable_data_line_is_reported(self, tmp_path: Path) -> None:
        data = tmp_path / "data.csv"
        data.write_bytes(b"apple,3\ncaf\xe9,2\nbanana,5\n")
        errors = tmp_path / "rejected.jsonl"
        out = tmp_path / "report.json"
        rc = main([
            "--data", str(data),
            "--errors-out", str(errors),
            "--output", str(out),
        ])
        assert rc == 0
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["error_count"] == 1
        assert report["results"][0]["sum"] == 8
        rows = [json.loads(line) for line in errors.read_text(encoding="utf-8").splitlines()]
        assert rows[0]["line_number"] == 2

    def test_undecodable_data_line_aborts(self, tmp_path: Path) -> None:
        data = tmp_path / "data.csv"
        data.write_bytes(b"apple,3\ncaf\xe9,2\n")
        assert main(["--data", str(data), "--on-error", "abort"]) == 1

    def test_undecodable_queries(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        queries = tmp_path / "q.txt"
        queries.write_bytes(b"app\ncaf\xe9\n")
        assert main(["--data", str(data), "--queries", str(queries)]) == 1

    def test_whitespace_query_lines_add_no_rows(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        queries = tmp_path / "q.txt"
        queries.write_text("app\n   \n", encoding="utf-8")
        out = tmp_path / "report.json"
        assert main(["--data", str(data), "--queries", str(queries), "--output", str(out)]) == 0
        report = json.loads(out.read_text(encoding="utf-8"))
        assert [r["prefix"] for r in report["results"]] == ["app"]

    def test_bad_policy_is_usage_error(self, tmp_path: Path) -> None:
        data = _write_data(tmp_path)
        with pytest.raises(SystemExit) as excinfo:
            main(["--data", str(data), "--on-error", "ignore"])
        assert excinfo.value.code == 2


def test_script_smoke(tmp_path: Path) -> None:
    data = _write_data(tmp_path)
    queries = tmp_path / "q.txt"
    queries.write_text("app\n  ba  \nc\n", encoding="utf-8")
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        [str(ROOT / "src"), env.get("PYTHONPATH", "")]
    ).rstrip(os.pathsep)
    proc = subprocess.run(
        [
            sys.executable, str(SCRIPT),
            "--data", str(data),
            "--queries", str(queries),
            "--include-matches",
        ],
        cwd=str(ROOT),
        capture_output=True,
        text=True,
        check=False,
        env=env,
    )
    assert proc.returncode == 0, proc.stdout + proc.stderr
    report = json.loads(proc.stdout)
    sums = {r["normalized_prefix"]: r["sum"] for r in report["results"]}
    assert sums == {"app": 9, "ba": 5, "c": 0}
    assert report["results"][1]["matches"] == [{"key": "banana", "value": 5}]
