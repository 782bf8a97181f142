from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from benchdiff.domain import BenchmarkSuite, sorted_binaries
from benchdiff.errors import IOFailure
from benchdiff.io.layout import get_ref_paths

T = datetime(2024, 3, 1, 14, 5, 9, tzinfo=timezone.utc)


def _suite(tmp_path: Path, ref: str = "abc1234", subject: str = "kv: faster scans") -> BenchmarkSuite:
    return BenchmarkSuite(ref, subject, get_ref_paths(ref, tmp_path))


def test_output_log_is_written_and_rewound(tmp_path: Path) -> None:
    suite = _suite(tmp_path)
    path = suite.open_output_log(T)
    assert path == tmp_path / "abc1234" / "artifacts" / "out.2024-03-01T14_05_09Z"

    suite.output_log.write(b"first\n")
    suite.output_log.write(b"second\n")
    assert suite.rewind_log().read() == b"first\nsecond\n"
    suite.close()
    suite.close()


def test_output_log_of_a_concurrent_run_is_not_reused(tmp_path: Path) -> None:
    first = _suite(tmp_path)
    first.open_output_log(T)
    first.output_log.write(b"first\n")

    second = _suite(tmp_path)
    with pytest.raises(IOFailure, match="already exists"):
        second.open_output_log(T)
    assert second.output_log is None
    assert first.rewind_log().read() == b"first\n"
    first.close()


def test_previous_log_must_exist(tmp_path: Path) -> None:
    suite = _suite(tmp_path)
    with pytest.raises(IOFailure):
        suite.open_previous_log(T)
    with pytest.raises(IOFailure):
        suite.rewind_log()


def test_binaries_are_populated_once(tmp_path: Path) -> None:
    suite = _suite(tmp_path)
    with pytest.raises(RuntimeError):
        suite.binary_path("kv")

    suite.mark_built(tmp_path / "bin", ["kv", "sql"])
    assert suite.built
    assert suite.binary_path("kv") == tmp_path / "bin" / "kv"
    with pytest.raises(RuntimeError):
        suite.mark_built(tmp_path / "bin", ["kv"])


def test_intersect_and_run_order(tmp_path: Path) -> None:
    old = _suite(tmp_path, "old1234")
    new = _suite(tmp_path, "new1234")
    old.mark_built(tmp_path / "a", ["sql", "kv", "util"])
    new.mark_built(tmp_path / "b", ["kv", "sql", "server"])

    assert old.intersect(new) == new.intersect(old) == {"kv", "sql"}
    assert sorted_binaries(old.intersect(new)) == ["kv", "sql"]


def test_short_subject_is_truncated(tmp_path: Path) -> None:
    suite = _suite(tmp_path, subject="x" * 80)
    assert suite.short_subject() == "x" * 50
    assert suite.profile_path("mem") == tmp_path / "abc1234" / "artifacts" / "mem.prof"
