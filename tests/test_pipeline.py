import io
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Sequence

from benchdiff.errors import IOFailure, InvalidRef, ThresholdViolation
from benchdiff.io.layout import format_run_timestamp
from pipeline.models import CompareRequest
from pipeline.orchestrator import Orchestrator
from pipeline.pipeline import BenchdiffPipeline
from tests.fakes import FakeBackend, FakeGitRepo, RecordingRunner

STARTED_AT = datetime(2024, 3, 1, 14, 5, 9, tzinfo=timezone.utc)

OLD = "0123456789abcdef0123456789abcdef01234567"
NEW = "fedcba9876543210fedcba9876543210fedcba98"

PKGS = ["github.com/org/repo/pkg/kv", "github.com/org/repo/pkg/sql"]


class TestBenchdiffPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.git = FakeGitRepo(
            {OLD: (None, "storage: add block cache", False), NEW: (OLD, "storage: bigger blocks", False)},
            NEW,
            branch="main",
        )
        self.backends: List[FakeBackend] = []
        self.runner = RecordingRunner(ns_per_op={"0123456": 100.0, "fedcba9": 200.0})
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.runs_started = 0

    def tearDown(self) -> None:
        self._td.cleanup()

    def _clock(self) -> datetime:
        # Each run gets its own minute so output logs never collide.
        started_at = STARTED_AT + timedelta(minutes=self.runs_started)
        self.runs_started += 1
        return started_at

    def _backend(self, name: str) -> FakeBackend:
        backend = FakeBackend()
        self.backends.append(backend)
        return backend

    def _expand(self, patterns: Sequence[str]) -> List[str]:
        return list(PKGS)

    def _pipeline(self) -> BenchdiffPipeline:
        return BenchdiffPipeline(
            git=self.git,
            backend_factory=self._backend,
            expand=self._expand,
            orchestrator=Orchestrator(
                runner=self.runner, probe=lambda _p: False, err=self.err, progress_interval=0.01
            ),
            out=self.out,
            err=self.err,
            clock=self._clock,
            progress_interval=0.01,
        )

    def _request(self, **kwargs) -> CompareRequest:
        base = dict(packages=("./pkg/...",), iterations=5, root=self.root)
        base.update(kwargs)
        return CompareRequest(**base)

    def test_compare_builds_runs_and_reports(self) -> None:
        pipeline = self._pipeline()
        tables = pipeline.compare(self._request(profiles=("cpu",)))

        self.assertEqual(["time/op", "alloc/op", "allocs/op"], [t.metric for t in tables])
        row = tables[0].rows[0]
        self.assertEqual("Work-8", row.benchmark)
        self.assertTrue(row.delta.startswith("+"))
        self.assertEqual(2 * 2 * 5, pipeline.last_run.invocations)
        self.assertEqual(["org_repo_pkg_kv", "org_repo_pkg_sql"], pipeline.last_run.binaries)

        # The working tree is handed back to the user's branch.
        self.assertEqual(
            [("0123456", None), ("fedcba9", None), ("main", None)], self.git.checkouts
        )

        text = self.out.getvalue()
        self.assertIn("old time/op", text)
        self.assertIn("Work-8", text)
        self.assertIn("wrote cpu profiles to:", text)
        stamp = format_run_timestamp(STARTED_AT)
        self.assertTrue((self.root / "0123456" / "artifacts" / f"out.{stamp}").exists())
        self.assertTrue((self.root / "fedcba9" / "artifacts" / f"out.{stamp}").exists())

    def test_alpha_from_request_decides_significance(self) -> None:
        # Four fully separated samples per side: p is just under 0.03.
        strict = self._pipeline().compare(self._request(iterations=2, alpha=0.01))
        lenient = self._pipeline().compare(self._request(iterations=2))

        self.assertEqual("~", strict[0].rows[0].delta)
        self.assertTrue(lenient[0].rows[0].delta.startswith("+"))
        self.assertLess(0.01, strict[0].rows[0].p_value)
        self.assertLess(strict[0].rows[0].p_value, 0.05)

    def test_run_enforces_threshold(self) -> None:
        with self.assertRaises(ThresholdViolation) as ctx:
            self._pipeline().run(self._request(threshold=0.2))
        self.assertIn("time/op regression in Work-8", str(ctx.exception))
        self.assertIn("exceeded threshold of 20.00%", str(ctx.exception))

    def test_run_passes_with_generous_threshold(self) -> None:
        self.assertEqual(0, self._pipeline().run(self._request(threshold=5.0)))
        self.assertEqual(0, self._pipeline().run(self._request()))

    def test_second_run_reuses_cached_binaries(self) -> None:
        self._pipeline().compare(self._request())
        self.git.checkouts.clear()

        self._pipeline().compare(self._request())

        self.assertEqual([], self.backends[-1].built)
        self.assertEqual([("main", None)], self.git.checkouts)
        self.assertIn("test binaries already exist for 0123456", self.err.getvalue())

    def test_previous_run_is_reprocessed_without_building(self) -> None:
        first = self._pipeline()
        expected = first.compare(self._request())
        invocations = len(self.runner.invocations)
        self.out.truncate(0)
        self.out.seek(0)

        replay = self._pipeline()
        backends_before = len(self.backends)
        tables = replay.compare(self._request(previous_run=format_run_timestamp(STARTED_AT)))

        self.assertEqual(backends_before, len(self.backends))
        self.assertEqual(invocations, len(self.runner.invocations))
        self.assertIsNone(replay.last_run)
        self.assertEqual([t.metric for t in expected], [t.metric for t in tables])
        self.assertEqual(expected[0].rows[0].delta, tables[0].rows[0].delta)
        self.assertIn("Found previous run; old=", self.err.getvalue())
        self.assertIn("Work-8", self.out.getvalue())

    def test_missing_previous_run_is_an_io_failure(self) -> None:
        with self.assertRaises(IOFailure):
            self._pipeline().compare(self._request(previous_run="2020-01-01T00_00_00Z"))

    def test_invalid_ref_stops_before_building(self) -> None:
        with self.assertRaises(InvalidRef):
            self._pipeline().compare(self._request(old_ref="nope"))
        self.assertEqual([], self.backends)
        self.assertEqual([], self.git.checkouts)


if __name__ == "__main__":
    unittest.main()
