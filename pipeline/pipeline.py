"""pipeline.pipeline

A single, high-level object representing this repo's primary capability:
compare the benchmarks of two refs.

Flow
----
RefResolver -> SuiteBuilder(old), SuiteBuilder(new) [via BuildCache]
-> Orchestrator -> StatEngine -> text report -> ThresholdGate

With ``previous_run`` set, building and running are skipped and the sample
logs of that earlier run are re-processed instead.

Callers (CLI, scripts, CI runners) should build this object via
:func:`pipeline.wiring.build_pipeline` rather than wiring the stages
themselves. Collaborators are injectable so tests can stand in for git, go
and the benchmark binaries.
"""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Callable, List, Optional, TextIO

from benchdiff.domain import BenchmarkSuite, ComparisonTable
from benchdiff.io.layout import get_ref_paths, parse_run_timestamp
from benchdiff.ui.progress import DEFAULT_INTERVAL
from tools.core_git import GitRepo
from tools.go_build import BuildBackend, expand_packages, get_backend

from pipeline.cache import BuildCache
from pipeline.gate import evaluate
from pipeline.models import CompareRequest
from pipeline.orchestrator import Orchestrator, RunOptions, RunSummary
from pipeline.refs import RefResolver
from pipeline.report import format_profile_locations, format_text
from pipeline.stats import StatEngine
from pipeline.suite_builder import PackageExpander, SuiteBuilder, build_suites


def _now() -> datetime:
    return datetime.now().astimezone()


class BenchdiffPipeline:
    def __init__(
        self,
        *,
        git: Optional[GitRepo] = None,
        backend_factory: Callable[[str], BuildBackend] = get_backend,
        expand: PackageExpander = expand_packages,
        orchestrator: Optional[Orchestrator] = None,
        out: TextIO = sys.stdout,
        err: TextIO = sys.stderr,
        clock: Callable[[], datetime] = _now,
        progress_interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.git = git or GitRepo()
        self.backend_factory = backend_factory
        self.expand = expand
        self.out = out
        self.err = err
        self.clock = clock
        self.progress_interval = progress_interval
        self.orchestrator = orchestrator or Orchestrator(err=err, progress_interval=progress_interval)
        self.last_run: Optional[RunSummary] = None

    def run(self, req: CompareRequest) -> int:
        """Compare, print the tables and enforce the threshold.

        Returns 0; a regression beyond the threshold raises
        :class:`~benchdiff.errors.ThresholdViolation`.
        """
        tables = self.compare(req)
        evaluate(req.threshold, tables).raise_for_violation()
        return 0

    def compare(self, req: CompareRequest) -> List[ComparisonTable]:
        refs = RefResolver(self.git).resolve(req.old_ref, req.new_ref)
        old = BenchmarkSuite(refs.old, refs.old_subject, get_ref_paths(refs.old, req.root))
        new = BenchmarkSuite(refs.new, refs.new_subject, get_ref_paths(refs.new, req.root))
        try:
            if req.previous_run:
                self._load_previous_run(req.previous_run, old, new)
            else:
                self._build_and_run(req, old, new)

            tables = StatEngine(alpha=req.alpha, order=req.order).compare(old, new)
            format_text(tables, self.out)
            format_profile_locations(old, new, req.profiles, self.out)
            return tables
        finally:
            old.close()
            new.close()

    def _build_and_run(self, req: CompareRequest, old: BenchmarkSuite, new: BenchmarkSuite) -> None:
        builder = SuiteBuilder(
            git=self.git,
            cache=BuildCache(req.root),
            backend=self.backend_factory(req.backend),
            expand=self.expand,
            err=self.err,
            progress_interval=self.progress_interval,
        )
        # One timestamp names both suites' logs so a replay can find them.
        started_at = self.clock()
        build_suites(builder, [old, new], req.package_filter, req.post_checkout, started_at)

        opts = RunOptions(
            iterations=req.iterations,
            run_pattern=req.run_pattern,
            bench_time=req.bench_time,
            profiles=req.profiles,
        )
        self.last_run = self.orchestrator.run(old, new, opts)

    def _load_previous_run(self, previous_run: str, old: BenchmarkSuite, new: BenchmarkSuite) -> None:
        t = parse_run_timestamp(previous_run)
        old_path = old.open_previous_log(t)
        new_path = new.open_previous_log(t)
        print(f"Found previous run; old={old_path}, new={new_path}", file=self.err)
