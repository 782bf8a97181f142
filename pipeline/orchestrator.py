"""pipeline.orchestrator

Run the benchmarks shared by two suites, interleaved.

Only binaries present in *both* suites are comparable; they run in sorted
order. For each binary and each iteration the old suite runs first and the
new suite immediately after (A, B, A, B, ...). Running all of A's iterations
before B's would let time-correlated noise (thermal throttling, background
load drift) land on one side only.

Every invocation appends its raw output to the suite's sample log. Logs are
never truncated during a session.

Exit status handling
--------------------
- ``0``: fine.
- ``1``: the Go test framework's "some benchmark failed" status. Logged as a
  warning and counted; the comparison continues.
- anything else (or a binary that cannot be started):
  :class:`~benchdiff.errors.ExecutionFailure`, which aborts the run.

Benchmarks never run concurrently with each other.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Sequence, TextIO

from benchdiff.domain import BenchmarkSuite, sorted_binaries
from benchdiff.errors import BenchmarkAssertionFailure, CommandError, ExecutionFailure
from benchdiff.io.layout import PROFILE_KINDS, test_bin_to_pkg
from benchdiff.ui.progress import DEFAULT_INTERVAL, ProgressReporter, fraction
from tools.core_cmd import run_cmd, spawn

logger = logging.getLogger(__name__)

BENCHMARK_FAILURE_EXIT_CODE = 1

BinaryRunner = Callable[[List[str], BinaryIO], int]
HelpProbe = Callable[[Path], bool]


def spawn_into_log(argv: List[str], log: BinaryIO) -> int:
    """Run one benchmark binary with stdout and stderr appended to *log*."""
    return spawn(argv, stdout=log, stderr=log)


def has_logtostderr_flag(binary: Path) -> bool:
    """Does the binary accept ``--logtostderr``?

    ``--help`` exits non-zero, so the status is ignored; a real problem with
    the binary surfaces on the actual run.
    """
    try:
        res = run_cmd([str(binary), "--help"])
    except CommandError:
        return False
    return "logtostderr" in res.stdout or "logtostderr" in res.stderr


@dataclass(frozen=True)
class RunOptions:
    iterations: int = 10
    run_pattern: str = "."
    bench_time: Optional[str] = None
    profiles: Sequence[str] = ()


@dataclass
class RunSummary:
    binaries: List[str]
    invocations: int = 0
    assertion_failures: List[BenchmarkAssertionFailure] = field(default_factory=list)


class Orchestrator:
    def __init__(
        self,
        *,
        runner: BinaryRunner = spawn_into_log,
        probe: HelpProbe = has_logtostderr_flag,
        err: TextIO = sys.stderr,
        progress_interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.runner = runner
        self.probe = probe
        self.err = err
        self.progress_interval = progress_interval

    def benchmark_args(self, suite: BenchmarkSuite, binary: str, opts: RunOptions) -> List[str]:
        path = suite.binary_path(binary)
        args = [str(path), "-test.run", "-", "-test.bench", opts.run_pattern, "-test.benchmem"]
        if opts.bench_time:
            args += ["-test.benchtime", opts.bench_time]
        for kind in PROFILE_KINDS:
            if kind in opts.profiles:
                args += [f"-test.{kind}profile", str(suite.profile_path(kind))]
        if self.probe(path):
            args += ["--logtostderr", "NONE"]
        return args

    def run_single(self, suite: BenchmarkSuite, binary: str, opts: RunOptions) -> None:
        if suite.output_log is None:
            raise ExecutionFailure(f"no output log open for {suite.ref}")
        args = self.benchmark_args(suite, binary, opts)
        try:
            code = self.runner(args, suite.output_log)
        except CommandError as e:
            raise ExecutionFailure(f"error running {args}: {e}") from e
        if code == 0:
            return
        if code == BENCHMARK_FAILURE_EXIT_CODE:
            raise BenchmarkAssertionFailure(binary, suite.ref)
        raise ExecutionFailure(f"error running {args}: exited with status {code}")

    def run(self, old: BenchmarkSuite, new: BenchmarkSuite, opts: RunOptions) -> RunSummary:
        binaries = sorted_binaries(old.intersect(new))
        summary = RunSummary(binaries=binaries)

        print("\nrunning benchmarks:", file=self.err)
        with ProgressReporter(self.err, interval=self.progress_interval) as progress:
            for i, binary in enumerate(binaries):
                pkg = test_bin_to_pkg(binary)
                for j in range(opts.iterations):
                    progress.update(
                        f" pkg={fraction(i + 1, len(binaries))} "
                        f"iter={fraction(j + 1, opts.iterations)} {pkg}"
                    )
                    for suite in (old, new):
                        summary.invocations += 1
                        try:
                            self.run_single(suite, binary, opts)
                        except BenchmarkAssertionFailure as e:
                            logger.warning("saw one or more benchmark failures (%s)", e)
                            summary.assertion_failures.append(e)
        return summary
