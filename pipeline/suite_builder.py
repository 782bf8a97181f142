"""pipeline.suite_builder

Build one :class:`~benchdiff.domain.BenchmarkSuite` per ref.

Steps (each can fail and abort the rest):

1. create the suite's artifacts directory and open its sample log
2. cache hit -> take the binary names from the cache directory and stop
3. cache miss -> check out the ref (and run the post-checkout hook)
4. expand the package filter with ``go list``
5. compile one test binary per package into the cache directory

A failure in steps 3-5 removes the cache directory (see
:meth:`pipeline.cache.BuildCache.populate`). Packages without tests contribute
no binary and no error.

Checkouts mutate the shared working tree, so :func:`build_suites` holds it via
:meth:`tools.core_git.GitRepo.preserve_checkout` for the whole build.
"""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, TextIO

from benchdiff.domain import BenchmarkSuite
from benchdiff.ui.progress import DEFAULT_INTERVAL, ProgressReporter, fraction
from tools.core_git import GitRepo
from tools.go_build import BuildBackend, expand_packages

from pipeline.cache import BuildCache

PackageExpander = Callable[[Sequence[str]], List[str]]


class SuiteBuilder:
    def __init__(
        self,
        *,
        git: GitRepo,
        cache: BuildCache,
        backend: BuildBackend,
        expand: PackageExpander = expand_packages,
        err: TextIO = sys.stderr,
        progress_interval: float = DEFAULT_INTERVAL,
    ) -> None:
        self.git = git
        self.cache = cache
        self.backend = backend
        self.expand = expand
        self.err = err
        self.progress_interval = progress_interval

    def build(
        self,
        suite: BenchmarkSuite,
        package_filter: Sequence[str],
        post_checkout: Optional[str],
        started_at: datetime,
    ) -> None:
        if suite.built:
            raise RuntimeError(f"benchmark suite for {suite.ref} already built")

        suite.open_output_log(started_at)

        bin_dir = self.cache.resolve(suite.ref, package_filter)
        cached = self.cache.lookup(bin_dir)
        if cached is not None:
            print(
                f"test binaries already exist for {suite.ref}: {suite.short_subject()}",
                file=self.err,
            )
            suite.mark_built(bin_dir, cached)
            return

        with self.cache.populate(bin_dir):
            print(f"checking out '{suite.ref}'", file=self.err)
            self.git.checkout(suite.ref, post_checkout)
            pkgs = self.expand(package_filter)
            binaries = self._compile(suite, pkgs, bin_dir)
        suite.mark_built(bin_dir, binaries)

    def _compile(self, suite: BenchmarkSuite, pkgs: Sequence[str], bin_dir: Path) -> Set[str]:
        prefix = (
            f"building benchmark binaries for {suite.ref}: {suite.short_subject()} "
            f"[backend={self.backend.name}]"
        )
        binaries: Set[str] = set()
        with ProgressReporter(self.err, prefix, interval=self.progress_interval) as progress:
            for i, pkg in enumerate(pkgs):
                progress.update(fraction(i, len(pkgs)))
                binary = self.backend.build(pkg, bin_dir)
                if binary is not None:
                    binaries.add(binary)
            progress.update(fraction(len(pkgs), len(pkgs)))
        return binaries


def build_suites(
    builder: SuiteBuilder,
    suites: Sequence[BenchmarkSuite],
    package_filter: Sequence[str],
    post_checkout: Optional[str],
    started_at: datetime,
) -> None:
    """Build every suite while owning the working tree."""
    with builder.git.preserve_checkout():
        for suite in suites:
            builder.build(suite, package_filter, post_checkout, started_at)
