"""pipeline.models

Request object passed from the CLI into the pipeline facade.

Why this exists
---------------
The comparison needs a dozen loosely-related values (refs, package filter,
iteration count, profiling toggles, replay timestamp...). Passing them as
individual arguments through every layer grows into spaghetti; one frozen
dataclass gives the CLI, tests and scripts a single vocabulary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from benchdiff.io.layout import DEFAULT_ROOT, canonical_filter
from pipeline.stats import DEFAULT_ALPHA


@dataclass(frozen=True)
class CompareRequest:
    """One old-vs-new comparison."""

    packages: Tuple[str, ...] = ()
    old_ref: Optional[str] = None
    new_ref: Optional[str] = None

    # execution
    iterations: int = 10
    run_pattern: str = "."
    bench_time: Optional[str] = None
    profiles: Tuple[str, ...] = ()

    # build
    post_checkout: Optional[str] = None
    backend: str = "go"

    # processing
    order: str = "delta"
    alpha: float = DEFAULT_ALPHA
    threshold: Optional[float] = None

    # replay an earlier run instead of building/running (run timestamp)
    previous_run: Optional[str] = None

    root: Path = field(default_factory=lambda: Path(DEFAULT_ROOT))

    @property
    def package_filter(self) -> Tuple[str, ...]:
        return tuple(canonical_filter(self.packages))
