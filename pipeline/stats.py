"""pipeline.stats

Adapter between the two sample logs and the comparison tables.

Input: raw Go benchmark output, e.g.::

    goos: linux
    pkg: github.com/org/repo/pkg/kv
    BenchmarkScan/rows=10-8   	  500000	      2310 ns/op	     112 B/op	       3 allocs/op
    PASS

Output: one :class:`~benchdiff.domain.ComparisonTable` per metric, in the
order metrics first appear in the old log.

The statistics follow benchstat's conventions:

* samples outside the Tukey fences (Q1 - 1.5*IQR, Q3 + 1.5*IQR) are dropped
* significance comes from a two-sided Mann-Whitney U test (scipy)
* a change is reported only when ``p < alpha``; otherwise the delta is ``~``

Orders: ``name`` (alphabetical) or ``delta`` (best change first).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import BinaryIO, Dict, Iterable, List, Sequence

import numpy as np
from scipy import stats as sp_stats

from benchdiff.domain import BenchmarkSuite, Change, ComparisonRow, ComparisonTable, Summary

DEFAULT_ALPHA = 0.05

ORDERS = ("delta", "name")

UNIT_METRICS: Dict[str, str] = {
    "ns/op": "time/op",
    "MB/s": "speed",
    "B/op": "alloc/op",
    "allocs/op": "allocs/op",
}

# Metrics where a larger value is an improvement.
HIGHER_IS_BETTER = {"speed"}

_BENCH_LINE_RE = re.compile(r"^Benchmark(?P<name>\S+)\s+(?P<n>\d+)\s+(?P<rest>.+)$")

# unit -> benchmark name -> samples (insertion ordered)
SampleSet = Dict[str, Dict[str, List[float]]]


def check_alpha(alpha: float) -> float:
    """Return *alpha* if it is a usable significance level (strictly between 0 and 1)."""
    if not 0 < alpha < 1:
        raise ValueError(f"significance level must be between 0 and 1, got {alpha}")
    return alpha


def parse_bench_output(lines: Iterable[str]) -> SampleSet:
    """Collect samples per (unit, benchmark) from Go benchmark output lines."""
    samples: SampleSet = {}
    for raw in lines:
        m = _BENCH_LINE_RE.match(raw.strip())
        if not m:
            continue
        fields = m.group("rest").split()
        for value, unit in zip(fields[0::2], fields[1::2]):
            try:
                v = float(value)
            except ValueError:
                break
            samples.setdefault(unit, {}).setdefault(m.group("name"), []).append(v)
    return samples


def read_samples(log: BinaryIO) -> SampleSet:
    text = log.read().decode("utf-8", errors="replace")
    return parse_bench_output(text.splitlines())


def summarize(values: Sequence[float]) -> Summary:
    """Summarize samples after dropping Tukey outliers."""
    arr = np.asarray(values, dtype=float)
    q1, q3 = np.percentile(arr, [25, 75])
    iqr = q3 - q1
    kept = arr[(arr >= q1 - 1.5 * iqr) & (arr <= q3 + 1.5 * iqr)]
    if kept.size == 0:
        kept = arr
    return Summary(
        values=tuple(float(v) for v in kept),
        mean=float(kept.mean()),
        min=float(kept.min()),
        max=float(kept.max()),
    )


def mann_whitney_p(old: Sequence[float], new: Sequence[float]) -> float:
    if not old or not new:
        return 1.0
    with np.errstate(all="ignore"):
        try:
            p = sp_stats.mannwhitneyu(old, new, alternative="two-sided").pvalue
        except ValueError:
            return 1.0
    p = float(p)
    return 1.0 if math.isnan(p) else p


def compare_row(name: str, metric: str, old: Summary, new: Summary, alpha: float) -> ComparisonRow:
    p = mann_whitney_p(old.values, new.values)
    note = f"(p={p:.3f} n={len(old.values)}+{len(new.values)})"

    if p >= alpha or old.mean == 0:
        return ComparisonRow(name, old, new, "~", 0.0, Change.SAME, p, note)

    pct = (new.mean / old.mean - 1.0) * 100.0
    if pct == 0:
        change = Change.SAME
    elif (pct < 0) != (metric in HIGHER_IS_BETTER):
        change = Change.BETTER
    else:
        change = Change.WORSE
    return ComparisonRow(name, old, new, f"{pct:+.2f}%", pct, change, p, note)


def sort_rows(rows: List[ComparisonRow], order: str) -> List[ComparisonRow]:
    if order == "name":
        return sorted(rows, key=lambda r: r.benchmark)
    if order == "delta":
        # Best change first; insignificant rows sit in the middle.
        return sorted(rows, key=lambda r: abs(r.pct_delta) * int(r.change), reverse=True)
    raise ValueError(f"unknown sort order {order!r}. Valid: {list(ORDERS)}")


def build_tables(
    old: SampleSet,
    new: SampleSet,
    *,
    order: str = "delta",
    alpha: float = DEFAULT_ALPHA,
) -> List[ComparisonTable]:
    tables: List[ComparisonTable] = []
    for unit, old_by_name in old.items():
        new_by_name = new.get(unit, {})
        metric = UNIT_METRICS.get(unit, unit)
        rows = [
            compare_row(name, metric, summarize(old_vals), summarize(new_by_name[name]), alpha)
            for name, old_vals in old_by_name.items()
            if new_by_name.get(name)
        ]
        if rows:
            tables.append(ComparisonTable(metric=metric, unit=unit, rows=sort_rows(rows, order)))
    return tables


@dataclass(frozen=True)
class StatEngine:
    """Turns two rewound sample logs into ordered comparison tables."""

    alpha: float = DEFAULT_ALPHA
    order: str = "delta"

    def __post_init__(self) -> None:
        check_alpha(self.alpha)

    def compare_logs(self, old_log: BinaryIO, new_log: BinaryIO) -> List[ComparisonTable]:
        return build_tables(
            read_samples(old_log), read_samples(new_log), order=self.order, alpha=self.alpha
        )

    def compare(self, old: BenchmarkSuite, new: BenchmarkSuite) -> List[ComparisonTable]:
        return self.compare_logs(old.rewind_log(), new.rewind_log())
