"""pipeline.report

Plain-text rendering of comparison tables (benchstat-like)::

    name          old time/op    new time/op    delta
    Scan/rows=10  2.31µs ± 2%    2.05µs ± 1%   -11.26%  (p=0.008 n=5+5)
"""

from __future__ import annotations

from typing import List, Sequence, TextIO, Tuple

from benchdiff.domain import BenchmarkSuite, ComparisonTable, Summary
from benchdiff.io.layout import PROFILE_KINDS

# unit -> [(threshold, divisor, suffix)], checked largest first
_SCALES = {
    "ns/op": [(1e9, 1e9, "s"), (1e6, 1e6, "ms"), (1e3, 1e3, "µs"), (0, 1, "ns")],
    "B/op": [(1e9, 1e9, "GB"), (1e6, 1e6, "MB"), (1e3, 1e3, "kB"), (0, 1, "B")],
    "MB/s": [(1e3, 1e3, "GB/s"), (0, 1, "MB/s")],
}
_COUNT_SCALE = [(1e9, 1e9, "G"), (1e6, 1e6, "M"), (1e3, 1e3, "k"), (0, 1, "")]


def format_value(value: float, unit: str) -> str:
    for threshold, divisor, suffix in _SCALES.get(unit, _COUNT_SCALE):
        if abs(value) >= threshold:
            return f"{value / divisor:.3g}{suffix}"
    return f"{value:.3g}"


def format_summary(summary: Summary, unit: str) -> str:
    return f"{format_value(summary.mean, unit)} ± {summary.range_pct:.0f}%"


def _table_lines(table: ComparisonTable) -> List[Tuple[str, str, str, str, str]]:
    lines = [("name", f"old {table.metric}", f"new {table.metric}", "delta", "")]
    for row in table.rows:
        lines.append(
            (
                row.benchmark,
                format_summary(row.old, table.unit),
                format_summary(row.new, table.unit),
                row.delta,
                row.note,
            )
        )
    return lines


def format_text(tables: Sequence[ComparisonTable], out: TextIO) -> None:
    for idx, table in enumerate(tables):
        if idx:
            out.write("\n")
        lines = _table_lines(table)
        widths = [max(len(line[col]) for line in lines) for col in range(4)]
        for name, old, new, delta, note in lines:
            text = (
                f"{name:<{widths[0]}}  {old:>{widths[1]}}  {new:>{widths[2]}}  "
                f"{delta:>{widths[3]}}  {note}"
            )
            out.write(text.rstrip() + "\n")


def format_profile_locations(
    old: BenchmarkSuite, new: BenchmarkSuite, profiles: Sequence[str], out: TextIO
) -> None:
    for kind in PROFILE_KINDS:
        if kind in profiles:
            out.write(
                f"\nwrote {kind} profiles to:\n"
                f"  old={old.profile_path(kind)}\n"
                f"  new={new.profile_path(kind)}\n"
            )
