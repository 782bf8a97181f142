"""pipeline.gate

Pass/fail decision over the comparison tables.

No threshold configured -> always pass. Otherwise the first row that is a
significant regression (``Change.WORSE``) by more than ``threshold * 100``
percent fails the run; the scan stops there.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from benchdiff.domain import Change, ComparisonTable
from benchdiff.errors import ThresholdViolation


@dataclass(frozen=True)
class GateResult:
    passed: bool
    message: str = ""

    def raise_for_violation(self) -> None:
        if not self.passed:
            raise ThresholdViolation(self.message)


def evaluate(threshold: Optional[float], tables: Sequence[ComparisonTable]) -> GateResult:
    """Check every row against *threshold* (a fraction, e.g. ``0.2`` = 20%)."""
    if threshold is None or threshold < 0:
        return GateResult(passed=True)
    threshold_pct = threshold * 100
    for table in tables:
        for row in table.rows:
            if row.change == Change.WORSE and abs(row.pct_delta) > threshold_pct:
                return GateResult(
                    passed=False,
                    message=(
                        f"{table.metric} regression in {row.benchmark} of {row.delta} "
                        f"exceeded threshold of {threshold_pct:.2f}%"
                    ),
                )
    return GateResult(passed=True)
