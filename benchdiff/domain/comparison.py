"""benchdiff.domain.comparison

Comparison tables produced by the statistics adapter.

One :class:`ComparisonTable` per metric (``time/op``, ``alloc/op``, ...), one
:class:`ComparisonRow` per benchmark measured on both sides. The threshold
gate and the text report only read these types; neither knows how the
statistics were computed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Sequence


class Change(IntEnum):
    """Direction of a statistically significant change."""

    WORSE = -1
    SAME = 0
    BETTER = 1


@dataclass(frozen=True)
class Summary:
    """Outlier-trimmed summary of one side's samples."""

    values: Sequence[float]
    mean: float
    min: float
    max: float

    @property
    def range_pct(self) -> float:
        """Largest distance from the mean, as a percentage of the mean."""
        if not self.mean:
            return 0.0
        spread = max(self.max - self.mean, self.mean - self.min)
        return spread / self.mean * 100.0


@dataclass(frozen=True)
class ComparisonRow:
    benchmark: str
    old: Summary
    new: Summary
    delta: str
    pct_delta: float
    change: Change
    p_value: float
    note: str = ""


@dataclass
class ComparisonTable:
    metric: str
    unit: str
    rows: List[ComparisonRow] = field(default_factory=list)
