"""benchdiff.domain

Domain objects that form the contract between pipeline stages.

* :class:`BenchmarkSuite` - what was built for one ref and where its samples go
* :class:`ComparisonTable` - what the statistics adapter hands to the gate and
  the report
"""

from __future__ import annotations

from .comparison import Change, ComparisonRow, ComparisonTable, Summary
from .suite import BenchmarkSuite, sorted_binaries

__all__ = [
    "BenchmarkSuite",
    "Change",
    "ComparisonRow",
    "ComparisonTable",
    "Summary",
    "sorted_binaries",
]
