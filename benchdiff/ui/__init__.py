"""benchdiff.ui

Terminal helpers shared by the build and run stages.
"""

from __future__ import annotations

from .progress import ProgressReporter, fraction

__all__ = ["ProgressReporter", "fraction"]
