"""benchdiff

Core package namespace for the differential benchmark tool.

Why this exists
---------------
The repository is organized under a few top-level packages:

* ``benchdiff`` (this package) owns the *contracts*: domain types, the error
  taxonomy, the filesystem layout rules and the progress reporter.
* ``tools`` owns side effects against external programs (git, go, bazel).
* ``pipeline`` wires those together into the comparison workflow.

Contracts must not depend on ``tools`` or ``pipeline`` so that both layers can
import them without cycles.
"""

from __future__ import annotations

__version__ = "0.3.0"
