"""CLI argument builder modules.

The top-level :mod:`benchdiff_cli` is intentionally kept thin. Groups of flags
are registered via small "arg builder" functions housed here.

Each module exposes a single public function:

- :func:`cli.args.base.add_base_args` - refs, packages, build and run knobs
- :func:`cli.args.processing.add_processing_args` - statistics, output, gate

This keeps :func:`benchdiff_cli.build_parser` from turning into a god function.
"""

from __future__ import annotations

__all__ = [
    "base",
    "processing",
]
