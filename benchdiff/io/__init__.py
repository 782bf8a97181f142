"""benchdiff.io

Filesystem contracts.

The on-disk layout (cache directories, sample logs, profiles) is shared by the
build, run and replay paths. Keeping the rules here means no caller computes
its own paths.
"""

from __future__ import annotations

from .layout import (
    DEFAULT_ROOT,
    PROFILE_KINDS,
    RefPaths,
    canonical_filter,
    filter_hash,
    format_run_timestamp,
    get_ref_paths,
    parse_run_timestamp,
    pkg_to_test_bin,
    test_bin_to_pkg,
)

__all__ = [
    "DEFAULT_ROOT",
    "PROFILE_KINDS",
    "RefPaths",
    "canonical_filter",
    "filter_hash",
    "format_run_timestamp",
    "get_ref_paths",
    "parse_run_timestamp",
    "pkg_to_test_bin",
    "test_bin_to_pkg",
]
