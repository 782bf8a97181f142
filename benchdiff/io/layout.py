"""benchdiff.io.layout

Canonical filesystem layout for one invocation root.

This module centralizes:

* per-ref directories (``<root>/<ref>/artifacts`` and ``<root>/<ref>/bin``)
* the binary cache key (hash of the canonical package filter)
* artifact filenames (sample logs and profiles)
* the run timestamp format used to name and re-locate sample logs
* the package name <-> binary file name encoding

Layout::

    <root>/<ref>/artifacts/out.<timestamp>
    <root>/<ref>/artifacts/{cpu,mem,mutex}.prof
    <root>/<ref>/bin/<filter_hash>/<encoded_package>

Notes
-----
The package/binary encoding is lossy: ``/`` collapses to ``_`` and nothing
disambiguates package names that already contain ``_``. Cache directory
enumeration relies on exactly this encoding, so it is kept as-is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, List, Union

DEFAULT_ROOT = "benchdiff"

PROFILE_KINDS = ("cpu", "mem", "mutex")

# Prefix stripped from import paths when naming binaries.
MODULE_ROOT_PREFIX = "github.com"

# e.g. 2024-03-01T14_05_09Z or 2024-03-01T14_05_09-05:00
_TIMESTAMP_RE = re.compile(
    r"^(?P<body>\d{4}-\d{2}-\d{2}T\d{2}_\d{2}_\d{2})(?P<tz>Z|[+-]\d{2}:\d{2})$"
)

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


def canonical_filter(patterns: Iterable[str]) -> List[str]:
    """Return the package filter in canonical (sorted) order."""
    return sorted(patterns)


def filter_hash(patterns: Iterable[str]) -> str:
    """32-bit FNV-1a over the concatenated canonical patterns, in decimal.

    Patterns are concatenated without a separator, so ``["a", "bc"]`` and
    ``["ab", "c"]`` share a key.
    """
    h = _FNV32_OFFSET
    for pattern in canonical_filter(patterns):
        for byte in pattern.encode("utf-8"):
            h ^= byte
            h = (h * _FNV32_PRIME) & 0xFFFFFFFF
    return str(h)


def pkg_to_test_bin(pkg: str) -> str:
    """Translate a Go package import path into a test binary file name."""
    name = pkg[len(MODULE_ROOT_PREFIX):] if pkg.startswith(MODULE_ROOT_PREFIX) else pkg
    return name.replace("/", "_").lstrip("_")


def test_bin_to_pkg(binary: str) -> str:
    """Best-effort inverse of :func:`pkg_to_test_bin` (does not round-trip)."""
    return binary.replace("_", "/")


def format_run_timestamp(t: datetime) -> str:
    """Format *t* as a sortable, filesystem-safe run timestamp.

    Naive datetimes are interpreted as local time.
    """
    if t.tzinfo is None:
        t = t.astimezone()
    body = t.strftime("%Y-%m-%dT%H_%M_%S")
    offset = t.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return body + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{body}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def parse_run_timestamp(value: str) -> datetime:
    """Parse a timestamp produced by :func:`format_run_timestamp`."""
    m = _TIMESTAMP_RE.match((value or "").strip())
    if not m:
        raise ValueError(
            f"invalid run timestamp {value!r} (expected e.g. 2024-03-01T14_05_09Z)"
        )
    t = datetime.strptime(m.group("body"), "%Y-%m-%dT%H_%M_%S")
    tz = m.group("tz")
    if tz == "Z":
        return t.replace(tzinfo=timezone.utc)
    sign = 1 if tz[0] == "+" else -1
    hours, minutes = int(tz[1:3]), int(tz[4:6])
    return t.replace(tzinfo=timezone(sign * timedelta(hours=hours, minutes=minutes)))


@dataclass(frozen=True)
class RefPaths:
    """Canonical paths for one ref under an invocation root."""

    root: Path
    ref: str

    @property
    def ref_dir(self) -> Path:
        return self.root / self.ref

    @property
    def artifacts_dir(self) -> Path:
        return self.ref_dir / "artifacts"

    def bin_dir(self, patterns: Iterable[str]) -> Path:
        return self.ref_dir / "bin" / filter_hash(patterns)

    def output_log(self, t: datetime) -> Path:
        return self.artifacts_dir / f"out.{format_run_timestamp(t)}"

    def profile(self, kind: str) -> Path:
        if kind not in PROFILE_KINDS:
            raise ValueError(f"unknown profile kind {kind!r}. Valid: {list(PROFILE_KINDS)}")
        return self.artifacts_dir / f"{kind}.prof"


def get_ref_paths(ref: str, root: Union[str, Path] = DEFAULT_ROOT) -> RefPaths:
    """Compute the layout for *ref* under *root*."""
    return RefPaths(root=Path(root), ref=ref)
