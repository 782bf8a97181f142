"""benchdiff.domain.suite

One benchmark suite per ref under comparison.

Lifecycle::

    created (empty) -> built (binaries known) -> run -> closed

``available_binaries`` is populated exactly once, either from the binary cache
or from a fresh build. Populating it a second time is a programming error and
raises :class:`RuntimeError` rather than a :class:`~benchdiff.errors.BenchdiffError`.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Set

from benchdiff.errors import IOFailure
from benchdiff.io.layout import RefPaths


class BenchmarkSuite:
    def __init__(self, ref: str, subject: str, paths: RefPaths) -> None:
        self.ref = ref
        self.subject = subject
        self.paths = paths

        self.bin_dir: Optional[Path] = None
        self.output_log: Optional[BinaryIO] = None
        self.available_binaries: Set[str] = set()
        self._built = False

    def __repr__(self) -> str:
        return f"BenchmarkSuite(ref={self.ref!r}, binaries={len(self.available_binaries)})"

    @property
    def artifact_dir(self) -> Path:
        return self.paths.artifacts_dir

    @property
    def built(self) -> bool:
        return self._built

    def short_subject(self) -> str:
        return self.subject[:50]

    # ------------------------------------------------------------------
    # Output log
    # ------------------------------------------------------------------

    def open_output_log(self, t: datetime) -> Path:
        """Create the artifacts dir and create ``out.<t>`` for write + read.

        The log must not exist yet: two runs sharing a timestamp would
        otherwise interleave their samples.
        """
        path = self.paths.output_log(t)
        try:
            self.artifact_dir.mkdir(parents=True, exist_ok=True)
            self.output_log = open(path, "x+b")
        except FileExistsError as e:
            raise IOFailure(
                f"output log {path} already exists; another run started at the same time"
            ) from e
        except OSError as e:
            raise IOFailure(f"opening output log {path}: {e}") from e
        return path

    def open_previous_log(self, t: datetime) -> Path:
        """Open the sample log of an earlier run (read-only)."""
        path = self.paths.output_log(t)
        try:
            self.output_log = open(path, "rb")
        except OSError as e:
            raise IOFailure(f"opening previous run log {path}: {e}") from e
        return path

    def rewind_log(self) -> BinaryIO:
        if self.output_log is None:
            raise IOFailure(f"no output log open for {self.ref}")
        if self.output_log.writable():
            self.output_log.flush()
        self.output_log.seek(0)
        return self.output_log

    def close(self) -> None:
        if self.output_log is not None and not self.output_log.closed:
            self.output_log.close()

    # ------------------------------------------------------------------
    # Binaries
    # ------------------------------------------------------------------

    def mark_built(self, bin_dir: Path, binaries: Iterable[str]) -> None:
        if self._built:
            raise RuntimeError(f"benchmark suite for {self.ref} already built")
        self.bin_dir = bin_dir
        self.available_binaries = set(binaries)
        self._built = True

    def binary_path(self, binary: str) -> Path:
        if self.bin_dir is None:
            raise RuntimeError(f"benchmark suite for {self.ref} not built")
        return self.bin_dir / binary

    def profile_path(self, kind: str) -> Path:
        return self.paths.profile(kind)

    def intersect(self, other: "BenchmarkSuite") -> Set[str]:
        """Binaries present in both suites."""
        return self.available_binaries & other.available_binaries


def sorted_binaries(binaries: Iterable[str]) -> List[str]:
    """Deterministic run order."""
    return sorted(binaries)
