"""benchdiff.errors

Error taxonomy shared by every layer.

Everything that is expected to reach the top-level CLI derives from
:class:`BenchdiffError`; the CLI prints it as ``fatal: <message>`` and exits 1.

Two members of the taxonomy are *absorbed* rather than propagated:

* a package without test files simply contributes no binary (no exception is
  raised for it at all)
* :class:`BenchmarkAssertionFailure` is raised per benchmark invocation and
  caught by the orchestrator, which logs it and moves on
"""

from __future__ import annotations

from typing import Optional, Sequence


class BenchdiffError(Exception):
    """Base class for all benchdiff failures."""


class CommandError(BenchdiffError):
    """An external command exited non-zero (or could not be started)."""

    def __init__(
        self,
        argv: Sequence[str],
        exit_code: Optional[int],
        stderr: str = "",
    ) -> None:
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = (stderr or "").strip()
        status = "could not be started" if exit_code is None else f"exited with status {exit_code}"
        msg = f"{' '.join(self.argv)} {status}"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)


class GitError(BenchdiffError):
    """A git query failed for a reason other than an unknown ref."""


class InvalidRef(BenchdiffError):
    """A user-supplied (or derived) ref does not resolve in the repository."""

    def __init__(self, ref: str, detail: str = "") -> None:
        self.ref = ref
        msg = f"invalid git ref {ref!r}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class BuildFailure(BenchdiffError):
    """A build backend (or the repo-preparation hook) failed."""


class CacheCorruption(BenchdiffError):
    """A binary cache directory holds something other than regular files."""


class ExecutionFailure(BenchdiffError):
    """A benchmark binary exited with an unrecognized status."""


class BenchmarkAssertionFailure(BenchdiffError):
    """A benchmark binary reported failing benchmarks (recognized exit code)."""

    def __init__(self, binary: str, ref: str) -> None:
        self.binary = binary
        self.ref = ref
        super().__init__(f"benchmark failures in {binary} at {ref}")


class ThresholdViolation(BenchdiffError):
    """A measured regression exceeded the configured threshold."""


class IOFailure(BenchdiffError):
    """Filesystem / log handling failed."""
