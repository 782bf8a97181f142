"""tools/go_build.py

Go package expansion and the two interchangeable build backends.

A backend compiles the test binary of one Go package into a destination
directory under its encoded file name (see
:func:`benchdiff.io.layout.pkg_to_test_bin`) and returns that name. A package
without tests is not an error: the backend returns ``None``.

* :class:`GoTestBackend` - ``go test -c``
* :class:`BazelBackend` - ``bazel build`` of the package's ``go_test`` target
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Type

from benchdiff.errors import BuildFailure, CommandError
from benchdiff.io.layout import pkg_to_test_bin

from .core_cmd import capture


class BuildBackend(Protocol):
    name: str

    def build(self, pkg: str, dst_dir: Path) -> Optional[str]:
        ...


def expand_packages(patterns: Sequence[str], *, cwd: Optional[Path] = None) -> List[str]:
    """Expand package patterns (``./pkg/...``) into import paths via ``go list``."""
    try:
        out = capture(["go", "list", *patterns], cwd=cwd)
    except CommandError as e:
        raise BuildFailure(f"expanding packages: {e}") from e
    return [line.strip() for line in out.splitlines() if line.strip()]


class GoTestBackend:
    name = "go"

    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd

    def build(self, pkg: str, dst_dir: Path) -> Optional[str]:
        binary = pkg_to_test_bin(pkg)
        dst = (dst_dir / binary).resolve()
        # Output is captured to silence "no test files" warnings.
        try:
            capture(["go", "test", "-c", "-o", str(dst), pkg], cwd=self.cwd)
        except CommandError as e:
            raise BuildFailure(f"building test binary for {pkg}: {e}") from e
        # No tests in the package: go exits 0 without writing a binary.
        if not dst.exists():
            return None
        return binary


class BazelBackend:
    name = "bazel"

    def __init__(self, cwd: Optional[Path] = None) -> None:
        self.cwd = cwd
        self._workspace: Optional[Path] = None

    def _capture(self, *args: str) -> str:
        return capture(list(args), cwd=self.cwd)

    def workspace(self) -> Path:
        if self._workspace is None:
            try:
                self._workspace = Path(self._capture("bazel", "info", "workspace"))
            except CommandError as e:
                raise BuildFailure(f"locating bazel workspace: {e}") from e
        return self._workspace

    def package_label(self, pkg: str) -> str:
        """``github.com/org/repo/pkg/kv`` -> ``//pkg/kv``"""
        try:
            pkg_dir = self._capture("go", "list", "-f", "{{.Dir}}", pkg)
        except CommandError as e:
            raise BuildFailure(f"locating package {pkg}: {e}") from e
        rel = os.path.relpath(pkg_dir, str(self.workspace()))
        return "//" + ("" if rel == "." else rel.replace(os.sep, "/"))

    def build(self, pkg: str, dst_dir: Path) -> Optional[str]:
        label = self.package_label(pkg)
        try:
            targets = self._capture("bazel", "query", f"kind(go_test, {label}:all)").split()
        except CommandError as e:
            if "no such package" in e.stderr:
                return None
            raise BuildFailure(f"querying test target for {pkg}: {e}") from e
        if not targets:
            return None
        target = targets[0]

        try:
            self._capture("bazel", "build", target)
            outputs = self._capture("bazel", "cquery", "--output=files", target).split()
        except CommandError as e:
            raise BuildFailure(f"building test binary for {pkg}: {e}") from e
        if not outputs:
            raise BuildFailure(f"bazel produced no output for {target}")

        src = Path(outputs[0])
        if not src.is_absolute():
            src = self.workspace() / src
        binary = pkg_to_test_bin(pkg)
        dst = dst_dir / binary
        try:
            # bazel-out files are read-only; copy and make the copy executable.
            shutil.copyfile(src, dst)
            dst.chmod(0o755)
        except OSError as e:
            raise BuildFailure(f"copying {src} into the binary cache: {e}") from e
        return binary


BACKENDS: Dict[str, Type] = {
    GoTestBackend.name: GoTestBackend,
    BazelBackend.name: BazelBackend,
}


def get_backend(name: str, *, cwd: Optional[Path] = None) -> BuildBackend:
    if name not in BACKENDS:
        raise ValueError(f"Unknown build backend '{name}'. Valid: {sorted(BACKENDS)}")
    return BACKENDS[name](cwd=cwd)
