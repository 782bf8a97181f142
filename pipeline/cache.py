"""pipeline.cache

Content-addressed cache of compiled benchmark binaries.

Key: ``(ref, hash(sorted package filter))`` ->
``<root>/<ref>/bin/<filter_hash>/``.

Rules
-----
- Directory existence is the only cache-hit signal.
- A cache directory holds regular files only (one binary per package with
  tests). A nested directory is reported as
  :class:`~benchdiff.errors.CacheCorruption`.
- A directory is created right before building and removed entirely if the
  build fails, so a later run never mistakes a partial build for a complete one.

The filter hash is a 32-bit FNV-1a (see :func:`benchdiff.io.layout.filter_hash`).
A collision can make an unrelated filter look cached; at the size of real
package sets this is an accepted risk.
"""

from __future__ import annotations

import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence, Set, Union

from benchdiff.errors import CacheCorruption, IOFailure
from benchdiff.io.layout import DEFAULT_ROOT, filter_hash, get_ref_paths


class BuildCache:
    def __init__(self, root: Union[str, Path] = DEFAULT_ROOT) -> None:
        self.root = Path(root)

    @staticmethod
    def cache_key(package_filter: Sequence[str]) -> str:
        return filter_hash(package_filter)

    def resolve(self, ref: str, package_filter: Sequence[str]) -> Path:
        """Binary directory for *ref* built with *package_filter*."""
        return get_ref_paths(ref, self.root).bin_dir(package_filter)

    def lookup(self, bin_dir: Path) -> Optional[Set[str]]:
        """Return the cached binary names, or None on a cache miss."""
        if not bin_dir.exists():
            return None
        if not bin_dir.is_dir():
            raise CacheCorruption(f"binary cache path {bin_dir} is not a directory")
        binaries: Set[str] = set()
        try:
            for entry in bin_dir.iterdir():
                if entry.is_dir():
                    raise CacheCorruption(f"unexpected directory {entry.name!r} in {bin_dir}")
                binaries.add(entry.name)
        except OSError as e:
            raise IOFailure(f"listing binary cache {bin_dir}: {e}") from e
        return binaries

    @contextmanager
    def populate(self, bin_dir: Path) -> Iterator[Path]:
        """Create *bin_dir* for a fresh build; remove it if the build fails."""
        try:
            bin_dir.mkdir(parents=True, mode=0o700)
        except OSError as e:
            raise IOFailure(f"creating binary cache {bin_dir}: {e}") from e
        try:
            yield bin_dir
        except BaseException:
            shutil.rmtree(bin_dir, ignore_errors=True)
            raise
