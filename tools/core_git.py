"""tools/core_git.py

Git helpers for the repository being benchmarked.

All queries are read-only except :meth:`GitRepo.checkout`, which mutates the
shared working tree. Callers that check out refs must do so inside
:meth:`GitRepo.preserve_checkout` so the user's branch (or detached commit)
is restored on every exit path.
"""

from __future__ import annotations

import logging
import shlex
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from benchdiff.errors import BuildFailure, CommandError, GitError, InvalidRef

from .core_cmd import capture, spawn

logger = logging.getLogger(__name__)

_SHORT_SHA_LEN = 7


def _is_hex(value: str) -> bool:
    try:
        int(value, 16)
    except ValueError:
        return False
    return True


class GitRepo:
    """Thin wrapper around the ``git`` CLI for one working tree."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path

    def _git(self, *args: str) -> str:
        cmd = ["git"]
        if self.path is not None:
            cmd += ["-C", str(self.path)]
        return capture(cmd + list(args))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def rev_parse(self, ref: str) -> str:
        """Return *ref* as a full SHA, or raise :class:`InvalidRef`."""
        try:
            return self._git("rev-parse", ref)
        except CommandError as e:
            raise InvalidRef(ref, e.stderr) from e

    def head(self) -> str:
        return self.rev_parse("HEAD")

    def is_valid_ref(self, ref: str) -> bool:
        try:
            self._git("cat-file", "-t", ref)
        except CommandError as e:
            if "Not a valid object name" in e.stderr:
                return False
            raise GitError(f"checking valid ref {ref!r}: {e}") from e
        return True

    def symbolic_ref(self) -> Optional[str]:
        """Current branch name, or None when HEAD is detached."""
        try:
            ref = self._git("symbolic-ref", "HEAD")
        except CommandError as e:
            if "not a symbolic ref" in e.stderr:
                return None
            raise GitError(f"getting current git ref: {e}") from e
        return ref[len("refs/heads/"):] if ref.startswith("refs/heads/") else ref

    def last_merge(self, ref: str) -> str:
        """SHA of the most recent merge commit reachable from *ref*."""
        try:
            sha = self._git("log", "-n", "1", "--merges", "--format=%H", ref)
        except CommandError as e:
            raise InvalidRef(ref, e.stderr) from e
        if not sha:
            raise InvalidRef(ref, "no merge commit reachable")
        return sha

    def subject(self, ref: str) -> str:
        try:
            return self._git("log", "--format=%s", "-1", ref)
        except CommandError as e:
            raise GitError(f"reading subject of {ref}: {e}") from e

    def shorten(self, ref: str) -> str:
        """Abbreviate a SHA to 7 chars when that prefix is itself valid."""
        if len(ref) <= _SHORT_SHA_LEN:
            return ref
        short = ref[:_SHORT_SHA_LEN]
        if not _is_hex(short):
            return ref
        try:
            if self.is_valid_ref(short):
                return short
        except GitError:
            pass
        return ref

    # ------------------------------------------------------------------
    # Working tree
    # ------------------------------------------------------------------

    def checkout(self, ref: str, post_checkout: Optional[str] = None) -> None:
        """Switch the working tree to *ref*, then run the optional hook.

        Hook output goes to stderr so it never mixes with benchmark samples.
        """
        cmd = ["git"]
        if self.path is not None:
            cmd += ["-C", str(self.path)]
        code = spawn(cmd + ["checkout", "-q", ref])
        if code != 0:
            raise GitError(f"checkout {ref}: git exited with status {code}")
        if not post_checkout:
            return
        args = shlex.split(post_checkout)
        try:
            code = spawn(args, stdin=sys.stdin, stdout=sys.stderr, stderr=sys.stderr, cwd=self.path)
        except CommandError as e:
            raise BuildFailure(f"post-checkout: {e}") from e
        if code != 0:
            raise BuildFailure(f"post-checkout: {post_checkout!r} exited with status {code}")

    @contextmanager
    def preserve_checkout(self) -> Iterator[None]:
        """Own the working tree for the duration of the block.

        The current branch is checked out again on exit, whether the block
        returns or raises. A detached HEAD is restored to the same commit.
        """
        original = self.symbolic_ref() or self.head()
        try:
            yield
        except BaseException:
            # Keep the original failure; a restore error is only logged.
            try:
                self.checkout(original)
            except GitError as e:
                logger.error("failed to restore checkout %s: %s", original, e)
            raise
        self.checkout(original)
