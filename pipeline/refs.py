"""pipeline.refs

Turn user-supplied ``--old`` / ``--new`` strings into validated commits.

Rules
-----
- new: empty -> ``HEAD``; otherwise the given ref, as a SHA.
- old: empty -> ``<new>~``; ``lastmerge`` -> the most recent merge commit
  reachable from new; otherwise the given ref, as a SHA.
- Each SHA is abbreviated for display when the 7-char prefix is itself a valid
  object, then validated. Every failure is :class:`~benchdiff.errors.InvalidRef`.

Only read-only git queries are issued here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from benchdiff.errors import InvalidRef
from tools.core_git import GitRepo

LAST_MERGE = "lastmerge"


@dataclass(frozen=True)
class ResolvedRefs:
    old: str
    new: str
    old_subject: str = ""
    new_subject: str = ""


class RefResolver:
    def __init__(self, git: GitRepo) -> None:
        self.git = git

    def _finish(self, sha: str) -> str:
        ref = self.git.shorten(sha)
        if not self.git.is_valid_ref(ref):
            raise InvalidRef(ref)
        return ref

    def resolve_new(self, new_ref: Optional[str]) -> str:
        sha = self.git.head() if not new_ref else self.git.rev_parse(new_ref)
        return self._finish(sha)

    def resolve_old(self, old_ref: Optional[str], new: str) -> str:
        if not old_ref:
            sha = self.git.rev_parse(f"{new}~")
        elif old_ref == LAST_MERGE:
            sha = self.git.last_merge(new)
        else:
            sha = self.git.rev_parse(old_ref)
        return self._finish(sha)

    def resolve(self, old_ref: Optional[str], new_ref: Optional[str]) -> ResolvedRefs:
        new = self.resolve_new(new_ref)
        old = self.resolve_old(old_ref, new)
        return ResolvedRefs(
            old=old,
            new=new,
            old_subject=self.git.subject(old),
            new_subject=self.git.subject(new),
        )
