"""Data models for the git history walk."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Signature:
    name: str
    email: str
    when: datetime  # timezone-aware, in the signer's own offset

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class CommitRecord:
    hash: str  # lowercase hex
    tree: str  # tree hash of the snapshot
    parents: tuple[str, ...]  # first parent first
    author: Signature
    committer: Signature
    message: str

    @property
    def is_root(self) -> bool:
        return not self.parents


@dataclass(frozen=True)
class FileEntry:
    """A blob present in a commit's tree."""

    path: str
    hash: str


@dataclass(frozen=True)
class ChangeEntry:
    """One side of a tree diff entry."""

    path: str
    hash: str


class ChangeAction(Enum):
    INSERT = "insert"
    DELETE = "delete"
    MODIFY = "modify"
    NOOP = "noop"


@dataclass(frozen=True)
class Change:
    """A per-path difference between two trees.

    ``before`` is absent for insertions and ``after`` for deletions.
    """

    before: Optional[ChangeEntry]
    after: Optional[ChangeEntry]

    @property
    def action(self) -> ChangeAction:
        if self.before is None and self.after is None:
            return ChangeAction.NOOP
        if self.before is None:
            return ChangeAction.INSERT
        if self.after is None:
            return ChangeAction.DELETE
        return ChangeAction.MODIFY

    @property
    def path(self) -> str:
        entry = self.after if self.after is not None else self.before
        return entry.path if entry is not None else ""
