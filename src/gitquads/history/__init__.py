"""History walk: commits, file listings and tree diffs from git."""

from .git_repository import CommitIterator, GitRepository
from .models import Change, ChangeAction, ChangeEntry, CommitRecord, FileEntry, Signature

__all__ = [
    "GitRepository",
    "CommitIterator",
    "CommitRecord",
    "Signature",
    "FileEntry",
    "Change",
    "ChangeAction",
    "ChangeEntry",
]
