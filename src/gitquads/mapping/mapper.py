"""Translate one commit into its fixed set of quads.

Each logical unit (commit header, signature, parent pair, file, change) is
handed to the sink as one batch. The mapper keeps no state between commits
apart from the optional person dedup set.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from ..exceptions import GitQuadsError
from ..graph import vocabulary as voc
from ..graph.quad import IRI, BNode, Quad, String, Time
from ..history.models import Change, ChangeAction, CommitRecord, FileEntry, Signature
from ..logging_config import get_logger
from ..sinks.base import BatchedSink
from .identity import blob_iri, commit_iri, person_id

logger = get_logger(__name__)

# Mon Jan 02 15:04:05 2006 -0700
METADATA_DATE_FORMAT = "%a %b %d %H:%M:%S %Y %z"


class HistorySource(Protocol):
    """What the mapper needs from the repository besides the commit itself."""

    def tree_of(self, commit_hash: str) -> str: ...

    def list_files(self, tree_hash: str) -> list[FileEntry]: ...

    def diff_trees(self, from_tree: Optional[str], to_tree: str) -> list[Change]: ...


def _indent(message: str) -> str:
    return "\n".join("    " + line if line else line for line in message.split("\n"))


def format_metadata(commit: CommitRecord) -> str:
    """Header block in the style of ``git show``: hash, author, date, message."""
    return (
        f"commit {commit.hash}\n"
        f"Author: {commit.author}\n"
        f"Date:   {commit.author.when.strftime(METADATA_DATE_FORMAT)}\n"
        f"\n"
        f"{_indent(commit.message)}\n"
    )


@contextmanager
def _stage(name: str, commit: CommitRecord) -> Iterator[None]:
    try:
        yield
    except GitQuadsError as e:
        e.context.setdefault("stage", name)
        e.context.setdefault("commit", commit.hash)
        raise


class QuadMapper:
    """Maps commits to quads and writes them through a BatchedSink."""

    def __init__(
        self,
        repo_iri: IRI,
        source: HistorySource,
        sink: BatchedSink,
        dedupe_people: bool = False,
    ):
        self.repo_iri = repo_iri
        self.source = source
        self.sink = sink
        self.dedupe_people = dedupe_people
        self._seen_people: set[BNode] = set()

    def map_commit(self, commit: CommitRecord) -> None:
        """Write every fact about one commit.

        Raises:
            GitQuadsError: tree resolution, diff or a write failed; the
                error's context names the stage and the commit.
        """
        iri = commit_iri(commit.hash)

        with _stage("commit", commit):
            self.sink.write_batch(
                [
                    Quad(self.repo_iri, voc.PREDICATE_COMMIT, iri),
                    Quad(iri, voc.PREDICATE_TYPE, voc.TYPE_COMMIT),
                    Quad(iri, voc.PREDICATE_METADATA, String(format_metadata(commit))),
                    Quad(iri, voc.PREDICATE_MESSAGE, String(commit.message)),
                ]
            )
        with _stage("author", commit):
            self.map_signature(iri, voc.PREDICATE_AUTHOR, commit.author)
        with _stage("committer", commit):
            self.map_signature(iri, voc.PREDICATE_COMMITTER, commit.committer)

        with _stage("parent", commit):
            for parent in commit.parents:
                parent_iri = commit_iri(parent)
                self.sink.write_batch(
                    [
                        Quad(iri, voc.PREDICATE_PARENT, parent_iri),
                        Quad(parent_iri, voc.PREDICATE_CHILD, iri),
                    ]
                )

        with _stage("file", commit):
            for entry in self.source.list_files(commit.tree):
                self.map_file(iri, entry)

        with _stage("change", commit):
            from_tree = None
            if commit.parents:
                from_tree = self.source.tree_of(commit.parents[0])
            for change in self.source.diff_trees(from_tree, commit.tree):
                self.map_change(iri, change)

    def map_signature(self, commit: IRI, predicate: IRI, signature: Signature) -> None:
        """Link a commit to a person and describe the person."""
        person = person_id(signature.name, signature.email)
        quads = [Quad(commit, predicate, person, Time(signature.when))]
        if not (self.dedupe_people and person in self._seen_people):
            quads += [
                Quad(person, voc.PREDICATE_TYPE, voc.TYPE_PERSON),
                Quad(person, voc.PREDICATE_NAME, String(signature.name)),
                Quad(person, voc.PREDICATE_EMAIL, IRI(signature.email)),
            ]
            if self.dedupe_people:
                self._seen_people.add(person)
        self.sink.write_batch(quads)

    def map_file(self, commit: IRI, entry: FileEntry) -> None:
        file_iri = blob_iri(entry.hash)
        self.sink.write_batch(
            [
                Quad(commit, voc.PREDICATE_FILE, file_iri, String(entry.path)),
                Quad(file_iri, voc.PREDICATE_TYPE, voc.TYPE_FILE),
            ]
        )

    def map_change(self, commit: IRI, change: Change) -> None:
        """Write the added/removed/modified fact for one diff entry.

        Removals hang off the old blob, additions and modifications off the
        new one. Anything else writes nothing.
        """
        action = change.action
        if action is ChangeAction.DELETE:
            assert change.before is not None
            quad = Quad(
                blob_iri(change.before.hash),
                voc.PREDICATE_REMOVED,
                commit,
                String(change.before.path),
            )
        elif action is ChangeAction.INSERT:
            assert change.after is not None
            quad = Quad(
                blob_iri(change.after.hash), voc.PREDICATE_ADDED, commit, String(change.after.path)
            )
        elif action is ChangeAction.MODIFY:
            assert change.after is not None
            quad = Quad(
                blob_iri(change.after.hash),
                voc.PREDICATE_MODIFIED,
                commit,
                String(change.after.path),
            )
        else:
            logger.debug("Skipping %s change for %s", action.value, commit.value)
            return
        self.sink.write_batch([quad])
