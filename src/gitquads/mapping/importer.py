"""Single-pass import of a repository history into a quad destination."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from ..config import DEFAULT_CONFIG, ImportConfig
from ..exceptions import ErrorCode, GitQuadsError, ImportCancelledError
from ..graph import vocabulary as voc
from ..graph.quad import IRI, Bool, Quad
from ..history.git_repository import GitRepository
from ..logging_config import get_logger
from ..sinks.base import BatchedSink
from .mapper import QuadMapper

logger = get_logger(__name__)


@dataclass
class ImportStats:
    commits: int = 0  # commits fully written
    quads: int = 0  # quads handed to the destination


class Importer:
    """Walks the history once and writes every commit's facts in order.

    ``stats`` stays readable after a failed run and reports how far the
    import got. Already written facts are never retracted.
    """

    def __init__(
        self,
        writer,
        repository: GitRepository,
        config: ImportConfig = DEFAULT_CONFIG,
        cancel: Optional[threading.Event] = None,
    ):
        self.repository = repository
        self.config = config
        self.cancel = cancel
        self.sink = BatchedSink(writer, batch=config.batch)
        self.stats = ImportStats()

    def run(self) -> ImportStats:
        try:
            self._run()
        except GitQuadsError as e:
            self.stats.quads = self.sink.written
            e.context["commits_processed"] = self.stats.commits
            logger.error("Import aborted after %d commits: %s", self.stats.commits, e)
            raise
        self.stats.quads = self.sink.written
        logger.info(
            "Imported %d commits as %d quads (%d writes)",
            self.stats.commits,
            self.stats.quads,
            self.sink.calls,
        )
        return self.stats

    def _run(self) -> None:
        repo_iri = IRI(self.repository.identity())
        logger.info("Importing %s as %s", self.repository.location, repo_iri.value)

        if self.config.gephi_hints:
            self.sink.write_batch(
                [Quad(p, voc.PREDICATE_GEPHI_INLINE, Bool(True)) for p in voc.INLINE_PREDICATES]
            )
        self.sink.write_batch([Quad(repo_iri, voc.PREDICATE_TYPE, voc.TYPE_REPO)])

        mapper = QuadMapper(
            repo_iri,
            self.repository,
            self.sink,
            dedupe_people=self.config.dedupe_people,
        )
        with self.repository.iter_commits() as commits:
            for commit in commits:
                if self.cancel is not None and self.cancel.is_set():
                    raise ImportCancelledError(
                        "Import cancelled", ErrorCode.GQ205, context={"commit": commit.hash}
                    )
                mapper.map_commit(commit)
                self.stats.commits += 1
                logger.debug("Imported commit %s", commit.hash)
