"""End-to-end tests: real repositories imported into in-memory destinations."""

import hashlib
import io
import threading

import pytest

from gitquads import import_repository
from gitquads.config import ImportConfig
from gitquads.exceptions import (
    ErrorCode,
    ImportCancelledError,
    SinkError,
    SourceResolutionError,
    TraversalError,
)
from gitquads.graph import vocabulary as voc
from gitquads.graph.quad import IRI, BNode, Bool, Quad, String, parse_nquads_line
from gitquads.history import GitRepository
from gitquads.mapping import Importer
from gitquads.mapping.identity import blob_iri, commit_iri, person_id
from gitquads.sinks import MemoryQuadStore, NQuadsWriter, SQLiteQuadStore

PLAIN = ImportConfig(gephi_hints=False)


class ListWriter:
    """Keeps every quad written, duplicates included."""

    def __init__(self):
        self.quads = []

    def write_quads(self, quads):
        self.quads.extend(quads)
        return len(quads)


def facts(quads, predicate, obj=None, subject=None):
    return [
        q
        for q in quads
        if q.predicate == predicate
        and (obj is None or q.object == obj)
        and (subject is None or q.subject == subject)
    ]


class FailOnSecondCommit(ListWriter):
    def write_quads(self, quads):
        commits = facts(self.quads + list(quads), voc.PREDICATE_TYPE, voc.TYPE_COMMIT)
        if len(commits) == 2:
            raise IOError("store unavailable")
        return super().write_quads(quads)


class TestScenarios:
    """Root commit, modify+add, delete."""

    @pytest.fixture
    def imported(self, three_commit_repo):
        writer = ListWriter()
        stats = import_repository(writer, three_commit_repo.path, config=PLAIN)
        return three_commit_repo, writer.quads, stats

    def test_stats(self, imported):
        _, quads, stats = imported
        assert stats.commits == 3
        assert stats.quads == len(quads)

    def test_repository_node(self, imported):
        b, quads, _ = imported
        repo_iri = IRI(str(b.path))
        assert quads[0] == Quad(repo_iri, voc.PREDICATE_TYPE, voc.TYPE_REPO)
        assert len(facts(quads, voc.PREDICATE_COMMIT, subject=repo_iri)) == 3

    def test_root_commit(self, imported):
        b, quads, _ = imported
        root = commit_iri(b.shas["root"])
        blob = blob_iri(b.blob(b.shas["root"], "a.txt"))

        assert facts(quads, voc.PREDICATE_TYPE, voc.TYPE_COMMIT, subject=root) != []
        assert facts(quads, voc.PREDICATE_FILE, subject=root) == [
            Quad(root, voc.PREDICATE_FILE, blob, String("a.txt"))
        ]
        assert facts(quads, voc.PREDICATE_ADDED, root) == [
            Quad(blob, voc.PREDICATE_ADDED, root, String("a.txt"))
        ]
        assert facts(quads, voc.PREDICATE_PARENT, subject=root) == []
        assert facts(quads, voc.PREDICATE_CHILD, root) == []

        author = facts(quads, voc.PREDICATE_AUTHOR, subject=root)
        committer = facts(quads, voc.PREDICATE_COMMITTER, subject=root)
        assert len(author) == 1 and len(committer) == 1
        assert author[0].object == committer[0].object == person_id("Alice", "alice@example.com")

    def test_second_commit(self, imported):
        b, quads, _ = imported
        root, second = commit_iri(b.shas["root"]), commit_iri(b.shas["second"])

        assert facts(quads, voc.PREDICATE_PARENT, subject=second) == [
            Quad(second, voc.PREDICATE_PARENT, root)
        ]
        assert facts(quads, voc.PREDICATE_CHILD, second) == [Quad(root, voc.PREDICATE_CHILD, second)]
        assert facts(quads, voc.PREDICATE_MODIFIED, second) == [
            Quad(blob_iri(b.blob(b.shas["second"], "a.txt")), voc.PREDICATE_MODIFIED, second, String("a.txt"))
        ]
        assert facts(quads, voc.PREDICATE_ADDED, second) == [
            Quad(blob_iri(b.blob(b.shas["second"], "b.txt")), voc.PREDICATE_ADDED, second, String("b.txt"))
        ]
        paths = sorted(q.label.value for q in facts(quads, voc.PREDICATE_FILE, subject=second))
        assert paths == ["a.txt", "b.txt"]

    def test_delete_commit(self, imported):
        b, quads, _ = imported
        third = commit_iri(b.shas["third"])
        old_blob = blob_iri(b.blob(b.shas["second"], "a.txt"))

        assert facts(quads, voc.PREDICATE_REMOVED, third) == [
            Quad(old_blob, voc.PREDICATE_REMOVED, third, String("a.txt"))
        ]
        paths = [q.label.value for q in facts(quads, voc.PREDICATE_FILE, subject=third)]
        assert paths == ["b.txt"]

    def test_different_author_is_different_person(self, imported):
        b, quads, _ = imported
        third = commit_iri(b.shas["third"])
        (author,) = facts(quads, voc.PREDICATE_AUTHOR, subject=third)
        assert author.object == person_id("Bob", "bob@example.com")


class TestProperties:
    def test_deterministic(self, three_commit_repo):
        first, second = io.StringIO(), io.StringIO()
        import_repository(NQuadsWriter(first), three_commit_repo.path)
        import_repository(NQuadsWriter(second), three_commit_repo.path)
        assert first.getvalue() == second.getvalue()
        assert first.getvalue() != ""

    def test_parent_child_symmetry(self, repo_builder):
        b = repo_builder
        b.write("a.txt", "a\n")
        b.commit("root")
        b.git("checkout", "-q", "-b", "side")
        b.write("s.txt", "s\n")
        b.commit("side")
        b.git("checkout", "-q", "-")
        b.write("m.txt", "m\n")
        b.commit("main")
        b.git("merge", "-q", "--no-ff", "-m", "merge", "side")

        writer = ListWriter()
        import_repository(writer, b.path, config=PLAIN)
        parents = {(q.subject, q.object) for q in facts(writer.quads, voc.PREDICATE_PARENT)}
        children = {(q.object, q.subject) for q in facts(writer.quads, voc.PREDICATE_CHILD)}
        assert parents == children
        assert len(parents) == 4

    def test_change_exclusivity(self, three_commit_repo):
        writer = ListWriter()
        import_repository(writer, three_commit_repo.path, config=PLAIN)
        change_preds = (voc.PREDICATE_ADDED, voc.PREDICATE_REMOVED, voc.PREDICATE_MODIFIED)
        seen = {}
        for q in writer.quads:
            if q.predicate in change_preds:
                key = (q.object, q.label)
                assert key not in seen
                seen[key] = q.predicate
        assert len(seen) == 4

    def test_batch_fallback_equivalence(self, three_commit_repo):
        batched = MemoryQuadStore()
        text = io.StringIO()
        import_repository(batched, three_commit_repo.path)
        import_repository(NQuadsWriter(text), three_commit_repo.path)

        sequential = [parse_nquads_line(line) for line in text.getvalue().splitlines()]
        assert set(sequential) == set(batched)

    def test_reimport_into_same_store_adds_nothing(self, three_commit_repo):
        store = MemoryQuadStore()
        import_repository(store, three_commit_repo.path)
        before = store.quads()
        import_repository(store, three_commit_repo.path)
        assert store.quads() == before


class TestOptions:
    def test_gephi_hints_written_first(self, three_commit_repo):
        writer = ListWriter()
        import_repository(writer, three_commit_repo.path, config=ImportConfig())
        hints = writer.quads[:4]
        assert hints == [Quad(p, voc.PREDICATE_GEPHI_INLINE, Bool(True)) for p in voc.INLINE_PREDICATES]
        assert writer.quads[4].object == voc.TYPE_REPO

    def test_origin_becomes_repository_identity(self, three_commit_repo):
        three_commit_repo.git("remote", "add", "origin", "git@example.com:team/project.git")
        writer = ListWriter()
        import_repository(writer, three_commit_repo.path, config=PLAIN)
        assert writer.quads[0].subject == IRI("git@example.com:team/project.git")

    def test_empty_repository(self, repo_builder):
        writer = ListWriter()
        stats = import_repository(writer, repo_builder.path, config=PLAIN)
        assert stats.commits == 0
        assert len(writer.quads) == 1


class TestFailures:
    def test_unopenable_source_writes_nothing(self, isolated_git, tmp_path):
        writer = ListWriter()
        with pytest.raises(SourceResolutionError):
            import_repository(writer, tmp_path, config=PLAIN)
        assert writer.quads == []

    def test_sink_failure_reports_progress(self, three_commit_repo):
        writer = FailOnSecondCommit()
        repo = GitRepository.open(three_commit_repo.path)
        importer = Importer(writer, repo, config=PLAIN)
        with pytest.raises(SinkError) as info:
            importer.run()

        assert info.value.context["commits_processed"] == 1
        assert info.value.context["stage"] == "commit"
        assert importer.stats.commits == 1
        # facts of the first commit stay written
        assert len(facts(writer.quads, voc.PREDICATE_TYPE, voc.TYPE_COMMIT)) == 1

    def test_cancel_before_first_commit(self, three_commit_repo):
        cancel = threading.Event()
        cancel.set()
        writer = ListWriter()
        with pytest.raises(ImportCancelledError) as info:
            import_repository(writer, three_commit_repo.path, config=PLAIN, cancel=cancel)
        assert info.value.code is ErrorCode.GQ205
        assert info.value.context["commits_processed"] == 0
        assert facts(writer.quads, voc.PREDICATE_COMMIT) == []


class TestReleasesGitProcess:
    """The git log process is released however the walk ends."""

    @pytest.fixture
    def opened(self, monkeypatch):
        iterators = []
        original = GitRepository.iter_commits

        def recording(self):
            it = original(self)
            iterators.append(it)
            return it

        monkeypatch.setattr(GitRepository, "iter_commits", recording)
        return iterators

    @staticmethod
    def assert_released(opened):
        (it,) = opened
        assert it.closed
        assert it._proc is not None
        assert it._proc.poll() is not None

    def test_after_sink_failure(self, three_commit_repo, opened):
        with pytest.raises(SinkError):
            import_repository(FailOnSecondCommit(), three_commit_repo.path, config=PLAIN)
        self.assert_released(opened)

    def test_after_traversal_failure(self, three_commit_repo, opened, monkeypatch):
        def failing_diff(self, from_tree, to_tree):
            raise TraversalError("diff failed", ErrorCode.GQ202)

        monkeypatch.setattr(GitRepository, "diff_trees", failing_diff)
        with pytest.raises(TraversalError) as info:
            import_repository(ListWriter(), three_commit_repo.path, config=PLAIN)
        assert info.value.context["stage"] == "change"
        self.assert_released(opened)

    def test_after_cancel_mid_walk(self, three_commit_repo, opened):
        cancel = threading.Event()

        class CancelAfterFirstCommit(ListWriter):
            def write_quads(self, quads):
                if any(q.object == voc.TYPE_COMMIT for q in quads):
                    cancel.set()
                return super().write_quads(quads)

        with pytest.raises(ImportCancelledError) as info:
            import_repository(
                CancelAfterFirstCommit(), three_commit_repo.path, config=PLAIN, cancel=cancel
            )
        assert info.value.context["commits_processed"] == 1
        self.assert_released(opened)

    def test_after_success(self, three_commit_repo, opened):
        import_repository(ListWriter(), three_commit_repo.path, config=PLAIN)
        self.assert_released(opened)


class TestRawBytes:
    """History whose names and paths are not valid UTF-8."""

    @pytest.fixture
    def latin1_repo(self, repo_builder):
        b = repo_builder
        root = b.raw_commit(
            {b"\xe8.txt": b"grave\n", b"\xe9.txt": b"acute\n"},
            author=(b"Jos\xe9", b"jose@example.com"),
        )
        second = b.raw_commit(
            {b"\xe8.txt": b"grave\n"},
            author=(b"Jos\xe8", b"jose@example.com"),
            parent=root,
        )
        b.shas = {"root": root, "second": second}
        return b

    def test_distinct_paths_get_distinct_labels(self, latin1_repo):
        writer = ListWriter()
        import_repository(writer, latin1_repo.path, config=PLAIN)
        root = commit_iri(latin1_repo.shas["root"])
        second = commit_iri(latin1_repo.shas["second"])

        added = sorted(q.label.value for q in facts(writer.quads, voc.PREDICATE_ADDED, root))
        assert added == ["\udce8.txt", "\udce9.txt"]
        removed = [q.label for q in facts(writer.quads, voc.PREDICATE_REMOVED, second)]
        assert removed == [String("\udce9.txt")]

    def test_names_one_byte_apart_are_different_people(self, latin1_repo):
        writer = ListWriter()
        import_repository(writer, latin1_repo.path, config=PLAIN)
        authors = {q.subject: q.object for q in facts(writer.quads, voc.PREDICATE_AUTHOR)}
        root = commit_iri(latin1_repo.shas["root"])
        second = commit_iri(latin1_repo.shas["second"])

        assert authors[root] != authors[second]
        assert authors[root] == BNode(hashlib.md5(b"Jos\xe9\x00jose@example.com").hexdigest())
        assert authors[second] == BNode(hashlib.md5(b"Jos\xe8\x00jose@example.com").hexdigest())

    def test_destinations_agree(self, latin1_repo, tmp_path):
        text = io.StringIO()
        memory = MemoryQuadStore()
        import_repository(NQuadsWriter(text), latin1_repo.path)
        import_repository(memory, latin1_repo.path)
        with SQLiteQuadStore(tmp_path / "raw.db") as store:
            import_repository(store, latin1_repo.path)
            stored = set(store.quads())

        # raw bytes are escaped, so the output is plain encodable text
        text.getvalue().encode("utf-8")
        parsed = {parse_nquads_line(line) for line in text.getvalue().splitlines()}
        assert parsed == set(memory) == stored
