"""Fixed predicate and type vocabulary.

Downstream consumers query the graph by these IRIs, so they are constants
of the process and are never read from configuration.
"""

from __future__ import annotations

from types import MappingProxyType

from .quad import IRI

PREDICATE_TYPE = IRI("rdf:type")

TYPE_REPO = IRI("git:Repo")
TYPE_COMMIT = IRI("git:Commit")
TYPE_PERSON = IRI("git:Person")
TYPE_FILE = IRI("git:File")

PREDICATE_COMMIT = IRI("git:commit")
PREDICATE_AUTHOR = IRI("git:author")
PREDICATE_COMMITTER = IRI("git:committer")
PREDICATE_PARENT = IRI("git:parent")
PREDICATE_CHILD = IRI("git:child")
PREDICATE_FILE = IRI("git:file")
PREDICATE_ADDED = IRI("git:added")
PREDICATE_REMOVED = IRI("git:removed")
PREDICATE_MODIFIED = IRI("git:modified")
PREDICATE_MESSAGE = IRI("git:message")
PREDICATE_METADATA = IRI("git:metadata")
PREDICATE_NAME = IRI("schema:name")
PREDICATE_EMAIL = IRI("schema:email")

# Gephi reads predicates flagged with gephi:inline as node attributes
# instead of drawing them as edges.
PREDICATE_GEPHI_INLINE = IRI("gephi:inline")

INLINE_PREDICATES = (
    PREDICATE_MESSAGE,
    PREDICATE_METADATA,
    PREDICATE_NAME,
    PREDICATE_EMAIL,
)

VOCABULARY = MappingProxyType(
    {
        "type": PREDICATE_TYPE,
        "Repo": TYPE_REPO,
        "Commit": TYPE_COMMIT,
        "Person": TYPE_PERSON,
        "File": TYPE_FILE,
        "commit": PREDICATE_COMMIT,
        "author": PREDICATE_AUTHOR,
        "committer": PREDICATE_COMMITTER,
        "parent": PREDICATE_PARENT,
        "child": PREDICATE_CHILD,
        "file": PREDICATE_FILE,
        "added": PREDICATE_ADDED,
        "removed": PREDICATE_REMOVED,
        "modified": PREDICATE_MODIFIED,
        "message": PREDICATE_MESSAGE,
        "metadata": PREDICATE_METADATA,
        "name": PREDICATE_NAME,
        "email": PREDICATE_EMAIL,
    }
)
