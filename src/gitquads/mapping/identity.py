"""Content-derived node identifiers.

Identifiers are pure functions of git content, so importing the same
history twice yields the same nodes.
"""

from __future__ import annotations

import hashlib

from ..graph.quad import IRI, BNode

HASH_PREFIX = "sha1:"


def hash_iri(hex_hash: str) -> IRI:
    """IRI of a git object: ``sha1:`` followed by its lowercase hex hash."""
    return IRI(HASH_PREFIX + hex_hash.lower())


def commit_iri(hex_hash: str) -> IRI:
    return hash_iri(hex_hash)


def blob_iri(hex_hash: str) -> IRI:
    return hash_iri(hex_hash)


def person_id(name: str, email: str) -> BNode:
    """Blank node for a person.

    Signatures with the same literal name and email map to the same node.
    The digest covers the raw signature bytes, including bytes that were not
    valid UTF-8 when read from git.
    """
    digest = hashlib.md5(
        (name + "\x00" + email).encode("utf-8", errors="surrogateescape"),
        usedforsecurity=False,
    ).hexdigest()
    return BNode(digest)
