"""History-to-graph mapping: identities, per-commit quads and the import loop."""

from .identity import blob_iri, commit_iri, person_id
from .importer import Importer, ImportStats
from .mapper import QuadMapper, format_metadata

__all__ = [
    "Importer",
    "ImportStats",
    "QuadMapper",
    "format_metadata",
    "commit_iri",
    "blob_iri",
    "person_id",
]
