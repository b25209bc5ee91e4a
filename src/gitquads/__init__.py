"""
git-quads - Git history as a graph

Converts the commit history of a git repository into subject-predicate-
object-label quads: commits, people and file blobs become nodes, and
authorship, parentage, file membership and changes become edges.
"""

__version__ = "0.3.0"

from .api import import_repository
from .config import ImportConfig, load_config
from .exceptions import GitQuadsError
from .mapping import Importer, ImportStats

__all__ = [
    "import_repository",  # Main entry point
    "Importer",
    "ImportStats",
    "ImportConfig",
    "load_config",
    "GitQuadsError",
]
