"""Public API for git-quads.

Example:
    >>> from gitquads import import_repository
    >>> from gitquads.sinks import MemoryQuadStore
    >>>
    >>> store = MemoryQuadStore()
    >>> stats = import_repository(store, "/path/to/repo")
    >>> stats.commits
    42
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Union

from .config import ImportConfig, load_config
from .history.git_repository import GitRepository
from .logging_config import get_logger
from .mapping.importer import Importer, ImportStats

logger = get_logger(__name__)


def import_repository(
    writer,
    path: Union[str, Path],
    config: Optional[ImportConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> ImportStats:
    """Write the full history of the repository at ``path`` as quads.

    Args:
        writer: Destination with ``write_quad`` and/or ``write_quads``
        path: Repository work tree or bare repository
        config: Import configuration (defaults to ``load_config()``)
        cancel: Optional event; once set, the import stops before the next commit

    Returns:
        ImportStats with the number of commits and quads written

    Raises:
        SourceResolutionError: The repository can't be opened; nothing was written
        TraversalError: Reading history failed mid-run
        SinkError: The destination rejected a write

        Errors raised mid-run carry ``context["commits_processed"]``.
        Facts written before the failure stay in the destination.
    """
    if config is None:
        config = load_config()

    repository = GitRepository.open(
        path,
        git_executable=config.git_executable,
        timeout=config.git_timeout_seconds,
    )
    return Importer(writer, repository, config=config, cancel=cancel).run()
