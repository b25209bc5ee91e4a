"""Destinations for the quad stream and the batching adapter."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .base import BatchedSink, BatchQuadWriter, QuadWriter
from .memory import MemoryQuadStore
from .nquads import NQuadsWriter
from .sqlite import SQLiteQuadStore

SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")


@contextmanager
def open_destination(target: Union[str, Path]) -> Iterator[Union[NQuadsWriter, SQLiteQuadStore]]:
    """Open a destination by name and close it when the block ends.

    ``-`` is N-Quads on stdout, a ``.db``/``.sqlite`` path is a SQLite
    store, anything else is an N-Quads file.
    """
    if str(target) == "-":
        writer = NQuadsWriter(sys.stdout)
        try:
            yield writer
        finally:
            writer.flush()
        return

    path = Path(target)
    if path.suffix.lower() in SQLITE_SUFFIXES:
        with SQLiteQuadStore(path) as store:
            yield store
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        yield NQuadsWriter(f)


__all__ = [
    "BatchedSink",
    "BatchQuadWriter",
    "QuadWriter",
    "MemoryQuadStore",
    "NQuadsWriter",
    "SQLiteQuadStore",
    "open_destination",
]
