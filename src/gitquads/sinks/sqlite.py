"""SQLite-backed quad store.

Each distinct quad is stored once, keyed by the N-Quads text of its four
terms, so re-importing the same history leaves the store unchanged.

Usage:
    with SQLiteQuadStore("history.db") as store:
        import_repository(store, "/path/to/repo")
        print(store.count())
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterator, Sequence, TextIO, Union

from ..exceptions import ErrorCode, SinkError
from ..graph.quad import Quad, parse_nquads_line
from ..logging_config import get_logger

logger = get_logger(__name__)

_SCHEMA_VERSION = 1

_INSERT = "INSERT OR IGNORE INTO quads (subject, predicate, object, label) VALUES (?, ?, ?, ?)"


def _row(quad: Quad) -> tuple[str, str, str, str]:
    label = quad.label.to_nquads() if quad.label is not None else ""
    return (
        quad.subject.to_nquads(),
        quad.predicate.to_nquads(),
        quad.object.to_nquads(),
        label,
    )


class SQLiteQuadStore:
    """Persistent, batch-capable quad store."""

    def __init__(self, db_path: Union[str, Path]):
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row

        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS store_meta (
                key TEXT PRIMARY KEY,
                value TEXT
            );

            CREATE TABLE IF NOT EXISTS quads (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                subject TEXT NOT NULL,
                predicate TEXT NOT NULL,
                object TEXT NOT NULL,
                label TEXT NOT NULL DEFAULT '',
                UNIQUE (subject, predicate, object, label)
            );

            CREATE INDEX IF NOT EXISTS idx_quads_subject ON quads(subject);
            CREATE INDEX IF NOT EXISTS idx_quads_object ON quads(object);
            CREATE INDEX IF NOT EXISTS idx_quads_predicate ON quads(predicate);
            """
        )

        row = self._conn.execute(
            "SELECT value FROM store_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            self._conn.execute(
                "INSERT INTO store_meta (key, value) VALUES ('schema_version', ?)",
                (str(_SCHEMA_VERSION),),
            )
        elif int(row["value"]) != _SCHEMA_VERSION:
            raise SinkError(
                f"Quad store schema version {row['value']} is not supported",
                ErrorCode.GQ300,
                context={"path": str(self._db_path)},
                recovery_hint="Write to a new database file",
            )
        self._conn.commit()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise SinkError("Quad store is closed", ErrorCode.GQ300, context={"path": str(self._db_path)})
        return self._conn

    def write_quad(self, quad: Quad) -> None:
        self.conn.execute(_INSERT, _row(quad))
        self.conn.commit()

    def write_quads(self, quads: Sequence[Quad]) -> int:
        """Write all quads in one transaction.

        On failure nothing from the batch is kept, so the SinkError reports
        zero written.
        """
        conn = self.conn
        try:
            with conn:
                conn.executemany(_INSERT, [_row(q) for q in quads])
        except sqlite3.Error as e:
            raise SinkError(
                f"SQLite write failed: {e}",
                ErrorCode.GQ300,
                context={"path": str(self._db_path), "batch_size": len(quads)},
                written=0,
            ) from e
        return len(quads)

    def count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM quads").fetchone()[0]

    def quads(self) -> Iterator[Quad]:
        """Stored quads in first-written order."""
        cursor = self.conn.execute(
            "SELECT subject, predicate, object, label FROM quads ORDER BY seq"
        )
        for row in cursor:
            terms = [row["subject"], row["predicate"], row["object"]]
            if row["label"]:
                terms.append(row["label"])
            yield parse_nquads_line(" ".join(terms) + " .")

    def dump_nquads(self, stream: TextIO) -> int:
        """Write the whole store as N-Quads; return the number of lines."""
        n = 0
        for quad in self.quads():
            stream.write(quad.to_nquads())
            stream.write("\n")
            n += 1
        return n

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteQuadStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
