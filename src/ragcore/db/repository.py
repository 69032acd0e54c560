"""Persistent corpus store: SQLite records + sqlite-vec nearest-neighbour index.

Records live in ``corpus_records`` (embedding kept as JSON so the exact
fallback path can read it back). The vec table for the configured embedding
model mirrors each record with ``rowid = corpus_records.id``.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from ragcore.db.base import CorpusStore
from ragcore.db.models import CorpusRecord
from ragcore.db.vectors import (
    ensure_vec_table,
    model_to_slug,
    vec_table_exists,
    vec_table_name,
)
from ragcore.errors import RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)

# sqlite-vec rejects KNN queries with k above this.
KNN_MAX_K = 4096

_RECORD_COLUMNS = (
    "id, content, embedding, source, chunk_index, metadata, created_at, updated_at"
)


class SqliteCorpusStore(CorpusStore):
    """Corpus store backed by an open sqlite3 connection with sqlite-vec loaded.

    The connection is owned by the caller and must be closed after use.
    The vec table is created on first insert, sized to that batch's vectors.
    """

    supports_index = True

    def __init__(self, conn: sqlite3.Connection, embedding_model: str) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see ragcore.db.schema.initialize).
            embedding_model: Model string whose vec table this store reads and writes.
        """
        self._conn = conn
        self._slug = model_to_slug(embedding_model)
        self.vec_table = vec_table_name(self._slug)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_many(self, records: list[CorpusRecord]) -> int:
        """Insert *records* in one transaction; any failure rolls back the batch."""
        if not records:
            return 0
        try:
            ensure_vec_table(self._conn, self._slug, len(records[0].embedding))
            with self._conn:
                for record in records:
                    cur = self._conn.execute(
                        """
                        INSERT INTO corpus_records
                            (content, embedding, source, chunk_index, metadata)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            record.content,
                            json.dumps(record.embedding),
                            record.source,
                            record.chunk_index,
                            json.dumps(record.metadata),
                        ),
                    )
                    record_id = cur.lastrowid
                    self._conn.execute(
                        f"INSERT INTO {self.vec_table}(rowid, source, embedding) VALUES (?, ?, ?)",
                        (record_id, record.source, json.dumps(record.embedding)),
                    )
                    record.id = record_id
        except (sqlite3.Error, ValueError) as exc:
            for record in records:
                record.id = None
            raise StoreError(f"Failed to insert {len(records)} corpus records: {exc}") from exc

        stamps = self._conn.execute(
            "SELECT id, created_at, updated_at FROM corpus_records WHERE id BETWEEN ? AND ?",
            (records[0].id, records[-1].id),
        ).fetchall()
        by_id = {row["id"]: row for row in stamps}
        for record in records:
            record.created_at = by_id[record.id]["created_at"]
            record.updated_at = by_id[record.id]["updated_at"]
        logger.debug("[STORE] Inserted %d records into %s", len(records), self.vec_table)
        return len(records)

    def delete_where(self, source: str | None = None) -> int:
        """Delete records (and their vectors) for *source*, or everything if None."""
        where, params = _source_clause(source)
        try:
            with self._conn:
                ids = [
                    r[0]
                    for r in self._conn.execute(
                        f"SELECT id FROM corpus_records{where}", params
                    ).fetchall()
                ]
                if not ids:
                    return 0
                for table in self._vec_tables():
                    self._conn.executemany(
                        f"DELETE FROM [{table}] WHERE rowid = ?",  # noqa: S608
                        [(i,) for i in ids],
                    )
                cur = self._conn.execute(f"DELETE FROM corpus_records{where}", params)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to delete corpus records: {exc}") from exc
        logger.debug("[STORE] Deleted %d records (source=%s)", cur.rowcount, source)
        return cur.rowcount

    def update_one(
        self,
        record_id: int,
        content: str,
        embedding: list[float],
        source: str | None = None,
    ) -> CorpusRecord:
        existing = self.get(record_id)
        if existing is None:
            raise RecordNotFoundError(record_id)
        new_source = source if source is not None else existing.source
        try:
            ensure_vec_table(self._conn, self._slug, len(embedding))
            with self._conn:
                self._conn.execute(
                    """
                    UPDATE corpus_records
                    SET content = ?, embedding = ?, source = ?, updated_at = datetime('now')
                    WHERE id = ?
                    """,
                    (content, json.dumps(embedding), new_source, record_id),
                )
                # vec0 partition keys are fixed per row: replace the row outright.
                self._conn.execute(
                    f"DELETE FROM {self.vec_table} WHERE rowid = ?", (record_id,)
                )
                self._conn.execute(
                    f"INSERT INTO {self.vec_table}(rowid, source, embedding) VALUES (?, ?, ?)",
                    (record_id, new_source, json.dumps(embedding)),
                )
        except (sqlite3.Error, ValueError) as exc:
            raise StoreError(f"Failed to update corpus record {record_id}: {exc}") from exc
        return self.get(record_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, record_id: int) -> CorpusRecord | None:
        """Return a record by id, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM corpus_records WHERE id = ?", (record_id,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def fetch(self, source: str | None = None) -> list[CorpusRecord]:
        where, params = _source_clause(source)
        rows = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM corpus_records{where} ORDER BY id", params
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    def search_index(
        self,
        embedding: list[float],
        top_k: int,
        source: str | None = None,
    ) -> list[tuple[CorpusRecord, float]]:
        """KNN query against the vec table. Returns (record, cosine distance) pairs.

        At most ``KNN_MAX_K`` pairs come back regardless of *top_k*. Rows tied
        with the last kept distance are resolved by insertion order, so the
        query widens ``k`` until the tie at the cutoff is fully covered.

        Raises:
            StoreError: If no vec table exists yet for the embedding model.
            sqlite3.Error: On query failure (e.g. dimension mismatch).
        """
        if not vec_table_exists(self._conn, self.vec_table):
            raise StoreError(f"No vector index '{self.vec_table}'; corpus is empty.")
        if top_k < 1:
            return []

        limit = min(top_k, KNN_MAX_K)
        k = limit
        while True:
            vec_rows = self._knn(embedding, k, source)
            if len(vec_rows) < k or k == KNN_MAX_K:
                break
            if vec_rows[-1]["distance"] > vec_rows[limit - 1]["distance"]:
                break
            k = min(k * 2, KNN_MAX_K)
        if not vec_rows:
            return []

        ids = [r["rowid"] for r in vec_rows]
        rows = self._conn.execute(
            f"SELECT {_RECORD_COLUMNS} FROM corpus_records WHERE id IN ({','.join('?' * len(ids))})",
            ids,
        ).fetchall()
        records = {row["id"]: _row_to_record(row) for row in rows}

        results = [
            (records[r["rowid"]], r["distance"]) for r in vec_rows if r["rowid"] in records
        ]
        # Equal distances resolve to the earlier insert.
        results.sort(key=lambda pair: (pair[1], pair[0].id))
        return results[:limit]

    def _knn(self, embedding: list[float], k: int, source: str | None) -> list[sqlite3.Row]:
        sql = f"SELECT rowid, distance FROM {self.vec_table} WHERE embedding MATCH ? AND k = ?"
        params: list = [json.dumps(embedding), k]
        if source is not None:
            sql += " AND source = ?"
            params.append(source)
        return self._conn.execute(sql + " ORDER BY distance", params).fetchall()

    def _vec_tables(self) -> list[str]:
        return [
            r[0]
            for r in self._conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name LIKE 'vec_corpus_%' "
                "AND sql LIKE 'CREATE VIRTUAL TABLE%'"
            ).fetchall()
        ]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _source_clause(source: str | None) -> tuple[str, tuple]:
    if source is None:
        return "", ()
    return " WHERE source = ?", (source,)


def _row_to_record(row: sqlite3.Row) -> CorpusRecord:
    return CorpusRecord(
        id=row["id"],
        content=row["content"],
        embedding=json.loads(row["embedding"]),
        source=row["source"],
        chunk_index=row["chunk_index"],
        metadata=json.loads(row["metadata"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
