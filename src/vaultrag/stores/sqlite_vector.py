# src/vaultrag/stores/sqlite_vector.py
"""SQLite vector store implementation."""

import json
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import numpy as np

from vaultrag.models import (
    ChunkMetadata,
    EmbeddingRecord,
    EmbeddingStats,
    SearchScope,
    SimilarityResult,
    StoredEmbedding,
)
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.stores.base import BucketIndex, IndexEntry, VectorStore
from vaultrag.stores.bucket_index import NumpyBucketIndex
from vaultrag.stores.buckets import (
    SUPPORTED_BUCKET_DIMENSIONS,
    bucket_for,
    cast_to_bucket,
    normalize,
)

logger = logging.getLogger(__name__)

# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds
_MAX_PARAMS = 500

_COLUMNS = "id, path, mtime, content, model, dimension, embedding, metadata"


def _batched(items: list[Any], size: int = _MAX_PARAMS) -> Iterator[list[Any]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_embedding(row: tuple) -> StoredEmbedding:
    return StoredEmbedding(
        id=row[0],
        path=row[1],
        mtime=row[2],
        content=row[3],
        model=row[4],
        dimension=row[5],
        embedding=json.loads(row[6]),
        metadata=ChunkMetadata.model_validate_json(row[7]),
    )


class SQLiteVectorStore(VectorStore):
    """SQLite-based vector store with per-bucket similarity indexes.

    Rows live in a single ``embeddings`` table; each row carries its model id
    and natural dimension so that models with different widths share the table.
    Rows whose dimension fits a supported bucket are mirrored into a
    BucketIndex; wider rows are searched by sequential scan.
    """

    def __init__(self, db_path: str, index: BucketIndex | None = None) -> None:
        """Initialize the SQLite store.

        Args:
            db_path: Path to the SQLite database file
            index: Bucket index to use. Defaults to an in-memory NumpyBucketIndex,
                   which is rebuilt from the database here.
        """
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._index = index if index is not None else NumpyBucketIndex()
        self._init_db()
        self._sync_index()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS embeddings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL,
                    mtime REAL NOT NULL,
                    content TEXT NOT NULL,
                    model TEXT NOT NULL,
                    dimension INTEGER NOT NULL,
                    embedding TEXT NOT NULL,
                    metadata TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS embeddings_path_index ON embeddings(path)")
            conn.execute("CREATE INDEX IF NOT EXISTS embeddings_model_index ON embeddings(model)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS embeddings_dimension_index ON embeddings(dimension)"
            )
            conn.commit()

    def _sync_index(self) -> None:
        """Rebuild the bucket index if it does not mirror the table."""
        max_bucket = max(SUPPORTED_BUCKET_DIMENSIONS)
        with self._connect() as conn:
            (indexable,) = conn.execute(
                "SELECT COUNT(id) FROM embeddings WHERE dimension <= ?", (max_bucket,)
            ).fetchone()
            if self._index.persistent and self._index.count() == indexable:
                return
            self._index.reset()
            if indexable == 0:
                return
            logger.info("Rebuilding bucket index from %d stored vectors", indexable)
            cursor = conn.execute(
                "SELECT id, model, dimension, path, embedding FROM embeddings WHERE dimension <= ?",
                (max_bucket,),
            )
            while rows := cursor.fetchmany(_MAX_PARAMS):
                self._index_rows(
                    (row[0], row[1], row[2], row[3], json.loads(row[4])) for row in rows
                )

    def _index_rows(self, rows: Iterable[tuple[int, str, int, str, list[float]]]) -> None:
        by_bucket: dict[int, list[IndexEntry]] = defaultdict(list)
        for row_id, model, dimension, path, embedding in rows:
            bucket = bucket_for(dimension)
            if bucket is None:
                continue
            by_bucket[bucket].append(
                IndexEntry(
                    id=row_id,
                    model=model,
                    dimension=dimension,
                    path=path,
                    vector=cast_to_bucket(embedding, bucket),
                )
            )
        for bucket, entries in by_bucket.items():
            self._index.add(bucket, entries)

    def insert_vectors(self, records: list[EmbeddingRecord]) -> None:
        """Append records and index them in their dimension bucket."""
        if not records:
            return
        inserted = []
        with self._connect() as conn:
            for record in records:
                cursor = conn.execute(
                    """
                    INSERT INTO embeddings
                        (path, mtime, content, model, dimension, embedding, metadata)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.path,
                        record.mtime,
                        record.content,
                        record.model,
                        record.dimension,
                        json.dumps(record.embedding),
                        record.metadata.model_dump_json(),
                    ),
                )
                inserted.append(
                    (
                        cursor.lastrowid,
                        record.model,
                        record.dimension,
                        record.path,
                        record.embedding,
                    )
                )
            conn.commit()
        self._index_rows(inserted)

    def _delete_where(self, where: str, params: list[Any]) -> int:
        with self._connect() as conn:
            cursor = conn.execute(f"SELECT id FROM embeddings WHERE {where}", params)
            ids = [row[0] for row in cursor]
            for batch in _batched(ids):
                placeholders = ",".join("?" * len(batch))
                conn.execute(f"DELETE FROM embeddings WHERE id IN ({placeholders})", batch)
            conn.commit()
        self._index.remove(ids)
        return len(ids)

    def delete_vectors_for_files(self, paths: list[str], model: EmbeddingModelClient) -> None:
        """Delete every row of the given files for a model."""
        deleted = 0
        for batch in _batched(list(paths)):
            placeholders = ",".join("?" * len(batch))
            deleted += self._delete_where(
                f"model = ? AND path IN ({placeholders})", [model.id, *batch]
            )
        if deleted:
            logger.debug("Deleted %d vectors for %d file(s)", deleted, len(paths))

    def clear_all_vectors(self, model: EmbeddingModelClient) -> None:
        """Delete every row of a model."""
        deleted = self._delete_where("model = ?", [model.id])
        logger.info("Cleared %d vectors for model %s", deleted, model.id)

    def get_vectors_by_file_path(
        self, path: str, model: EmbeddingModelClient
    ) -> list[StoredEmbedding]:
        """Get the stored chunks of a file, in insertion order."""
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM embeddings WHERE path = ? AND model = ? ORDER BY id",
                (path, model.id),
            )
            return [_row_to_embedding(row) for row in cursor.fetchall()]

    def get_indexed_file_paths(self, model: EmbeddingModelClient) -> list[str]:
        """List every distinct file path indexed for a model."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT DISTINCT path FROM embeddings WHERE model = ? ORDER BY path",
                (model.id,),
            )
            return [row[0] for row in cursor.fetchall()]

    def _resolve_scope(
        self, model: EmbeddingModelClient, scope: SearchScope | None
    ) -> set[str] | None:
        """Expand a scope into the concrete set of indexed paths it covers."""
        if scope is None or scope.is_empty:
            return None

        conditions = []
        params: list[Any] = [model.id]
        if scope.files:
            conditions.append(f"path IN ({','.join('?' * len(scope.files))})")
            params.extend(scope.files)
        for folder in scope.folders:
            folder = folder.strip("/")
            if not folder:
                return None  # the vault root covers everything
            conditions.append("path LIKE ? ESCAPE '\\'")
            params.append(f"{_escape_like(folder)}/%")

        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT DISTINCT path FROM embeddings "
                f"WHERE model = ? AND ({' OR '.join(conditions)})",
                params,
            )
            return {row[0] for row in cursor.fetchall()}

    def _sequential_scan(
        self,
        query_vector: list[float],
        model: EmbeddingModelClient,
        paths: set[str] | None,
        limit: int,
    ) -> list[tuple[int, float]]:
        """Brute-force cosine similarity for dimensions without a bucket index."""
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT id, path, embedding FROM embeddings WHERE model = ? AND dimension = ?",
                (model.id, model.dimension),
            )
            rows = [row for row in cursor.fetchall() if paths is None or row[1] in paths]
        if not rows:
            return []

        matrix = normalize(np.array([json.loads(row[2]) for row in rows], dtype=np.float32))
        similarities = matrix @ normalize(np.asarray(query_vector, dtype=np.float32))
        order = np.argsort(-similarities, kind="stable")[:limit]
        return [(int(rows[i][0]), float(similarities[i])) for i in order]

    def perform_similarity_search(
        self,
        query_vector: list[float],
        model: EmbeddingModelClient,
        *,
        min_similarity: float,
        limit: int,
        scope: SearchScope | None = None,
    ) -> list[SimilarityResult]:
        """Return the most similar rows of a model, most similar first.

        Raises:
            ValueError: If the query vector does not match the model dimension
        """
        if len(query_vector) != model.dimension:
            raise ValueError(
                f"Query vector has dimension {len(query_vector)}, "
                f"model {model.id} expects {model.dimension}"
            )
        if limit <= 0:
            return []

        paths = self._resolve_scope(model, scope)
        if paths is not None and not paths:
            return []

        bucket = bucket_for(model.dimension)
        if bucket is not None:
            hits = self._index.query(
                bucket,
                cast_to_bucket(query_vector, bucket),
                model=model.id,
                dimension=model.dimension,
                paths=paths,
                limit=limit,
            )
        else:
            hits = self._sequential_scan(query_vector, model, paths, limit)

        hits = [(row_id, score) for row_id, score in hits if score >= min_similarity]
        if not hits:
            return []

        ids = [row_id for row_id, _ in hits]
        with self._connect() as conn:
            placeholders = ",".join("?" * len(ids))
            cursor = conn.execute(
                f"SELECT id, path, mtime, content, model, dimension, metadata "
                f"FROM embeddings WHERE id IN ({placeholders})",
                ids,
            )
            rows = {row[0]: row for row in cursor.fetchall()}

        results = []
        for row_id, score in hits:
            row = rows.get(row_id)
            if row is None:
                continue
            results.append(
                SimilarityResult(
                    id=row[0],
                    path=row[1],
                    mtime=row[2],
                    content=row[3],
                    model=row[4],
                    dimension=row[5],
                    metadata=ChunkMetadata.model_validate_json(row[6]),
                    similarity=score,
                )
            )
        return results

    def get_embedding_stats(self) -> list[EmbeddingStats]:
        """Row counts and approximate data size per (model, dimension)."""
        with self._connect() as conn:
            cursor = conn.execute("""
                SELECT model, dimension, COUNT(id), COUNT(DISTINCT path),
                       COALESCE(SUM(LENGTH(content) + LENGTH(embedding) + LENGTH(metadata)), 0)
                FROM embeddings
                GROUP BY model, dimension
                ORDER BY model, dimension
            """)
            return [
                EmbeddingStats(
                    model=row[0],
                    dimension=row[1],
                    row_count=row[2],
                    file_count=row[3],
                    total_data_bytes=row[4],
                )
                for row in cursor.fetchall()
            ]

    def save(self) -> None:
        """Checkpoint the write-ahead log into the main database file."""
        with self._connect() as conn:
            conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")

    def vacuum(self) -> None:
        """Rebuild the database file to release unused space."""
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        try:
            conn.execute("VACUUM")
        finally:
            conn.close()

    def close(self) -> None:
        self._index.close()
