# src/vaultrag/stores/chroma.py
"""ChromaDB-backed persistent bucket index."""

from pathlib import Path
from typing import Any

import chromadb
import numpy as np

from vaultrag.stores.base import BucketIndex, IndexEntry
from vaultrag.stores.buckets import SUPPORTED_BUCKET_DIMENSIONS


class ChromaBucketIndex(BucketIndex):
    """One HNSW collection (cosine space) per bucket dimension.

    Each collection is named "<prefix>_<bucket>" and stores, per row id, the
    padded vector plus model, natural dimension and path as metadata so that
    queries can be filtered without touching the relational store.
    """

    persistent = True

    def __init__(self, persist_dir: str, collection_prefix: str = "vaultrag") -> None:
        """Initialize the ChromaDB index."""
        Path(persist_dir).mkdir(parents=True, exist_ok=True)
        self._client = chromadb.PersistentClient(path=persist_dir)
        self._prefix = collection_prefix
        self._collections: dict[int, Any] = {}

    def _collection(self, bucket: int) -> Any:
        if bucket not in self._collections:
            self._collections[bucket] = self._client.get_or_create_collection(
                name=f"{self._prefix}_{bucket}",
                metadata={"hnsw:space": "cosine"},
            )
        return self._collections[bucket]

    def close(self) -> None:
        """Close the index and release file handles.

        ChromaDB has no official close method; stopping the internal system is
        needed to avoid 'too many open files' errors in test suites.
        See: https://github.com/chroma-core/chroma/issues/5868
        """
        self._collections.clear()
        try:
            if self._client is not None and hasattr(self._client, "_system"):
                self._client._system.stop()
        except Exception:
            pass  # Best effort cleanup
        self._client = None  # type: ignore[assignment]

    def add(self, bucket: int, entries: list[IndexEntry]) -> None:
        if not entries:
            return
        self._collection(bucket).add(
            ids=[str(e.id) for e in entries],
            embeddings=[np.asarray(e.vector, dtype=np.float32).tolist() for e in entries],
            metadatas=[
                {"model": e.model, "dimension": e.dimension, "path": e.path} for e in entries
            ],
        )

    def remove(self, ids: list[int]) -> None:
        if not ids:
            return
        str_ids = [str(i) for i in ids]
        for bucket in SUPPORTED_BUCKET_DIMENSIONS:
            collection = self._collection(bucket)
            if collection.count() > 0:
                collection.delete(ids=str_ids)

    def query(
        self,
        bucket: int,
        vector: np.ndarray,
        *,
        model: str,
        dimension: int,
        paths: set[str] | None,
        limit: int,
    ) -> list[tuple[int, float]]:
        collection = self._collection(bucket)
        total = collection.count()
        if total == 0 or limit <= 0:
            return []

        conditions: list[dict[str, Any]] = [{"model": model}, {"dimension": dimension}]
        if paths is not None:
            if not paths:
                return []
            conditions.append({"path": {"$in": sorted(paths)}})

        results = collection.query(
            query_embeddings=[np.asarray(vector, dtype=np.float32).tolist()],
            n_results=min(limit, total),
            where={"$and": conditions},
            include=["distances"],
        )

        ids = results["ids"][0]
        distances = results["distances"][0]  # type: ignore[index]
        # Cosine distance -> similarity
        return [(int(i), 1.0 - float(d)) for i, d in zip(ids, distances, strict=True)]

    def count(self) -> int:
        return sum(self._collection(b).count() for b in SUPPORTED_BUCKET_DIMENSIONS)

    def reset(self) -> None:
        # list_collections returns names in newer chromadb, Collection objects in older
        existing = {getattr(c, "name", c) for c in self._client.list_collections()}
        for bucket in SUPPORTED_BUCKET_DIMENSIONS:
            name = f"{self._prefix}_{bucket}"
            if name in existing:
                self._client.delete_collection(name)
        self._collections.clear()
