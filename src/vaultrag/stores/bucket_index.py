# src/vaultrag/stores/bucket_index.py
"""In-memory exact bucket index backed by numpy matrices."""

import numpy as np

from vaultrag.stores.base import BucketIndex, IndexEntry
from vaultrag.stores.buckets import bucket_dtype, normalize


class _Bucket:
    """Entries of one bucket plus a lazily rebuilt matrix of them."""

    def __init__(self, width: int) -> None:
        self.width = width
        self.entries: dict[int, IndexEntry] = {}
        self._dirty = True
        self._ids = np.empty(0, dtype=np.int64)
        self._models = np.empty(0, dtype=object)
        self._dimensions = np.empty(0, dtype=np.int64)
        self._paths = np.empty(0, dtype=object)
        self._matrix = np.empty((0, width), dtype=bucket_dtype(width))

    def mark_dirty(self) -> None:
        self._dirty = True

    def arrays(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        if self._dirty:
            entries = list(self.entries.values())
            self._ids = np.array([e.id for e in entries], dtype=np.int64)
            self._models = np.array([e.model for e in entries], dtype=object)
            self._dimensions = np.array([e.dimension for e in entries], dtype=np.int64)
            self._paths = np.array([e.path for e in entries], dtype=object)
            if entries:
                # Rows are stored unit-length so a dot product is the cosine similarity
                matrix = normalize(np.stack([e.vector for e in entries]))
                self._matrix = matrix.astype(bucket_dtype(self.width))
            else:
                self._matrix = np.empty((0, self.width), dtype=bucket_dtype(self.width))
            self._dirty = False
        return self._ids, self._models, self._dimensions, self._paths, self._matrix


class NumpyBucketIndex(BucketIndex):
    """Exact cosine-similarity index kept in memory, one matrix per bucket.

    Half-precision buckets keep their matrix in float16 and compute the
    similarity in float32. The index is rebuilt from the store on startup.
    """

    persistent = False

    def __init__(self) -> None:
        self._buckets: dict[int, _Bucket] = {}
        self._bucket_of: dict[int, int] = {}

    def add(self, bucket: int, entries: list[IndexEntry]) -> None:
        if not entries:
            return
        target = self._buckets.setdefault(bucket, _Bucket(bucket))
        for entry in entries:
            if entry.vector.shape[0] != bucket:
                raise ValueError(
                    f"Entry {entry.id} has width {entry.vector.shape[0]}, expected {bucket}"
                )
            target.entries[entry.id] = entry
            self._bucket_of[entry.id] = bucket
        target.mark_dirty()

    def remove(self, ids: list[int]) -> None:
        for row_id in ids:
            bucket = self._bucket_of.pop(row_id, None)
            if bucket is None:
                continue
            target = self._buckets[bucket]
            target.entries.pop(row_id, None)
            target.mark_dirty()

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
        target = self._buckets.get(bucket)
        if target is None or not target.entries or limit <= 0:
            return []

        ids, models, dimensions, row_paths, matrix = target.arrays()
        mask = (models == model) & (dimensions == dimension)
        if paths is not None:
            mask &= np.array([p in paths for p in row_paths], dtype=bool)
        if not mask.any():
            return []

        query = normalize(np.asarray(vector, dtype=np.float32))
        similarities = matrix[mask].astype(np.float32) @ query
        candidate_ids = ids[mask]

        order = np.argsort(-similarities, kind="stable")[:limit]
        return [(int(candidate_ids[i]), float(similarities[i])) for i in order]

    def count(self) -> int:
        return len(self._bucket_of)

    def reset(self) -> None:
        self._buckets.clear()
        self._bucket_of.clear()
