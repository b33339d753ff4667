# src/vaultrag/stores/base.py
"""Abstract base classes for vector storage."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from vaultrag.models import (
    EmbeddingRecord,
    EmbeddingStats,
    SearchScope,
    SimilarityResult,
    StoredEmbedding,
)
from vaultrag.providers.base import EmbeddingModelClient


class VectorStore(ABC):
    """Abstract base class for embedding storage and similarity search.

    Every operation that reads or deletes rows is scoped to one embedding
    model; rows of other models are never touched.
    """

    @abstractmethod
    def insert_vectors(self, records: list[EmbeddingRecord]) -> None:
        """Append records. No deduplication: callers delete stale rows first."""
        ...

    @abstractmethod
    def delete_vectors_for_files(self, paths: list[str], model: EmbeddingModelClient) -> None:
        """Delete every row of the given files for a model."""
        ...

    @abstractmethod
    def clear_all_vectors(self, model: EmbeddingModelClient) -> None:
        """Delete every row of a model."""
        ...

    @abstractmethod
    def get_vectors_by_file_path(
        self, path: str, model: EmbeddingModelClient
    ) -> list[StoredEmbedding]:
        """Get the stored chunks of a file. Empty if the file is not indexed."""
        ...

    @abstractmethod
    def get_indexed_file_paths(self, model: EmbeddingModelClient) -> list[str]:
        """List every distinct file path indexed for a model."""
        ...

    @abstractmethod
    def perform_similarity_search(
        self,
        query_vector: list[float],
        model: EmbeddingModelClient,
        *,
        min_similarity: float,
        limit: int,
        scope: SearchScope | None = None,
    ) -> list[SimilarityResult]:
        """Return up to limit rows with cosine similarity >= min_similarity.

        Results are ordered by descending similarity and restricted to rows of
        this model whose dimension equals model.dimension, and to scope when given.
        """
        ...

    @abstractmethod
    def get_embedding_stats(self) -> list[EmbeddingStats]:
        """Row counts per (model, dimension)."""
        ...

    @abstractmethod
    def save(self) -> None:
        """Durably persist all changes made so far."""
        ...

    @abstractmethod
    def vacuum(self) -> None:
        """Reclaim space freed by deletes."""
        ...

    def close(self) -> None:
        """Release resources. The store must not be used afterwards."""
        return None


@dataclass
class IndexEntry:
    """One vector as held by a bucket index (already cast to the bucket width)."""

    id: int
    model: str
    dimension: int
    path: str
    vector: np.ndarray


class BucketIndex(ABC):
    """Similarity indexes, one per supported bucket dimension.

    Indexes mirror rows of a VectorStore by row id. They only answer which ids
    are nearest; the store owns the rows themselves.
    """

    persistent: bool = False

    @abstractmethod
    def add(self, bucket: int, entries: list[IndexEntry]) -> None:
        """Index vectors that were cast to the bucket width."""
        ...

    @abstractmethod
    def remove(self, ids: list[int]) -> None:
        """Drop ids from whichever bucket holds them."""
        ...

    @abstractmethod
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
        """Return up to limit (id, cosine similarity) pairs, most similar first.

        Only entries with the given model and natural dimension, and whose path
        is in paths (when not None), are considered.
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Total number of indexed entries across all buckets."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Drop every entry in every bucket."""
        ...

    def close(self) -> None:
        return None
