# src/vaultrag/models/__init__.py
"""Data models for vaultrag."""

from vaultrag.models.chunk import ChunkMetadata, IndexedChunk, Section
from vaultrag.models.embedding import EmbeddingRecord, EmbeddingStats, StoredEmbedding
from vaultrag.models.progress import IndexProgress
from vaultrag.models.results import (
    ChunkFailure,
    FileFailure,
    IndexResult,
    SearchScope,
    SimilarityResult,
)

__all__ = [
    "ChunkMetadata",
    "IndexedChunk",
    "Section",
    "EmbeddingRecord",
    "StoredEmbedding",
    "EmbeddingStats",
    "IndexProgress",
    "SearchScope",
    "SimilarityResult",
    "ChunkFailure",
    "FileFailure",
    "IndexResult",
]
