# src/vaultrag/embedder/__init__.py
"""Embedding pipeline for vaultrag."""

from vaultrag.embedder.pipeline import (
    DEFAULT_BATCH_SIZE,
    EmbeddingPipeline,
    EmbeddingRunResult,
    ProgressCallback,
    embedding_text,
)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "EmbeddingPipeline",
    "EmbeddingRunResult",
    "ProgressCallback",
    "embedding_text",
]
