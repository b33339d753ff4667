# src/vaultrag/models/embedding.py
"""Embedding record models."""

from pydantic import BaseModel, model_validator

from vaultrag.models.chunk import IndexedChunk


class EmbeddingRecord(IndexedChunk):
    """An IndexedChunk paired with its embedding for one model."""

    model: str
    dimension: int
    embedding: list[float]

    @model_validator(mode="after")
    def _check_dimension(self) -> "EmbeddingRecord":
        if len(self.embedding) != self.dimension:
            raise ValueError(
                f"embedding has {len(self.embedding)} values, expected {self.dimension}"
            )
        return self


class StoredEmbedding(EmbeddingRecord):
    """An EmbeddingRecord as persisted, with its surrogate row id."""

    id: int


class EmbeddingStats(BaseModel):
    """Aggregate row counts for one (model, dimension) partition."""

    model: str
    dimension: int
    row_count: int
    file_count: int
    total_data_bytes: int
