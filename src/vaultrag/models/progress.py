# src/vaultrag/models/progress.py
"""Indexing progress model."""

from pydantic import BaseModel


class IndexProgress(BaseModel):
    """Progress snapshot passed to indexing progress callbacks."""

    completed_chunks: int
    total_chunks: int
    total_files: int
    waiting_for_rate_limit: bool = False
