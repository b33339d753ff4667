# src/vaultrag/models/chunk.py
"""Chunk and section data models."""

from pydantic import BaseModel


class Section(BaseModel):
    """A heading-delimited span of a document (1-based, inclusive lines)."""

    header_path: str = ""  # e.g. "A > B", empty for preamble / headingless docs
    start_line: int
    end_line: int
    content: str


class ChunkMetadata(BaseModel):
    """Line range of a chunk and of the section that owns it."""

    start_line: int
    end_line: int
    parent_start_line: int
    parent_end_line: int
    header_path: str = ""


class IndexedChunk(BaseModel):
    """A bounded piece of a vault file, ready to be embedded."""

    path: str
    mtime: float
    content: str
    metadata: ChunkMetadata
