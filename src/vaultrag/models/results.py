# src/vaultrag/models/results.py
"""Result data models for indexing runs and similarity queries."""

from pydantic import BaseModel, Field

from vaultrag.models.chunk import ChunkMetadata


class SearchScope(BaseModel):
    """Restricts a similarity search to specific files and/or folders."""

    files: list[str] = Field(default_factory=list)
    folders: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.folders


class SimilarityResult(BaseModel):
    """A stored chunk (without its vector) and its cosine similarity to the query."""

    id: int
    path: str
    mtime: float
    content: str
    model: str
    dimension: int
    metadata: ChunkMetadata
    similarity: float


class ChunkFailure(BaseModel):
    """A chunk that could not be embedded."""

    path: str
    metadata: ChunkMetadata
    error: str


class FileFailure(BaseModel):
    """A file that could not be read or chunked."""

    path: str
    error: str


class IndexResult(BaseModel):
    """Outcome of one update_vault_index run."""

    files_indexed: int = 0
    chunks_total: int = 0
    chunks_embedded: int = 0
    deleted_paths: list[str] = Field(default_factory=list)
    failed_files: list[FileFailure] = Field(default_factory=list)
    failed_chunks: list[ChunkFailure] = Field(default_factory=list)
    save_error: str | None = None

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_files or self.failed_chunks)

    def diagnostic(self) -> str:
        """Single end-of-run report listing every failed file and chunk."""
        parts = []
        if self.failed_files:
            parts.append(
                f"Failed to process {len(self.failed_files)} file(s):\n\n"
                + "\n\n".join(f"File: {f.path}\nError: {f.error}" for f in self.failed_files)
            )
        if self.failed_chunks:
            parts.append(
                f"Failed to embed {len(self.failed_chunks)} chunk(s):\n\n"
                + "\n\n".join(
                    f"File: {c.path} (lines {c.metadata.start_line}-{c.metadata.end_line})\n"
                    f"Error: {c.error}"
                    for c in self.failed_chunks
                )
            )
        return "\n\n".join(parts)
