# src/vaultrag/__init__.py
"""vaultrag - Incremental vector index for Markdown vaults.

Splits Markdown notes into heading sections and bounded leaf chunks, embeds
only the files that changed since the last run, and answers similarity
queries scoped to files or folders.

Quick Start (LiteLLM + local vault):
    import asyncio

    from vaultrag import IndexOptions, LocalVault, Retriever, SQLiteVectorStore, VectorIndexer
    from vaultrag.providers.litellm import EmbeddingModels, LiteLLMEmbeddingModelClient

    model = LiteLLMEmbeddingModelClient.from_known_model(EmbeddingModels.TEXT_3_SMALL)
    indexer = VectorIndexer(LocalVault("./notes"), SQLiteVectorStore("./.vaultrag/vectors.db"))

    # Index new and modified files
    result = asyncio.run(indexer.update_vault_index(model, IndexOptions()))

    # Query
    retriever = Retriever(indexer.store, model)
    hits = asyncio.run(retriever.search("What is..."))
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("vaultrag")
except PackageNotFoundError:
    # Development / source-tree fallback (e.g. running tests without installing the wheel).
    try:
        import tomllib
        from pathlib import Path

        def _read_version_from_pyproject() -> str | None:
            for parent in Path(__file__).resolve().parents:
                pyproject = parent / "pyproject.toml"
                if pyproject.exists():
                    data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
                    version = data.get("project", {}).get("version")
                    return str(version) if version is not None else None
            return None

        __version__ = _read_version_from_pyproject() or "unknown"
    except (OSError, ValueError):
        __version__ = "unknown"

from vaultrag.change_detector import ChangeDetector
from vaultrag.chunking import LeafChunker, split_markdown_into_sections
from vaultrag.embedder import EmbeddingPipeline
from vaultrag.exceptions import (
    AllFilesFailedError,
    BatchFailedError,
    ConfigurationError,
    IndexingError,
    ProviderError,
    ProviderErrorKind,
)
from vaultrag.indexer import IndexState, VectorIndexer
from vaultrag.models import (
    ChunkMetadata,
    EmbeddingRecord,
    EmbeddingStats,
    IndexedChunk,
    IndexProgress,
    IndexResult,
    SearchScope,
    Section,
    SimilarityResult,
    StoredEmbedding,
)
from vaultrag.providers import EmbeddingModelClient, LiteLLMEmbeddingModelClient
from vaultrag.retriever import Retriever
from vaultrag.retry import RetryPolicy, retry_async
from vaultrag.settings import IndexOptions, SearchOptions, Settings
from vaultrag.stores import (
    BucketIndex,
    ChromaBucketIndex,
    NumpyBucketIndex,
    SQLiteVectorStore,
    VectorStore,
)
from vaultrag.vault import LocalVault, Vault, VaultFile

__all__ = [
    "__version__",
    # Orchestration
    "VectorIndexer",
    "IndexState",
    "ChangeDetector",
    "EmbeddingPipeline",
    "Retriever",
    # Chunking
    "LeafChunker",
    "split_markdown_into_sections",
    # Models
    "Section",
    "ChunkMetadata",
    "IndexedChunk",
    "EmbeddingRecord",
    "StoredEmbedding",
    "EmbeddingStats",
    "IndexProgress",
    "IndexResult",
    "SearchScope",
    "SimilarityResult",
    # Options
    "Settings",
    "IndexOptions",
    "SearchOptions",
    "RetryPolicy",
    "retry_async",
    # Errors
    "ProviderError",
    "ProviderErrorKind",
    "IndexingError",
    "ConfigurationError",
    "AllFilesFailedError",
    "BatchFailedError",
    # Providers
    "EmbeddingModelClient",
    "LiteLLMEmbeddingModelClient",
    # Stores
    "VectorStore",
    "SQLiteVectorStore",
    "BucketIndex",
    "NumpyBucketIndex",
    "ChromaBucketIndex",
    # Vaults
    "Vault",
    "VaultFile",
    "LocalVault",
]
