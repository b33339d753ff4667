# src/vaultrag/indexer.py
"""Incremental indexing of a vault into a vector store."""

import asyncio
import logging
from enum import Enum

from vaultrag.change_detector import ChangeDetector
from vaultrag.chunking import LeafChunker, split_markdown_into_sections
from vaultrag.embedder import DEFAULT_BATCH_SIZE, EmbeddingPipeline, ProgressCallback
from vaultrag.exceptions import AllFilesFailedError, BatchFailedError
from vaultrag.models import (
    ChunkFailure,
    EmbeddingStats,
    FileFailure,
    IndexedChunk,
    IndexResult,
    SearchScope,
    SimilarityResult,
)
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.retry import RetryPolicy
from vaultrag.settings import IndexOptions
from vaultrag.stores.base import VectorStore
from vaultrag.vault.base import Vault, VaultFile

logger = logging.getLogger(__name__)


class IndexState(Enum):
    """Phase of the current indexing run."""

    IDLE = "idle"
    DETERMINING_FILES = "determining_files"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    FAILED = "failed"


class VectorIndexer:
    """Keeps the vector store in step with the vault.

    Pipeline:
    1. Purge rows of deleted files (or clear everything when reindexing all)
    2. Select new and modified files and drop their old rows
    3. Split each file into header sections, then into leaf chunks
    4. Embed the chunks in batches and persist them
    5. Save the store

    Example:
        indexer = VectorIndexer(LocalVault("./notes"), SQLiteVectorStore("index.db"))
        result = await indexer.update_vault_index(client, IndexOptions())
    """

    def __init__(
        self,
        vault: Vault,
        store: VectorStore,
        retry_policy: RetryPolicy | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """Initialize the indexer.

        Args:
            vault: Source of Markdown files
            store: Vector store receiving the embeddings
            retry_policy: Backoff policy for rate-limited embedding calls
            batch_size: Chunks embedded concurrently per batch
        """
        self.vault = vault
        self.store = store
        self.change_detector = ChangeDetector(vault, store)
        self.pipeline = EmbeddingPipeline(store, batch_size=batch_size, retry_policy=retry_policy)
        self.state = IndexState.IDLE

    async def update_vault_index(
        self,
        model: EmbeddingModelClient,
        options: IndexOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> IndexResult:
        """Bring the index for a model up to date with the vault.

        Per-file and per-chunk failures do not abort the run; they are
        returned in the result and logged once at the end. The store is saved
        on every exit path.

        Args:
            model: Embedding model client the index is scoped to
            options: Chunking and file selection options
            on_progress: Optional callback receiving IndexProgress snapshots

        Returns:
            IndexResult with counts, deleted paths and failures

        Raises:
            AllFilesFailedError: If every candidate file failed to read or chunk
            BatchFailedError: If a whole embedding batch failed
            ConfigurationError: If the provider credentials are missing or invalid
        """
        options = options or IndexOptions()
        result = IndexResult()
        try:
            await self._update(model, options, result, on_progress)
        except Exception:
            self.state = IndexState.FAILED
            self._save(result)
            raise

        self.state = IndexState.PERSISTING
        self._save(result)
        self.state = IndexState.IDLE
        return result

    async def _update(
        self,
        model: EmbeddingModelClient,
        options: IndexOptions,
        result: IndexResult,
        on_progress: ProgressCallback | None,
    ) -> None:
        self.state = IndexState.DETERMINING_FILES
        if options.reindex_all:
            files = await self.change_detector.get_files_to_index(
                model, options.exclude_patterns, options.include_patterns, reindex_all=True
            )
            self.store.clear_all_vectors(model)
        else:
            result.deleted_paths = self.change_detector.delete_vectors_for_deleted_files(model)
            files = await self.change_detector.get_files_to_index(
                model, options.exclude_patterns, options.include_patterns
            )
            if files:
                self.store.delete_vectors_for_files([f.path for f in files], model)

        if not files:
            logger.info("Index for %s is up to date", model.id)
            return

        logger.info("Indexing %d file(s) with %s", len(files), model.id)

        self.state = IndexState.CHUNKING
        chunks, failures = await self._chunk_files(files, options)
        result.failed_files = failures
        if len(failures) == len(files):
            logger.error(result.diagnostic())
            raise AllFilesFailedError(failures)

        result.files_indexed = len(files) - len(failures)
        result.chunks_total = len(chunks)

        if chunks:
            self.state = IndexState.EMBEDDING
            try:
                run = await self.pipeline.run(
                    chunks, model, total_files=len(files), on_progress=on_progress
                )
            except BatchFailedError as e:
                self._drop_partial_files(e.failures, model)
                raise
            result.chunks_embedded = run.embedded
            result.failed_chunks = run.failures
            result.files_indexed -= self._drop_partial_files(run.failures, model)

        if result.has_failures:
            logger.warning(result.diagnostic())
        logger.info(
            "Embedded %d/%d chunk(s) from %d file(s)",
            result.chunks_embedded,
            result.chunks_total,
            result.files_indexed,
        )

    async def _chunk_file(
        self, file: VaultFile, chunker: LeafChunker, max_header_level: int
    ) -> list[IndexedChunk]:
        content = await self.vault.read_file(file)
        content = content.replace("\x00", "")
        chunks: list[IndexedChunk] = []
        for section in split_markdown_into_sections(content, max_header_level):
            chunks.extend(chunker.chunk_section(file.path, file.mtime, section))
        return chunks

    async def _chunk_files(
        self, files: list[VaultFile], options: IndexOptions
    ) -> tuple[list[IndexedChunk], list[FileFailure]]:
        """Read and chunk files concurrently, collecting per-file failures."""
        chunker = LeafChunker(chunk_size=options.chunk_size)
        results = await asyncio.gather(
            *(self._chunk_file(f, chunker, options.max_header_level) for f in files),
            return_exceptions=True,
        )

        chunks: list[IndexedChunk] = []
        failures: list[FileFailure] = []
        for file, outcome in zip(files, results, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failures.append(FileFailure(path=file.path, error=str(outcome)))
            else:
                chunks.extend(outcome)
        return chunks, failures

    def _drop_partial_files(self, failures: list[ChunkFailure], model: EmbeddingModelClient) -> int:
        """Remove the rows of files that lost chunks so the next run selects them again."""
        paths = sorted({f.path for f in failures})
        if paths:
            self.store.delete_vectors_for_files(paths, model)
            logger.info("%d file(s) left unindexed after chunk failures", len(paths))
        return len(paths)

    def _save(self, result: IndexResult) -> None:
        try:
            self.store.save()
        except Exception as e:
            logger.error("Failed to save vector store: %s", e)
            result.save_error = str(e)

    def clear_all_vectors(self, model: EmbeddingModelClient) -> None:
        """Remove every embedding of a model and compact the store."""
        self.store.clear_all_vectors(model)
        self.store.vacuum()
        self.store.save()

    def perform_similarity_search(
        self,
        query_vector: list[float],
        model: EmbeddingModelClient,
        *,
        min_similarity: float,
        limit: int,
        scope: SearchScope | None = None,
    ) -> list[SimilarityResult]:
        return self.store.perform_similarity_search(
            query_vector, model, min_similarity=min_similarity, limit=limit, scope=scope
        )

    def get_embedding_stats(self) -> list[EmbeddingStats]:
        return self.store.get_embedding_stats()
