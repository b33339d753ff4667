# src/vaultrag/embedder/pipeline.py
"""Batched, rate-limit aware embedding of indexed chunks."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from vaultrag.exceptions import (
    BatchFailedError,
    ConfigurationError,
    ProviderError,
    is_configuration_error,
)
from vaultrag.models import ChunkFailure, EmbeddingRecord, IndexedChunk, IndexProgress
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.retry import RetryPolicy, retry_async
from vaultrag.stores.base import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

ProgressCallback = Callable[[IndexProgress], None]
"""Callback receiving a progress snapshot.

Example:
    def on_progress(progress: IndexProgress) -> None:
        print(f"{progress.completed_chunks}/{progress.total_chunks}")
"""


def embedding_text(chunk: IndexedChunk) -> str:
    """Text sent to the embedding model for a chunk.

    The header path is prepended so a leaf keeps the context of its section.
    """
    if chunk.metadata.header_path:
        return f"Header: {chunk.metadata.header_path}\n\n{chunk.content}"
    return chunk.content


@dataclass
class EmbeddingRunResult:
    """Outcome of an embedding run."""

    embedded: int = 0
    failures: list[ChunkFailure] = field(default_factory=list)


class _ChunkRejected(Exception):
    """A chunk that cannot be embedded as-is."""


class EmbeddingPipeline:
    """Embeds chunks in sequential batches and persists the successes.

    Chunks within a batch are embedded concurrently, each with its own retry
    loop, so a chunk waiting out a rate limit does not block the others. A
    batch is persisted before the next one starts.
    """

    def __init__(
        self,
        store: VectorStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Store receiving the embedded records
            batch_size: Number of chunks embedded concurrently per batch
            retry_policy: Backoff policy for each chunk. Defaults to RetryPolicy().
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.batch_size = batch_size
        self.retry_policy = retry_policy or RetryPolicy()

    async def run(
        self,
        chunks: list[IndexedChunk],
        model: EmbeddingModelClient,
        total_files: int,
        on_progress: ProgressCallback | None = None,
    ) -> EmbeddingRunResult:
        """Embed and persist chunks.

        Args:
            chunks: Chunks to embed, in order
            model: Embedding model client
            total_files: Number of files the chunks came from, for progress reports
            on_progress: Optional progress callback

        Returns:
            Number of chunks embedded and the per-chunk failures

        Raises:
            ConfigurationError: If the provider reports missing or invalid credentials
            BatchFailedError: If a batch produced no embeddings at all
        """
        result = EmbeddingRunResult()
        total = len(chunks)

        def report(waiting: bool = False) -> None:
            if on_progress:
                on_progress(
                    IndexProgress(
                        completed_chunks=result.embedded,
                        total_chunks=total,
                        total_files=total_files,
                        waiting_for_rate_limit=waiting,
                    )
                )

        report()

        for start in range(0, total, self.batch_size):
            batch = chunks[start : start + self.batch_size]
            records = await self._embed_batch(batch, model, result, report)

            if not records:
                logger.error(
                    "Batch %d: all %d chunk(s) failed to embed",
                    start // self.batch_size + 1,
                    len(batch),
                )
                raise BatchFailedError(result.failures)

            self.store.insert_vectors(records)
            logger.debug(
                "Persisted batch %d (%d/%d chunk(s) embedded)",
                start // self.batch_size + 1,
                len(records),
                len(batch),
            )

        return result

    async def _embed_batch(
        self,
        batch: list[IndexedChunk],
        model: EmbeddingModelClient,
        result: EmbeddingRunResult,
        report: Callable[..., None],
    ) -> list[EmbeddingRecord]:
        records: list[EmbeddingRecord] = []

        def on_retry(error: BaseException, attempt: int, delay: float) -> None:
            report(waiting=True)

        async def embed(chunk: IndexedChunk) -> None:
            try:
                vector = await self._embed_chunk(chunk, model, on_retry)
            except Exception as e:
                if is_configuration_error(e):
                    raise
                result.failures.append(
                    ChunkFailure(path=chunk.path, metadata=chunk.metadata, error=str(e))
                )
                return

            records.append(
                EmbeddingRecord(
                    path=chunk.path,
                    mtime=chunk.mtime,
                    content=chunk.content,
                    metadata=chunk.metadata,
                    model=model.id,
                    dimension=model.dimension,
                    embedding=vector,
                )
            )
            result.embedded += 1
            report()

        tasks = [asyncio.create_task(embed(chunk)) for chunk in batch]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

        errors = [e for e in (task.exception() for task in done) if e is not None]
        if errors:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            error = errors[0]
            if not isinstance(error, ProviderError):
                raise error
            logger.error("Embedding provider configuration error: %s", error)
            raise ConfigurationError(str(error), error.kind) from error

        return records

    async def _embed_chunk(
        self,
        chunk: IndexedChunk,
        model: EmbeddingModelClient,
        on_retry: Callable[[BaseException, int, float], None],
    ) -> list[float]:
        if not chunk.content.strip():
            raise _ChunkRejected("Chunk content is empty")
        if "\x00" in chunk.content:
            raise _ChunkRejected("Chunk content contains null bytes")

        text = embedding_text(chunk)
        vector = await retry_async(
            lambda: model.get_embedding(text),
            self.retry_policy,
            on_retry=on_retry,
        )

        if len(vector) != model.dimension:
            raise _ChunkRejected(
                f"Embedding has dimension {len(vector)}, expected {model.dimension}"
            )
        return vector
