# tests/embedder/test_pipeline.py
"""Tests for the embedding pipeline."""

from unittest.mock import MagicMock

import pytest

from vaultrag.embedder import EmbeddingPipeline, embedding_text
from vaultrag.exceptions import (
    BatchFailedError,
    ConfigurationError,
    ProviderError,
    ProviderErrorKind,
)
from vaultrag.models import ChunkMetadata, IndexedChunk
from conftest import FakeEmbeddingClient, ScriptedEmbeddingClient, rate_limit_error


def make_chunk(content: str, path: str = "a.md", line: int = 1, header: str = "") -> IndexedChunk:
    return IndexedChunk(
        path=path,
        mtime=10.0,
        content=content,
        metadata=ChunkMetadata(
            start_line=line,
            end_line=line,
            parent_start_line=line,
            parent_end_line=line,
            header_path=header,
        ),
    )


class TestEmbeddingText:
    def test_header_is_prepended(self):
        chunk = make_chunk("body", header="A > B")
        assert embedding_text(chunk) == "Header: A > B\n\nbody"

    def test_no_header(self):
        assert embedding_text(make_chunk("body")) == "body"


class TestEmbeddingPipelineRun:
    @pytest.mark.asyncio
    async def test_embeds_and_persists_all_chunks(self, vector_store, fake_model, no_wait_retry):
        chunks = [make_chunk(f"chunk {i}", line=i + 1) for i in range(5)]
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(chunks, fake_model, total_files=1)

        assert result.embedded == 5
        assert result.failures == []
        rows = vector_store.get_vectors_by_file_path("a.md", fake_model)
        assert sorted(r.content for r in rows) == sorted(c.content for c in chunks)
        assert all(r.mtime == 10.0 and r.dimension == fake_model.dimension for r in rows)

    @pytest.mark.asyncio
    async def test_header_path_is_sent_to_model(self, vector_store, fake_model, no_wait_retry):
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        await pipeline.run([make_chunk("body", header="Doc > Part")], fake_model, total_files=1)

        assert fake_model.calls == ["Header: Doc > Part\n\nbody"]
        # The stored content is the chunk itself, without the header prefix
        assert vector_store.get_vectors_by_file_path("a.md", fake_model)[0].content == "body"

    @pytest.mark.asyncio
    async def test_progress_reports(self, vector_store, fake_model, no_wait_retry):
        chunks = [make_chunk(f"chunk {i}") for i in range(3)]
        updates = []
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        await pipeline.run(chunks, fake_model, total_files=2, on_progress=updates.append)

        assert updates[0].completed_chunks == 0
        assert [u.completed_chunks for u in updates] == [0, 1, 2, 3]
        assert all(u.total_chunks == 3 and u.total_files == 2 for u in updates)
        assert not any(u.waiting_for_rate_limit for u in updates)

    @pytest.mark.asyncio
    async def test_batches_are_persisted_one_at_a_time(
        self, vector_store, fake_model, no_wait_retry
    ):
        store = MagicMock(wraps=vector_store)
        chunks = [make_chunk(f"chunk {i}") for i in range(5)]
        pipeline = EmbeddingPipeline(store, batch_size=2, retry_policy=no_wait_retry)

        await pipeline.run(chunks, fake_model, total_files=1)

        assert [len(c.args[0]) for c in store.insert_vectors.call_args_list] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_rate_limited_chunk_is_retried(self, vector_store, no_wait_retry):
        model = ScriptedEmbeddingClient(
            errors_by_text={"slow": [rate_limit_error(), rate_limit_error(), rate_limit_error()]}
        )
        updates = []
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(
            [make_chunk("slow chunk"), make_chunk("fast chunk")],
            model,
            total_files=1,
            on_progress=updates.append,
        )

        assert result.embedded == 2
        assert result.failures == []
        assert model.calls.count("slow chunk") == 4
        assert sum(u.waiting_for_rate_limit for u in updates) == 3
        assert updates[-1].completed_chunks == 2

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_fails_the_chunk(self, vector_store, no_wait_retry):
        model = ScriptedEmbeddingClient(always_fail={"slow": rate_limit_error()})
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(
            [make_chunk("slow chunk"), make_chunk("fine chunk")], model, total_files=1
        )

        assert result.embedded == 1
        assert [f.path for f in result.failures] == ["a.md"]
        assert model.calls.count("slow chunk") == no_wait_retry.max_attempts

    @pytest.mark.asyncio
    async def test_non_rate_limit_error_is_not_retried(self, vector_store, no_wait_retry):
        error = ProviderError("500", status_code=500)
        model = ScriptedEmbeddingClient(always_fail={"broken": error})
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(
            [make_chunk("broken chunk", line=3), make_chunk("ok chunk")], model, total_files=1
        )

        assert result.embedded == 1
        assert len(result.failures) == 1
        assert result.failures[0].metadata.start_line == 3
        assert "500" in result.failures[0].error
        assert model.calls.count("broken chunk") == 1

    @pytest.mark.asyncio
    async def test_invalid_content_is_rejected_without_calling_model(
        self, vector_store, fake_model, no_wait_retry
    ):
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(
            [make_chunk("   "), make_chunk("nul\x00byte"), make_chunk("valid")],
            fake_model,
            total_files=1,
        )

        assert result.embedded == 1
        assert len(result.failures) == 2
        assert fake_model.calls == ["valid"]

    @pytest.mark.asyncio
    async def test_wrong_vector_dimension_is_a_failure(self, vector_store, no_wait_retry):
        class ShortVectorClient(FakeEmbeddingClient):
            async def get_embedding(self, text):
                vector = await super().get_embedding(text)
                return vector[:-1] if "short" in text else vector

        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        result = await pipeline.run(
            [make_chunk("short one"), make_chunk("full one")], ShortVectorClient(), total_files=1
        )

        assert result.embedded == 1
        assert "dimension" in result.failures[0].error

    @pytest.mark.asyncio
    async def test_failed_batch_stops_the_run(self, vector_store, no_wait_retry):
        model = ScriptedEmbeddingClient(always_fail={"bad": ProviderError("boom")})
        chunks = [make_chunk(f"bad {i}") for i in range(100)]
        chunks += [make_chunk(f"good {i}") for i in range(50)]
        pipeline = EmbeddingPipeline(vector_store, batch_size=100, retry_policy=no_wait_retry)

        with pytest.raises(BatchFailedError) as exc_info:
            await pipeline.run(chunks, model, total_files=1)

        assert str(exc_info.value) == (
            "All chunks in batch failed to embed. Stopping indexing process."
        )
        assert len(exc_info.value.failures) == 100
        assert not any(call.startswith("good") for call in model.calls)
        assert vector_store.get_indexed_file_paths(model) == []

    @pytest.mark.asyncio
    async def test_earlier_batches_stay_committed(self, vector_store, no_wait_retry):
        model = ScriptedEmbeddingClient(always_fail={"bad": ProviderError("boom")})
        chunks = [make_chunk("good 1", path="ok.md"), make_chunk("bad 1"), make_chunk("bad 2")]
        pipeline = EmbeddingPipeline(vector_store, batch_size=1, retry_policy=no_wait_retry)

        with pytest.raises(BatchFailedError):
            await pipeline.run(chunks, model, total_files=2)

        assert vector_store.get_indexed_file_paths(model) == ["ok.md"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind",
        [
            ProviderErrorKind.MISSING_CREDENTIALS,
            ProviderErrorKind.INVALID_CREDENTIALS,
            ProviderErrorKind.MISSING_BASE_URL,
        ],
    )
    async def test_configuration_error_aborts(self, vector_store, no_wait_retry, kind):
        model = ScriptedEmbeddingClient(always_fail={"chunk": ProviderError("no key", kind=kind)})
        pipeline = EmbeddingPipeline(vector_store, retry_policy=no_wait_retry)

        with pytest.raises(ConfigurationError) as exc_info:
            await pipeline.run([make_chunk(f"chunk {i}") for i in range(3)], model, total_files=1)

        assert exc_info.value.kind is kind
        assert vector_store.get_indexed_file_paths(model) == []

    @pytest.mark.asyncio
    async def test_no_chunks(self, vector_store, fake_model):
        updates = []
        result = await EmbeddingPipeline(vector_store).run(
            [], fake_model, total_files=0, on_progress=updates.append
        )

        assert result.embedded == 0
        assert len(updates) == 1

    def test_rejects_invalid_batch_size(self, vector_store):
        with pytest.raises(ValueError):
            EmbeddingPipeline(vector_store, batch_size=0)
