# tests/conftest.py
"""Shared pytest fixtures."""

import contextlib
import hashlib
import os
import tempfile

import numpy as np
import pytest

from vaultrag.exceptions import ProviderError, ProviderErrorKind
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.retry import RetryPolicy
from vaultrag.stores import SQLiteVectorStore
from vaultrag.vault.base import Vault, VaultFile


@pytest.fixture
def temp_dir():
    """Create a temporary directory for stores."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir

        # Cleanup ChromaDB's shared system cache to release file handles
        # See: https://github.com/chroma-core/chroma/issues/5868
        try:
            from chromadb.api.shared_system_client import SharedSystemClient
        except ImportError:
            return

        # Guard against ChromaDB internal API changes
        if hasattr(SharedSystemClient, "_identifier_to_system"):
            identifiers_to_remove = [
                identifier
                for identifier in list(SharedSystemClient._identifier_to_system.keys())
                if tmpdir in str(identifier)
            ]
            for identifier in identifiers_to_remove:
                system = SharedSystemClient._identifier_to_system.pop(identifier, None)
                if system is not None:
                    with contextlib.suppress(Exception):
                        system.stop()


def deterministic_vector(text: str, dimension: int) -> list[float]:
    """Pseudo-random but stable vector for a text."""
    seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
    return np.random.default_rng(seed).standard_normal(dimension).tolist()


class FakeEmbeddingClient(EmbeddingModelClient):
    """Embedding client returning deterministic vectors and recording its inputs."""

    def __init__(self, model_id: str = "fake/embed-small", dimension: int = 8) -> None:
        self.id = model_id
        self.dimension = dimension
        self.calls: list[str] = []

    async def get_embedding(self, text: str) -> list[float]:
        self.calls.append(text)
        return deterministic_vector(text, self.dimension)


class ScriptedEmbeddingClient(FakeEmbeddingClient):
    """Fake client that raises scripted errors.

    ``errors_by_text`` maps a substring of the embedded text to a list of
    errors raised on successive calls; once the list is exhausted the call
    succeeds. ``always_fail`` maps a substring to an error raised every time.
    """

    def __init__(
        self,
        errors_by_text: dict[str, list[Exception]] | None = None,
        always_fail: dict[str, Exception] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.errors_by_text = {k: list(v) for k, v in (errors_by_text or {}).items()}
        self.always_fail = always_fail or {}

    async def get_embedding(self, text: str) -> list[float]:
        self.calls.append(text)
        for needle, error in self.always_fail.items():
            if needle in text:
                raise error
        for needle, errors in self.errors_by_text.items():
            if needle in text and errors:
                raise errors.pop(0)
        return deterministic_vector(text, self.dimension)


class InMemoryVault(Vault):
    """Vault backed by a dict of path -> (content, mtime)."""

    def __init__(self, files: dict[str, str] | None = None, mtime: float = 1000.0) -> None:
        self.files: dict[str, tuple[str, float]] = {
            path: (content, mtime) for path, content in (files or {}).items()
        }
        self.unreadable: set[str] = set()
        self.reads: list[str] = []

    def write(self, path: str, content: str, mtime: float) -> None:
        self.files[path] = (content, mtime)

    def delete(self, path: str) -> None:
        del self.files[path]

    def list_markdown_files(self) -> list[VaultFile]:
        return [
            VaultFile(path=path, mtime=mtime) for path, (_, mtime) in sorted(self.files.items())
        ]

    async def read_file(self, file: VaultFile) -> str:
        self.reads.append(file.path)
        if file.path in self.unreadable:
            raise OSError(f"Permission denied: {file.path}")
        if file.path not in self.files:
            raise FileNotFoundError(file.path)
        return self.files[file.path][0]


def rate_limit_error() -> ProviderError:
    return ProviderError("Too many requests", kind=ProviderErrorKind.RATE_LIMITED, status_code=429)


@pytest.fixture
def fake_model():
    return FakeEmbeddingClient()


@pytest.fixture
def no_wait_retry():
    """Retry policy with the default attempt count and no sleeping."""
    return RetryPolicy(base_delay=0.0, max_delay=0.0)


@pytest.fixture
def vector_store(temp_dir):
    """Create a SQLiteVectorStore with the default in-memory bucket index."""
    store = SQLiteVectorStore(os.path.join(temp_dir, "vectors.db"))
    yield store
    store.close()
