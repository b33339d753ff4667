# src/vaultrag/providers/base.py
"""Abstract base class for embedding model providers."""

from abc import ABC, abstractmethod


class EmbeddingModelClient(ABC):
    """Abstract base class for embedding models.

    An implementation is identified by ``id`` and produces vectors of exactly
    ``dimension`` floats. Embeddings from different clients are kept apart in
    the store: indexing, clearing and search are always scoped to one client.

    Implementations should raise ``vaultrag.exceptions.ProviderError`` with the
    matching kind for rate limits and credential problems so the indexer can
    retry or abort appropriately.

    Example:
        class MyEmbeddingClient(EmbeddingModelClient):
            id = "my-model"
            dimension = 384

            async def get_embedding(self, text):
                return await my_api.embed(text)
    """

    id: str
    dimension: int

    @abstractmethod
    async def get_embedding(self, text: str) -> list[float]:
        """Generate the embedding vector for one text.

        Args:
            text: Text to embed.

        Returns:
            A vector of ``self.dimension`` floats.
        """
        ...
