# src/vaultrag/providers/litellm/__init__.py
"""LiteLLM embedding client for vaultrag.

Usage:
    from vaultrag.providers.litellm import LiteLLMEmbeddingModelClient, EmbeddingModels

    client = LiteLLMEmbeddingModelClient.from_known_model(EmbeddingModels.TEXT_3_SMALL)
    vector = await client.get_embedding("Hello world")
"""

from vaultrag.providers.litellm.client import LiteLLMEmbeddingModelClient
from vaultrag.providers.litellm.models import EMBEDDING_DIMENSIONS, EmbeddingModels

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "EmbeddingModels",
    "LiteLLMEmbeddingModelClient",
]
