# src/vaultrag/providers/__init__.py
"""Provider implementations for vaultrag.

This module contains the embedding provider abstraction:
- EmbeddingModelClient: Abstract base class for embedding models
- LiteLLM implementation (requires: pip install vaultrag[litellm])

Usage:
    from vaultrag.providers import EmbeddingModelClient
    from vaultrag.providers.litellm import LiteLLMEmbeddingModelClient, EmbeddingModels
"""

from vaultrag.providers.base import EmbeddingModelClient

try:
    from vaultrag.providers.litellm import EmbeddingModels, LiteLLMEmbeddingModelClient
except ImportError:
    from vaultrag._optional import _create_missing_dependency_class

    class EmbeddingModels:  # type: ignore[no-redef]
        """Placeholder - requires litellm package."""

        pass

    LiteLLMEmbeddingModelClient = _create_missing_dependency_class(  # type: ignore[misc,assignment]
        "LiteLLMEmbeddingModelClient", "litellm"
    )

__all__ = [
    "EmbeddingModelClient",
    "EmbeddingModels",
    "LiteLLMEmbeddingModelClient",
]
