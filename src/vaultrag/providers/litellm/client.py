# src/vaultrag/providers/litellm/client.py
"""LiteLLM embedding client."""

from __future__ import annotations

import logging
import os
from typing import Any

import litellm

from vaultrag.exceptions import ProviderError, ProviderErrorKind
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.providers.litellm.models import (
    EMBEDDING_DIMENSIONS,
    is_local_model,
    requires_base_url,
)

logger = logging.getLogger(__name__)


def _to_provider_error(error: Exception) -> ProviderError:
    """Map a LiteLLM exception onto the ProviderError taxonomy."""
    status_code = getattr(error, "status_code", None)
    if isinstance(error, litellm.RateLimitError) or status_code == 429:
        kind = ProviderErrorKind.RATE_LIMITED
    elif isinstance(error, litellm.AuthenticationError) or status_code == 401:
        kind = ProviderErrorKind.INVALID_CREDENTIALS
    else:
        kind = ProviderErrorKind.GENERIC
    return ProviderError(str(error), kind=kind, status_code=status_code)


class LiteLLMEmbeddingModelClient(EmbeddingModelClient):
    """LiteLLM-based embedding model client.

    Supports any embedding model available through LiteLLM. LiteLLM's own
    retries are disabled: rate limits surface as ProviderError(RATE_LIMITED)
    and the indexer's retry policy decides how long to back off.

    Example:
        from vaultrag.providers.litellm import LiteLLMEmbeddingModelClient, EmbeddingModels

        client = LiteLLMEmbeddingModelClient(model=EmbeddingModels.TEXT_3_SMALL, dimension=1536)
        vector = await client.get_embedding("Hello world")
    """

    def __init__(
        self,
        model: str,
        dimension: int,
        api_key: str | None = None,
        api_base: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            model: LiteLLM embedding model identifier.
                   Examples: "openai/text-embedding-3-small", "ollama/nomic-embed-text"
            dimension: Output dimension of the model.
            api_key: API key. If None, LiteLLM reads the provider's usual env var.
            api_base: Base URL for self-hosted or proxy endpoints.
        """
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self.id = model
        self.model = model
        self.dimension = dimension
        self.api_key = api_key
        self.api_base = api_base

    @classmethod
    def from_known_model(cls, model: str, **kwargs: Any) -> LiteLLMEmbeddingModelClient:
        """Create a client for a curated model using its known dimension."""
        if model not in EMBEDDING_DIMENSIONS:
            raise ValueError(f"Unknown dimension for model '{model}'; pass dimension explicitly")
        return cls(model=model, dimension=EMBEDDING_DIMENSIONS[model], **kwargs)

    def _env_api_base(self) -> str | None:
        provider = self.model.split("/", 1)[0].upper()
        return self.api_base or os.environ.get(f"{provider}_API_BASE")

    def _check_credentials(self) -> None:
        if requires_base_url(self.model) and not self._env_api_base():
            raise ProviderError(
                f"No base URL configured for {self.model}",
                kind=ProviderErrorKind.MISSING_BASE_URL,
            )
        if self.api_key or is_local_model(self.model):
            return
        env = litellm.validate_environment(model=self.model)
        missing = env.get("missing_keys") or []
        if missing:
            raise ProviderError(
                f"API key for {self.model} is not set (missing: {', '.join(missing)})",
                kind=ProviderErrorKind.MISSING_CREDENTIALS,
            )

    async def get_embedding(self, text: str) -> list[float]:
        """Embed one text using LiteLLM."""
        self._check_credentials()

        kwargs: dict[str, Any] = {
            "model": self.model,
            "input": [text],
            "num_retries": 0,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            response = await litellm.aembedding(**kwargs)
        except Exception as error:
            provider_error = _to_provider_error(error)
            logger.debug("Embedding call to %s failed: %s", self.model, provider_error.kind.value)
            raise provider_error from error

        if not response.data:
            raise ProviderError(f"Embedding model {self.model} returned no data")
        return list(response.data[0]["embedding"])
