# src/vaultrag/retriever.py
"""Similarity search over an indexed vault."""

from vaultrag.exceptions import ConfigurationError, ProviderError
from vaultrag.models import SimilarityResult
from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.retry import RetryPolicy, retry_async
from vaultrag.settings import SearchOptions
from vaultrag.stores.base import VectorStore


class Retriever:
    """Embeds a query with the indexing model and searches the store."""

    def __init__(
        self,
        store: VectorStore,
        model: EmbeddingModelClient,
        default_options: SearchOptions | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            store: Store holding the embeddings
            model: Embedding model client; must be the one the vault was indexed with
            default_options: Options used when search() gets none
            retry_policy: Backoff policy for a rate-limited query embedding
        """
        self.store = store
        self.model = model
        self.default_options = default_options or SearchOptions()
        self.retry_policy = retry_policy or RetryPolicy()

    async def search(
        self, query: str, options: SearchOptions | None = None
    ) -> list[SimilarityResult]:
        """Return the chunks most similar to a query.

        Args:
            query: Free-text query
            options: Similarity threshold, limit and scope (default: self.default_options)

        Returns:
            Results ordered by descending similarity

        Raises:
            ConfigurationError: If the provider credentials or base URL are missing or invalid
        """
        options = options or self.default_options
        if not query.strip() or options.limit <= 0:
            return []

        try:
            query_vector = await retry_async(
                lambda: self.model.get_embedding(query), self.retry_policy
            )
        except ProviderError as e:
            if not e.is_configuration_error:
                raise
            raise ConfigurationError(str(e), e.kind) from e
        return self.store.perform_similarity_search(
            query_vector,
            self.model,
            min_similarity=options.min_similarity,
            limit=options.limit,
            scope=options.scope,
        )
