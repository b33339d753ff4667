# src/vaultrag/settings.py
"""Configuration management for vaultrag.

This module contains behavioral settings that apply regardless of which
embedding provider is used. Settings are passed programmatically; the library
does not read environment variables. The CLI reads files and environment in
``vaultrag.config`` and builds Settings from them.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from vaultrag.models import SearchScope
from vaultrag.retry import RetryPolicy

# Rate limit profile definitions
RATE_LIMIT_PROFILES: dict[str, dict[str, Any]] = {
    "aggressive": {
        "batch_size": 100,
        "max_attempts": 8,
        "base_delay": 2.0,
    },
    "conservative": {
        "batch_size": 10,
        "max_attempts": 10,
        "base_delay": 5.0,
    },
}


class IndexOptions(BaseModel):
    """Options of one indexing run."""

    chunk_size: int = Field(default=1000, gt=0)
    exclude_patterns: list[str] = Field(default_factory=list)
    include_patterns: list[str] = Field(default_factory=list)
    reindex_all: bool = False
    max_header_level: int = 3


class SearchOptions(BaseModel):
    """Options of one similarity query."""

    min_similarity: float = 0.0
    limit: int = 10
    scope: SearchScope | None = None


class Settings(BaseModel):
    """Behavioral settings for vaultrag.

    Example:
        settings = Settings(chunk_size=500, exclude_patterns=["templates/*"])

        # Or use a rate limit profile for free API tiers
        settings = Settings.with_profile("conservative")
    """

    # Chunking
    chunk_size: int = 1000
    max_header_level: int = 3
    exclude_patterns: list[str] = Field(default_factory=list)
    include_patterns: list[str] = Field(default_factory=list)

    # Embedding batches (chunks embedded concurrently, batches run one at a time)
    batch_size: int = 100

    # Rate-limit retry with exponential backoff
    max_attempts: int = 8
    base_delay: float = 2.0
    multiplier: float = 2.0
    max_delay: float = 60.0

    # Retrieval
    min_similarity: float = 0.0
    limit: int = 10

    @classmethod
    def with_profile(
        cls,
        profile: Literal["aggressive", "conservative"],
        **overrides: Any,
    ) -> Settings:
        """Create Settings with a rate limit profile.

        Profiles bundle settings for different API tier limits:
        - "aggressive": For paid API tiers with high rate limits (default behavior)
        - "conservative": Smaller batches and longer backoff for strict limits

        Args:
            profile: The rate limit profile to use.
            **overrides: Additional settings to override profile defaults.

        Returns:
            Settings instance with profile values applied.
        """
        if profile not in RATE_LIMIT_PROFILES:
            raise ValueError(
                f"Unknown profile '{profile}'. "
                f"Available profiles: {list(RATE_LIMIT_PROFILES.keys())}"
            )

        profile_settings: dict[str, Any] = RATE_LIMIT_PROFILES[profile].copy()
        profile_settings.update(overrides)
        return cls(**profile_settings)

    def build_index_options(self, reindex_all: bool = False) -> IndexOptions:
        return IndexOptions(
            chunk_size=self.chunk_size,
            exclude_patterns=list(self.exclude_patterns),
            include_patterns=list(self.include_patterns),
            reindex_all=reindex_all,
            max_header_level=self.max_header_level,
        )

    def build_search_options(
        self,
        scope: SearchScope | None = None,
        min_similarity: float | None = None,
        limit: int | None = None,
    ) -> SearchOptions:
        """Build SearchOptions, falling back to the configured defaults."""
        return SearchOptions(
            min_similarity=self.min_similarity if min_similarity is None else min_similarity,
            limit=self.limit if limit is None else limit,
            scope=scope,
        )

    def build_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            multiplier=self.multiplier,
            max_delay=self.max_delay,
        )
