# src/vaultrag/exceptions.py
"""Exceptions for embedding providers and indexing runs."""

from enum import Enum

from vaultrag.models import ChunkFailure, FileFailure


class ProviderErrorKind(Enum):
    """Why an embedding provider call failed."""

    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIALS = "invalid_credentials"
    MISSING_CREDENTIALS = "missing_credentials"
    MISSING_BASE_URL = "missing_base_url"
    GENERIC = "generic"


CONFIGURATION_KINDS = frozenset(
    {
        ProviderErrorKind.INVALID_CREDENTIALS,
        ProviderErrorKind.MISSING_CREDENTIALS,
        ProviderErrorKind.MISSING_BASE_URL,
    }
)


class ProviderError(Exception):
    """Raised by EmbeddingModelClient implementations.

    Attributes:
        kind: Failure category; callers switch on this instead of subclassing.
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(
        self,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.GENERIC,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_configuration_error(self) -> bool:
        return self.kind in CONFIGURATION_KINDS


def is_rate_limit_error(error: BaseException) -> bool:
    """True for a rate-limit ProviderError or any error carrying HTTP status 429."""
    if isinstance(error, ProviderError):
        return error.kind is ProviderErrorKind.RATE_LIMITED or error.status_code == 429
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    return status == 429


def is_configuration_error(error: BaseException) -> bool:
    return isinstance(error, ProviderError) and error.is_configuration_error


class IndexingError(Exception):
    """Fatal failure of an indexing run."""


class ConfigurationError(IndexingError):
    """Missing or invalid provider credentials / base URL. Not retried.

    Attributes:
        kind: The ProviderErrorKind that triggered the abort.
    """

    def __init__(self, message: str, kind: ProviderErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def suggestion(self) -> str:
        if self.kind is ProviderErrorKind.MISSING_BASE_URL:
            return "Set the provider base URL (api_base) in vaultrag.yaml."
        return "Check the embedding provider API key (VAULTRAG_EMBEDDING_API_KEY)."


class AllFilesFailedError(IndexingError):
    """Every candidate file failed to read or chunk."""

    def __init__(self, failures: list[FileFailure]) -> None:
        super().__init__("All files failed to process. Stopping indexing process.")
        self.failures = failures


class BatchFailedError(IndexingError):
    """A whole embedding batch produced no embeddings.

    Attributes:
        failures: Every chunk failure recorded up to and including this batch.
    """

    def __init__(self, failures: list[ChunkFailure]) -> None:
        super().__init__("All chunks in batch failed to embed. Stopping indexing process.")
        self.failures = failures
