# src/vaultrag/providers/litellm/models.py
"""Curated embedding model constants for the LiteLLM provider.

These are convenience constants for IDE autocomplete. Any LiteLLM embedding
model string works as long as its output dimension is passed explicitly.
"""


class EmbeddingModels:
    """Embedding models for LiteLLMEmbeddingModelClient."""

    # OpenAI
    TEXT_3_SMALL = "openai/text-embedding-3-small"
    TEXT_3_LARGE = "openai/text-embedding-3-large"

    # Google Gemini
    GEMINI_004 = "gemini/text-embedding-004"
    GEMINI_EMBEDDING_001 = "gemini/gemini-embedding-001"

    # AWS Bedrock
    BEDROCK_TITAN_V2 = "bedrock/amazon.titan-embed-text-v2:0"
    BEDROCK_COHERE_V3 = "bedrock/cohere.embed-english-v3"

    # Local (Ollama)
    OLLAMA_NOMIC = "ollama/nomic-embed-text"
    OLLAMA_MXBAI = "ollama/mxbai-embed-large"


# Default output dimension of each curated model
EMBEDDING_DIMENSIONS: dict[str, int] = {
    EmbeddingModels.TEXT_3_SMALL: 1536,
    EmbeddingModels.TEXT_3_LARGE: 3072,
    EmbeddingModels.GEMINI_004: 768,
    EmbeddingModels.GEMINI_EMBEDDING_001: 3072,
    EmbeddingModels.BEDROCK_TITAN_V2: 1024,
    EmbeddingModels.BEDROCK_COHERE_V3: 1024,
    EmbeddingModels.OLLAMA_NOMIC: 768,
    EmbeddingModels.OLLAMA_MXBAI: 1024,
}

LOCAL_MODEL_PREFIXES = ("ollama/", "llama.cpp/", "local/", "lm_studio/")


def is_local_model(model: str) -> bool:
    """True if the model runs locally and needs no API key."""
    return model.lower().startswith(LOCAL_MODEL_PREFIXES)


# Providers that have no public default endpoint
BASE_URL_REQUIRED_PREFIXES = ("azure/", "hosted_vllm/")


def requires_base_url(model: str) -> bool:
    """True if the model's provider needs an explicit api_base."""
    return model.lower().startswith(BASE_URL_REQUIRED_PREFIXES)
