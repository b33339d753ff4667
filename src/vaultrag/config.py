# src/vaultrag/config.py
"""Configuration loading utilities for vaultrag.

This module provides configuration loading that can be used by:
- CLI commands
- External applications using vaultrag as a library

It handles:
- Finding and loading vaultrag.yaml config files
- Loading .env files for API keys
- Building Settings objects from multiple sources
- Creating the vault, store, embedding client and indexer from configuration
"""

from __future__ import annotations

import importlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import yaml

if TYPE_CHECKING:
    from vaultrag.indexer import VectorIndexer
    from vaultrag.providers.base import EmbeddingModelClient
    from vaultrag.settings import Settings
    from vaultrag.stores import SQLiteVectorStore

# Default paths
DEFAULT_DATA_DIR = "./.vaultrag"
DEFAULT_DB_NAME = "vectors.db"
CONFIG_FILES = ["vaultrag.yaml", "vaultrag.yml", ".vaultragrc"]
ENV_FILE = ".env"

INDEX_BACKENDS = ("numpy", "chroma")


@dataclass
class ConfigError:
    """Error during configuration loading."""

    message: str
    suggestion: str | None = None


def load_env_file(env_path: str | Path = ENV_FILE) -> None:
    """Load environment variables from .env file if it exists.

    Existing environment variables are never overridden.

    Args:
        env_path: Path to .env file (default: .env in current directory)
    """
    path = Path(env_path)
    if not path.exists():
        return

    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip("\"'")
                if key not in os.environ:
                    os.environ[key] = value


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file in current directory or parent directories.

    Args:
        start_dir: Directory to start searching from (default: cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    current = start_dir or Path.cwd()
    for _ in range(10):  # Limit search depth
        for config_name in CONFIG_FILES:
            config_path = current / config_name
            if config_path.exists():
                return config_path
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


# Valid configuration keys for validation
VALID_ROOT_KEYS = {
    # Provider config
    "provider",
    "embedding_model",
    "embedding_dimension",
    "api_base",
    # Custom provider
    "embedding_client",
    "embedding_client_kwargs",
    # Locations
    "vault_dir",
    "data_dir",
    "index_backend",
    # Settings section
    "settings",
}

VALID_SETTINGS_KEYS = {
    "chunk_size",
    "max_header_level",
    "exclude_patterns",
    "include_patterns",
    "batch_size",
    "max_attempts",
    "base_delay",
    "multiplier",
    "max_delay",
    "min_similarity",
    "limit",
    "rate_limit_profile",
}


def validate_config(config: dict[str, Any], config_path: Path | None = None) -> list[str]:
    """Validate config and return warnings about unknown keys.

    Args:
        config: The loaded configuration dictionary
        config_path: Path to config file (for error messages)

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    unknown_root = set(config.keys()) - VALID_ROOT_KEYS
    if unknown_root:
        path_str = str(config_path) if config_path else "config"
        warnings.append(f"Unknown config keys in {path_str}: {', '.join(sorted(unknown_root))}")

    settings = config.get("settings", {})
    if isinstance(settings, dict):
        unknown_settings = set(settings.keys()) - VALID_SETTINGS_KEYS
        if unknown_settings:
            warnings.append(f"Unknown settings keys: {', '.join(sorted(unknown_settings))}")

    return warnings


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Explicit path to config file, or None to search

    Returns:
        Configuration dictionary (empty if no config found)
    """
    config_path = Path(config_path) if config_path is not None else find_config_file()

    if config_path is None:
        return {}

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return cast(dict[str, Any], config)


def _safe_int(value: str | None) -> int | None:
    """Parse int from string, returning None on invalid value."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _safe_float(value: str | None) -> float | None:
    """Parse float from string, returning None on invalid value."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_patterns(value: str) -> list[str]:
    """Parse a comma-separated list of glob patterns."""
    return [p.strip() for p in value.split(",") if p.strip()]


def get_settings_from_env() -> dict[str, Any]:
    """Read behavioral settings from VAULTRAG_* environment variables.

    Returns values that were explicitly set (not defaults), to allow proper
    precedence: YAML settings are used unless overridden by env vars.

    Returns:
        Dictionary of setting name -> value for explicitly set env vars
    """
    result: dict[str, Any] = {}

    for name in ("chunk_size", "max_header_level", "batch_size", "max_attempts", "limit"):
        if (val := _safe_int(os.environ.get(f"VAULTRAG_{name.upper()}"))) is not None:
            result[name] = val
    for name in ("base_delay", "multiplier", "max_delay", "min_similarity"):
        if (val := _safe_float(os.environ.get(f"VAULTRAG_{name.upper()}"))) is not None:
            result[name] = val
    for name in ("exclude_patterns", "include_patterns"):
        if f"VAULTRAG_{name.upper()}" in os.environ:
            result[name] = _parse_patterns(os.environ[f"VAULTRAG_{name.upper()}"])
    if "VAULTRAG_RATE_LIMIT_PROFILE" in os.environ:
        result["rate_limit_profile"] = os.environ["VAULTRAG_RATE_LIMIT_PROFILE"]

    return result


def get_settings_from_yaml(config: dict[str, Any]) -> dict[str, Any]:
    """Extract settings from the 'settings:' section of a YAML config.

    Args:
        config: The loaded YAML configuration

    Returns:
        Dictionary of setting name -> value
    """
    yaml_settings = config.get("settings", {}) or {}
    return {key: value for key, value in yaml_settings.items() if key in VALID_SETTINGS_KEYS}


def build_settings(
    config: dict[str, Any] | None = None,
    env_settings: dict[str, Any] | None = None,
) -> Settings:
    """Build Settings object from YAML config and env vars.

    Precedence (highest to lowest):
    1. Environment variables (for CI/CD override)
    2. YAML settings: section
    3. Settings class defaults

    Args:
        config: YAML configuration dictionary
        env_settings: Environment variable overrides (if None, reads from env)

    Returns:
        Configured Settings instance
    """
    from vaultrag.settings import Settings

    config = config or {}
    yaml_settings = get_settings_from_yaml(config)
    env_settings = env_settings if env_settings is not None else get_settings_from_env()

    merged = {**yaml_settings, **env_settings}

    # rate_limit_profile affects several settings at once
    rate_limit_profile = merged.pop("rate_limit_profile", None)

    if rate_limit_profile:
        return Settings.with_profile(rate_limit_profile, **merged)
    return Settings(**merged)


def import_class(class_path: str) -> type[Any]:
    """Import a class from a dotted path like 'my_package.module.ClassName'.

    Args:
        class_path: Dotted path to class

    Returns:
        The imported class
    """
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return cast(type[Any], getattr(module, class_name))


@dataclass
class VaultRagConfig:
    """Configuration for building an indexer."""

    provider: str
    vault_dir: str
    data_dir: str
    settings: Settings
    embedding_model: str | None = None
    embedding_dimension: int | None = None
    api_key: str | None = None
    api_base: str | None = None
    index_backend: str = "numpy"
    # Custom provider fields
    embedding_client_class: str | None = None
    embedding_client_kwargs: dict[str, Any] | None = None

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, DEFAULT_DB_NAME)


def resolve_data_dir(config: dict[str, Any], data_dir: str | None = None) -> str:
    """Data directory from the argument, the config file, VAULTRAG_DATA_DIR, or the default."""
    return str(
        data_dir
        or config.get("data_dir")
        or os.environ.get("VAULTRAG_DATA_DIR")
        or DEFAULT_DATA_DIR
    )


def resolve_index_backend(config: dict[str, Any]) -> str:
    return str(config.get("index_backend") or os.environ.get("VAULTRAG_INDEX_BACKEND", "numpy"))


def get_config(
    vault_dir: str | None = None,
    data_dir: str | None = None,
    config_path: str | Path | None = None,
) -> VaultRagConfig | ConfigError:
    """Get configuration for building an indexer.

    This extracts configuration without creating anything, allowing the
    caller to handle errors and missing values appropriately.

    Args:
        vault_dir: Override vault directory
        data_dir: Override data directory
        config_path: Override config file path

    Returns:
        VaultRagConfig with all settings, or ConfigError if invalid
    """
    config = load_config(config_path)
    effective_vault_dir = (
        vault_dir or config.get("vault_dir") or os.environ.get("VAULTRAG_VAULT_DIR") or "."
    )
    effective_data_dir = resolve_data_dir(config, data_dir)
    index_backend = resolve_index_backend(config)
    if index_backend not in INDEX_BACKENDS:
        return ConfigError(
            message=f"Unknown index backend '{index_backend}'",
            suggestion=f"Supported backends: {', '.join(INDEX_BACKENDS)}",
        )

    settings = build_settings(config, get_settings_from_env())
    provider = config.get("provider", "litellm")

    if provider == "litellm":
        embedding_model = config.get("embedding_model") or os.environ.get(
            "VAULTRAG_EMBEDDING_MODEL"
        )
        if not embedding_model:
            return ConfigError(
                message="LiteLLM provider requires embedding_model.",
                suggestion="Set embedding_model in vaultrag.yaml or VAULTRAG_EMBEDDING_MODEL",
            )

        dimension = config.get("embedding_dimension") or _safe_int(
            os.environ.get("VAULTRAG_EMBEDDING_DIMENSION")
        )
        if dimension is None:
            from vaultrag.providers.litellm.models import EMBEDDING_DIMENSIONS

            dimension = EMBEDDING_DIMENSIONS.get(embedding_model)
        if dimension is None:
            return ConfigError(
                message=f"Unknown output dimension for '{embedding_model}'.",
                suggestion="Set embedding_dimension in vaultrag.yaml",
            )

        return VaultRagConfig(
            provider=provider,
            vault_dir=effective_vault_dir,
            data_dir=effective_data_dir,
            settings=settings,
            embedding_model=embedding_model,
            embedding_dimension=int(dimension),
            api_key=os.environ.get("VAULTRAG_EMBEDDING_API_KEY"),
            api_base=config.get("api_base") or os.environ.get("VAULTRAG_API_BASE"),
            index_backend=index_backend,
        )

    elif provider == "custom":
        embedding_client_class = config.get("embedding_client")
        if not embedding_client_class:
            return ConfigError(
                message="Custom provider requires embedding_client.",
                suggestion="Add it to vaultrag.yaml as a dotted class path",
            )

        return VaultRagConfig(
            provider=provider,
            vault_dir=effective_vault_dir,
            data_dir=effective_data_dir,
            settings=settings,
            index_backend=index_backend,
            embedding_client_class=embedding_client_class,
            embedding_client_kwargs=config.get("embedding_client_kwargs", {}),
        )

    else:
        return ConfigError(
            message=f"Unknown provider '{provider}'",
            suggestion="Supported providers: litellm, custom",
        )


def create_store(data_dir: str | Path, index_backend: str = "numpy") -> SQLiteVectorStore:
    """Open the vector store of a data directory.

    This doesn't require provider configuration, so read-only commands can use it.

    Args:
        data_dir: Path to data directory
        index_backend: "numpy" (in-memory, rebuilt on open) or "chroma" (persistent)

    Returns:
        SQLiteVectorStore instance
    """
    from vaultrag.stores import ChromaBucketIndex, SQLiteVectorStore

    data_dir = str(data_dir)
    index = None
    if index_backend == "chroma":
        index = ChromaBucketIndex(os.path.join(data_dir, "chroma"))
    return SQLiteVectorStore(os.path.join(data_dir, DEFAULT_DB_NAME), index=index)


def create_embedding_client(config: VaultRagConfig) -> EmbeddingModelClient:
    """Create the embedding model client described by a configuration.

    Raises:
        ImportError: If the custom client class cannot be imported
    """
    if config.provider == "litellm":
        from vaultrag.providers import LiteLLMEmbeddingModelClient

        if not config.embedding_model or not config.embedding_dimension:
            raise ValueError("LiteLLM provider requires embedding_model and embedding_dimension")
        return LiteLLMEmbeddingModelClient(
            model=config.embedding_model,
            dimension=config.embedding_dimension,
            api_key=config.api_key,
            api_base=config.api_base,
        )

    elif config.provider == "custom":
        if not config.embedding_client_class:
            raise ValueError("Custom provider requires embedding_client")
        client_cls = import_class(config.embedding_client_class)
        return cast("EmbeddingModelClient", client_cls(**(config.embedding_client_kwargs or {})))

    else:
        raise ValueError(f"Unknown provider: {config.provider}")


def create_indexer(config: VaultRagConfig) -> VectorIndexer:
    """Create a VectorIndexer over the configured vault and store."""
    from vaultrag.indexer import VectorIndexer
    from vaultrag.vault import LocalVault

    return VectorIndexer(
        vault=LocalVault(config.vault_dir),
        store=create_store(config.data_dir, config.index_backend),
        retry_policy=config.settings.build_retry_policy(),
        batch_size=config.settings.batch_size,
    )
