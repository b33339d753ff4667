# src/vaultrag/vault/base.py
"""Vault abstract base class."""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class VaultFile(BaseModel):
    """A Markdown file in the vault."""

    path: str  # vault-relative, forward slashes
    mtime: float


class Vault(ABC):
    """Abstract base class for a document corpus."""

    @abstractmethod
    def list_markdown_files(self) -> list[VaultFile]:
        """List every Markdown file currently in the vault."""
        ...

    @abstractmethod
    async def read_file(self, file: VaultFile) -> str:
        """Return the text content of a file."""
        ...
