# src/vaultrag/vault/__init__.py
"""Vault abstractions: where the Markdown corpus comes from."""

from vaultrag.vault.base import Vault, VaultFile
from vaultrag.vault.local import LocalVault

__all__ = ["Vault", "VaultFile", "LocalVault"]
