# src/vaultrag/vault/local.py
"""Filesystem-backed vault."""

import asyncio
from pathlib import Path

from vaultrag.vault.base import Vault, VaultFile


class LocalVault(Vault):
    """A vault rooted at a local directory.

    Lists *.md / *.markdown files recursively, skipping dot-directories such as
    .obsidian or .git. Paths are relative to the root with forward slashes.
    """

    SUPPORTED_EXTENSIONS = {".md", ".markdown"}

    def __init__(self, root: str | Path) -> None:
        """Initialize the vault.

        Args:
            root: Vault root directory

        Raises:
            FileNotFoundError: If root is not an existing directory
        """
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise FileNotFoundError(f"Vault directory not found: {root}")

    def list_markdown_files(self) -> list[VaultFile]:
        files = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
                continue
            relative = path.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts[:-1]):
                continue
            files.append(VaultFile(path=relative.as_posix(), mtime=path.stat().st_mtime))
        return files

    async def read_file(self, file: VaultFile) -> str:
        return await asyncio.to_thread((self.root / file.path).read_text, encoding="utf-8")
