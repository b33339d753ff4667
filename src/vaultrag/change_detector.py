# src/vaultrag/change_detector.py
"""Decide which vault files need (re)indexing."""

import asyncio
import logging

from wcmatch.glob import GLOBSTAR, globmatch

from vaultrag.providers.base import EmbeddingModelClient
from vaultrag.stores.base import VectorStore
from vaultrag.vault.base import Vault, VaultFile

logger = logging.getLogger(__name__)


def _match_any(path: str, patterns: list[str]) -> bool:
    # `*` stays within one path segment; `**/` spans zero or more directories
    return any(globmatch(path, pattern, flags=GLOBSTAR) for pattern in patterns)


class ChangeDetector:
    """Compares the live vault listing against what the store holds for a model."""

    def __init__(self, vault: Vault, store: VectorStore) -> None:
        self.vault = vault
        self.store = store

    @staticmethod
    def filter_files(
        files: list[VaultFile],
        exclude_patterns: list[str],
        include_patterns: list[str],
    ) -> list[VaultFile]:
        """Apply exclusion patterns, then inclusion patterns if any are given.

        Patterns are globs with globstar support, matched against the
        vault-relative path.
        """
        selected = [f for f in files if not _match_any(f.path, exclude_patterns)]
        if include_patterns:
            selected = [f for f in selected if _match_any(f.path, include_patterns)]
        return selected

    async def _needs_indexing(self, file: VaultFile, model: EmbeddingModelClient) -> bool:
        stored = self.store.get_vectors_by_file_path(file.path, model)
        if not stored:
            # Blank files never produce chunks and would be selected on every run
            try:
                content = await self.vault.read_file(file)
            except (OSError, ValueError):
                return True  # surfaces as a file failure when the run reads it again
            return bool(content.strip())
        return file.mtime > stored[0].mtime

    async def get_files_to_index(
        self,
        model: EmbeddingModelClient,
        exclude_patterns: list[str],
        include_patterns: list[str],
        reindex_all: bool = False,
    ) -> list[VaultFile]:
        """Return the files whose embeddings are missing or stale for a model.

        Args:
            model: Embedding model the index is scoped to
            exclude_patterns: Globs of files to ignore
            include_patterns: Globs restricting the candidates (empty means all)
            reindex_all: Return every non-excluded file regardless of state

        Returns:
            Candidate files in listing order
        """
        files = self.filter_files(
            self.vault.list_markdown_files(), exclude_patterns, include_patterns
        )
        if reindex_all:
            return files

        flags = await asyncio.gather(*(self._needs_indexing(f, model) for f in files))
        candidates = [f for f, needed in zip(files, flags, strict=True) if needed]
        logger.debug("%d of %d file(s) need indexing", len(candidates), len(files))
        return candidates

    def delete_vectors_for_deleted_files(self, model: EmbeddingModelClient) -> list[str]:
        """Purge rows of files that are indexed but no longer in the vault.

        Returns:
            The purged paths
        """
        live = {f.path for f in self.vault.list_markdown_files()}
        deleted = [p for p in self.store.get_indexed_file_paths(model) if p not in live]
        if deleted:
            self.store.delete_vectors_for_files(deleted, model)
            logger.info("Removed embeddings of %d deleted file(s)", len(deleted))
        return deleted
