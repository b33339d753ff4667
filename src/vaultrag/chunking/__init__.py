# src/vaultrag/chunking/__init__.py
"""Hierarchical Markdown chunking: header sections, then bounded leaf chunks."""

from vaultrag.chunking.leaf import LeafChunker
from vaultrag.chunking.sections import (
    DEFAULT_MAX_HEADER_LEVEL,
    HEADER_PATH_SEPARATOR,
    split_markdown_into_sections,
)

__all__ = [
    "DEFAULT_MAX_HEADER_LEVEL",
    "HEADER_PATH_SEPARATOR",
    "LeafChunker",
    "split_markdown_into_sections",
]
