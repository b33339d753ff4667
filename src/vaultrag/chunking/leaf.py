# src/vaultrag/chunking/leaf.py
"""Subdivide header sections into bounded-size leaf chunks."""

from langchain_text_splitters import Language, RecursiveCharacterTextSplitter

from vaultrag.models import ChunkMetadata, IndexedChunk, Section


class LeafChunker:
    """Turn sections into IndexedChunks no longer than chunk_size characters.

    chunk_size applies within each section: small sections are kept whole and
    only oversized ones are split with a Markdown-aware recursive splitter.
    Every leaf keeps its parent section's line range and header path.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 0) -> None:
        """Initialize the chunker.

        Args:
            chunk_size: Maximum characters per leaf chunk
            chunk_overlap: Characters shared between consecutive leaves of a section

        Raises:
            ValueError: If chunk_size is not positive or chunk_overlap >= chunk_size
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be less than chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter.from_language(
            language=Language.MARKDOWN,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            add_start_index=True,
        )

    def _split(self, content: str) -> list[tuple[str, int, int]]:
        """Split oversized content into (text, local_from, local_to) line ranges."""
        pieces = []
        search_from = 0
        for doc in self._splitter.create_documents([content]):
            text = doc.page_content
            if not text.strip():
                continue
            start = doc.metadata.get("start_index", -1)
            if start < 0:
                start = content.find(text, search_from)
                start = max(start, 0)
            search_from = start + 1
            local_from = content.count("\n", 0, start) + 1
            local_to = local_from + text.count("\n")
            pieces.append((text, local_from, local_to))
        return pieces

    def chunk_section(self, path: str, mtime: float, section: Section) -> list[IndexedChunk]:
        """Chunk one section of a file.

        Args:
            path: Vault-relative path of the file the section came from
            mtime: Modification time of that file
            section: The section to chunk

        Returns:
            Leaf chunks in order; empty if the section is blank
        """
        if not section.content.strip():
            return []

        section_lines = max(1, section.end_line - section.start_line + 1)
        if len(section.content) <= self.chunk_size:
            pieces = [(section.content, 1, section_lines)]
        else:
            pieces = self._split(section.content)

        chunks = []
        for text, local_from, local_to in pieces:
            chunks.append(
                IndexedChunk(
                    path=path,
                    mtime=mtime,
                    content=text,
                    metadata=ChunkMetadata(
                        start_line=section.start_line + local_from - 1,
                        end_line=min(section.end_line, section.start_line + local_to - 1),
                        parent_start_line=section.start_line,
                        parent_end_line=section.end_line,
                        header_path=section.header_path,
                    ),
                )
            )
        return chunks
