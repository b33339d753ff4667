# tests/chunking/test_leaf.py
"""Tests for the leaf chunker."""

import pytest

from vaultrag.chunking import LeafChunker, split_markdown_into_sections
from vaultrag.models import Section


def make_section(content: str, start_line: int = 1, header_path: str = "") -> Section:
    return Section(
        header_path=header_path,
        start_line=start_line,
        end_line=start_line + content.count("\n"),
        content=content,
    )


class TestLeafChunkerInit:
    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ValueError, match="chunk_size"):
            LeafChunker(chunk_size=0)

    def test_rejects_overlap_not_smaller_than_size(self):
        with pytest.raises(ValueError, match="chunk_overlap"):
            LeafChunker(chunk_size=100, chunk_overlap=100)


class TestChunkSection:
    def test_small_section_is_one_verbatim_chunk(self):
        section = make_section("# Title\nshort body", start_line=5, header_path="Title")
        chunks = LeafChunker(chunk_size=1000).chunk_section("note.md", 12.5, section)

        assert len(chunks) == 1
        chunk = chunks[0]
        assert chunk.content == section.content
        assert chunk.path == "note.md"
        assert chunk.mtime == 12.5
        assert chunk.metadata.start_line == 5
        assert chunk.metadata.end_line == 6
        assert chunk.metadata.parent_start_line == 5
        assert chunk.metadata.parent_end_line == 6
        assert chunk.metadata.header_path == "Title"

    def test_section_exactly_chunk_size_is_not_split(self):
        section = make_section("x" * 50)
        chunks = LeafChunker(chunk_size=50).chunk_section("a.md", 1.0, section)

        assert len(chunks) == 1

    def test_blank_section_yields_nothing(self):
        section = make_section("   \n\n  ")
        assert LeafChunker().chunk_section("a.md", 1.0, section) == []

    def test_large_section_is_split_within_bounds(self):
        paragraphs = [f"Paragraph {i} " + "word " * 30 for i in range(12)]
        content = "## Big\n" + "\n\n".join(paragraphs)
        section = make_section(content, start_line=10, header_path="Doc > Big")

        chunks = LeafChunker(chunk_size=200).chunk_section("big.md", 3.0, section)

        assert len(chunks) > 1
        for chunk in chunks:
            assert len(chunk.content) <= 200
            assert chunk.metadata.header_path == "Doc > Big"
            assert chunk.metadata.parent_start_line == section.start_line
            assert chunk.metadata.parent_end_line == section.end_line
            assert section.start_line <= chunk.metadata.start_line
            assert chunk.metadata.start_line <= chunk.metadata.end_line
            assert chunk.metadata.end_line <= section.end_line

    def test_leaf_line_ranges_point_at_their_text(self):
        lines = [f"line {i:03d} " + " ".join(["filler"] * 8) for i in range(40)]
        content = "\n".join(lines)
        section = make_section(content, start_line=7)

        chunks = LeafChunker(chunk_size=150).chunk_section("lines.md", 1.0, section)

        for chunk in chunks:
            first_line = chunk.content.split("\n")[0].strip()
            assert lines[chunk.metadata.start_line - 7] == first_line

    def test_leaves_are_in_document_order(self):
        content = "\n\n".join(f"Block {i} " + "text " * 40 for i in range(6))
        chunks = LeafChunker(chunk_size=120).chunk_section("o.md", 1.0, make_section(content))

        starts = [c.metadata.start_line for c in chunks]
        assert starts == sorted(starts)

    def test_works_with_splitter_output(self):
        content = "# A\n" + "alpha " * 100 + "\n## B\nbeta"
        chunker = LeafChunker(chunk_size=120)

        chunks = []
        for section in split_markdown_into_sections(content):
            chunks.extend(chunker.chunk_section("doc.md", 1.0, section))

        assert {c.metadata.header_path for c in chunks} == {"A", "A > B"}
        assert chunks[-1].content == "## B\nbeta"
