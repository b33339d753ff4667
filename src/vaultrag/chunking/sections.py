# src/vaultrag/chunking/sections.py
"""Split Markdown documents into heading-delimited sections."""

import re
from dataclasses import dataclass

from vaultrag.models import Section

HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")
HEADER_PATH_SEPARATOR = " > "
DEFAULT_MAX_HEADER_LEVEL = 3


@dataclass
class _Heading:
    level: int
    line: int  # 1-based
    path: str


def _find_headings(lines: list[str], max_header_level: int) -> list[_Heading]:
    headings: list[_Heading] = []
    stack: list[tuple[int, str]] = []  # open (level, title) pairs, shallow to deep

    for i, line in enumerate(lines):
        match = HEADING_RE.match(line)
        if not match:
            continue
        level = len(match.group(1))
        if level > max_header_level:
            continue
        title = match.group(2).strip()

        while stack and stack[-1][0] >= level:
            stack.pop()
        stack.append((level, title))

        headings.append(
            _Heading(
                level=level,
                line=i + 1,
                path=HEADER_PATH_SEPARATOR.join(t for _, t in stack),
            )
        )

    return headings


def split_markdown_into_sections(
    content: str,
    max_header_level: int = DEFAULT_MAX_HEADER_LEVEL,
) -> list[Section]:
    """Split a document into ordered, non-overlapping sections.

    Headings deeper than max_header_level (clamped to 1-6) are not boundaries
    and stay in the content of their enclosing section. Each section runs from
    its heading to the line before the next boundary heading, or to the end of
    the document. Text before the first heading becomes a leading section with
    an empty header path, so the sections always cover every line.

    Args:
        content: Raw Markdown text
        max_header_level: Deepest heading level treated as a boundary

    Returns:
        Sections in document order with 1-based inclusive line ranges
    """
    lines = content.split("\n")
    max_header_level = max(1, min(6, max_header_level))
    headings = _find_headings(lines, max_header_level)

    if not headings:
        return [
            Section(
                header_path="",
                start_line=1,
                end_line=max(1, len(lines)),
                content=content,
            )
        ]

    sections: list[Section] = []

    if headings[0].line > 1:
        preamble_end = headings[0].line - 1
        sections.append(
            Section(
                header_path="",
                start_line=1,
                end_line=preamble_end,
                content="\n".join(lines[:preamble_end]),
            )
        )

    for index, heading in enumerate(headings):
        if index + 1 < len(headings):
            end_line = headings[index + 1].line - 1
        else:
            end_line = len(lines)
        sections.append(
            Section(
                header_path=heading.path,
                start_line=heading.line,
                end_line=end_line,
                content="\n".join(lines[heading.line - 1 : end_line]),
            )
        )

    return sections
