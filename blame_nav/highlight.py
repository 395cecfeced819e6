"""
Highlight derivation for the blame view.

Spans are byte ranges into the flattened view text (UTF-8), computed line
by line with a running cursor of ``len(line) + 1`` bytes per line.

Two derivations are provided:

  - ``derive_highlights`` rescans the rendered text and recognises the
    title, block headers and footer by their markers.
  - ``highlights_for_entries`` walks the display entries and uses their
    kind and field values, so a content line that happens to look like a
    header is never styled as one.

Both produce the same spans for an ordinary view.
"""

from __future__ import annotations

import re

from .models import (
    DisplayEntry,
    EntryKind,
    HeaderEntry,
    HighlightSpan,
)
from .view import FOOTER_HINT, HEADER_MARKER, TITLE_MARKER


LAYER = "gitblame"

COLORS = {
    "hash": (255, 180, 50),       # yellow/orange
    "author": (100, 200, 255),    # cyan
    "date": (150, 255, 150),      # green
    "summary": (200, 200, 200),   # light gray
    "header": (180, 140, 220),    # purple
    "content": (220, 220, 220),
    "separator": (80, 80, 80),    # dark gray
}

_HASH_RE = re.compile(HEADER_MARKER + r" ([a-f0-9]{7})")
_AUTHOR_RE = re.compile(r"\(([^,]+),")
_SUMMARY_RE = re.compile(r'"([^"]+)"')


def _nbytes(text: str) -> int:
    return len(text.encode("utf-8"))


def _sub_span(line: str, line_start: int, start: int, end: int, **style) -> HighlightSpan:
    """Span over characters ``line[start:end]``, converted to byte offsets."""
    byte_start = line_start + _nbytes(line[:start])
    return HighlightSpan(byte_start, byte_start + _nbytes(line[start:end]), **style)


def _title_span(line_start: int, line_end: int) -> HighlightSpan:
    return HighlightSpan(line_start, line_end, COLORS["header"], bold=True, underline=True)


def _header_span(line_start: int, line_end: int) -> HighlightSpan:
    return HighlightSpan(line_start, line_end, COLORS["header"], bold=True)


def _footer_span(line_start: int, line_end: int) -> HighlightSpan:
    return HighlightSpan(line_start, line_end, COLORS["separator"], italic=True)


# ===================================================================
# From rendered text
# ===================================================================

def derive_highlights(content: str) -> list[HighlightSpan]:
    """Compute highlight spans by rescanning the flattened view text."""
    spans: list[HighlightSpan] = []
    if not content:
        return spans

    byte_offset = 0
    for idx, line in enumerate(content.split("\n")):
        line_start = byte_offset
        line_end = line_start + _nbytes(line)
        byte_offset = line_end + 1

        if idx == 0 and line.startswith(TITLE_MARKER):
            spans.append(_title_span(line_start, line_end))
            continue

        if line.startswith(HEADER_MARKER):
            spans.append(_header_span(line_start, line_end))

            match = _HASH_RE.search(line)
            if match:
                spans.append(_sub_span(
                    line, line_start, match.start(1), match.end(1),
                    color=COLORS["hash"], bold=True,
                ))
            match = _AUTHOR_RE.search(line)
            if match:
                spans.append(_sub_span(
                    line, line_start, match.start(1), match.end(1),
                    color=COLORS["author"],
                ))
            match = _SUMMARY_RE.search(line)
            if match:
                spans.append(_sub_span(
                    line, line_start, match.start(1), match.end(1),
                    color=COLORS["summary"], italic=True,
                ))
            continue

        if FOOTER_HINT in line:
            spans.append(_footer_span(line_start, line_end))

    return spans


# ===================================================================
# From display entries
# ===================================================================

def _header_spans(entry: HeaderEntry, line_start: int, line_end: int) -> list[HighlightSpan]:
    line = entry.text
    spans = [_header_span(line_start, line_end)]

    # Field positions follow format_block_header exactly
    hash_start = len(HEADER_MARKER) + 1
    spans.append(_sub_span(
        line, line_start, hash_start, hash_start + len(entry.short_hash),
        color=COLORS["hash"], bold=True,
    ))

    author_start = hash_start + len(entry.short_hash) + 2
    if entry.author:
        spans.append(_sub_span(
            line, line_start, author_start, author_start + len(entry.author),
            color=COLORS["author"],
        ))

    summary_start = author_start + len(entry.author) + 2 + len(entry.relative_date) + 3
    if entry.display_summary:
        spans.append(_sub_span(
            line, line_start, summary_start, summary_start + len(entry.display_summary),
            color=COLORS["summary"], italic=True,
        ))
    return spans


def highlights_for_entries(entries: list[DisplayEntry]) -> list[HighlightSpan]:
    """Compute highlight spans from the entries' kinds and fields."""
    spans: list[HighlightSpan] = []
    byte_offset = 0

    for entry in entries:
        line_start = byte_offset
        line_end = line_start + _nbytes(entry.text)
        byte_offset = line_end + 1

        if entry.kind is EntryKind.TITLE:
            spans.append(_title_span(line_start, line_end))
        elif entry.kind is EntryKind.BLOCK_HEADER:
            spans.extend(_header_spans(entry, line_start, line_end))
        elif entry.kind is EntryKind.FOOTER:
            spans.append(_footer_span(line_start, line_end))

    return spans
