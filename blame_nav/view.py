"""
View assembly — turn the current blocks into display entries.

The panel shows, in order: a title, a blank line, one header per block
followed by the block's lines, a blank line and a footer with key hints.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .models import (
    BlankEntry,
    Block,
    ContentEntry,
    DisplayEntry,
    EmptyEntry,
    FooterEntry,
    HeaderEntry,
    TitleEntry,
)

if TYPE_CHECKING:
    from .session import NavigationState


TITLE_MARKER = "Git Blame:"
HEADER_MARKER = "──"
FOOTER_HINT = "| ↑/↓/j/k:"
EMPTY_MESSAGE = "  No blame information available"

MAX_SUMMARY_LEN = 60
ELLIPSIS = "..."


def truncate_summary(summary: str, max_len: int = MAX_SUMMARY_LEN) -> str:
    if len(summary) > max_len:
        return summary[: max_len - len(ELLIPSIS)] + ELLIPSIS
    return summary


def format_block_header(block: Block) -> str:
    """``── <hash> (<author>, <date>) "<summary>" ──``"""
    summary = truncate_summary(block.summary)
    return (
        f"{HEADER_MARKER} {block.short_hash} "
        f"({block.author}, {block.relative_date}) \"{summary}\" {HEADER_MARKER}"
    )


def header_entry(block: Block) -> HeaderEntry:
    return HeaderEntry(
        text=format_block_header(block),
        hash=block.commit_hash,
        author=block.author,
        relative_date=block.relative_date,
        summary=block.summary,
        display_summary=truncate_summary(block.summary),
    )


def format_title(source_file_path: str | None, current_commit: str | None) -> str:
    file_name = os.path.basename(source_file_path) if source_file_path else "file"
    commit_ref = current_commit[:7] if current_commit else "HEAD"
    return f"{TITLE_MARKER} {file_name} @ {commit_ref}"


def format_footer(block_count: int, depth: int) -> str:
    back_info = f" | depth: {depth}" if depth > 0 else ""
    return (
        f"{block_count} blocks {FOOTER_HINT} navigate | b: blame at parent "
        f"| y: yank hash | q: close{back_info}"
    )


def build_blame_entries(state: NavigationState) -> list[DisplayEntry]:
    """Assemble the display entries for *state*."""
    entries: list[DisplayEntry] = [
        TitleEntry(format_title(state.source_file_path, state.current_commit)),
        BlankEntry(),
    ]

    if not state.blocks:
        entries.append(EmptyEntry(EMPTY_MESSAGE))
    else:
        for block in state.blocks:
            entries.append(header_entry(block))
            for line in block.lines:
                entries.append(ContentEntry(
                    text=line.content,
                    hash=line.commit_hash,
                    line_number=line.final_line,
                ))

    entries.append(BlankEntry())
    entries.append(FooterEntry(format_footer(len(state.blocks), len(state.commit_stack))))
    return entries


def entries_to_content(entries: list[DisplayEntry]) -> str:
    """Flatten entries to the text the panel displays (one line each)."""
    return "".join(f"{entry.text}\n" for entry in entries)
