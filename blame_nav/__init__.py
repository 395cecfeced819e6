"""
blame-nav — navigable git blame.

Parses ``git blame --porcelain`` output, groups lines into per-commit
blocks and lets a host step back through history one parent at a time.
"""

from .blocks import group_into_blocks
from .git import fetch_blame, run_process
from .highlight import derive_highlights, highlights_for_entries
from .porcelain import parse_blame_porcelain, relative_date
from .session import BlameSession, NavigationState
from .view import build_blame_entries, entries_to_content, format_block_header

__all__ = [
    "BlameSession",
    "NavigationState",
    "build_blame_entries",
    "derive_highlights",
    "entries_to_content",
    "fetch_blame",
    "format_block_header",
    "group_into_blocks",
    "highlights_for_entries",
    "parse_blame_porcelain",
    "relative_date",
    "run_process",
]
