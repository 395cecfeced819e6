"""
Data model for the blame engine.

Line records come straight from ``git blame --porcelain``; blocks group
consecutive records by commit; display entries are what the host panel
shows, one per rendered line; highlight spans style those lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar


NOT_COMMITTED = "0" * 40

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class LineRecord:
    """One line of the blamed file and the commit that last touched it."""

    commit_hash: str
    orig_line: int
    final_line: int
    content: str
    author: str = ""
    author_mail: str = ""
    author_time: int | None = None
    relative_date: str = ""
    summary: str = ""
    filename: str = ""

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]

    @property
    def is_committed(self) -> bool:
        return self.commit_hash != NOT_COMMITTED


@dataclass
class Block:
    """A run of consecutive lines attributed to the same commit."""

    commit_hash: str
    author: str
    relative_date: str
    summary: str
    start_line: int
    end_line: int
    author_time: int | None = None
    lines: list[LineRecord] = field(default_factory=list)

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]


# -------------------------------------------------------------------
# Display entries
# -------------------------------------------------------------------

class EntryKind(str, Enum):
    TITLE = "title"
    BLANK = "blank"
    EMPTY = "empty"
    BLOCK_HEADER = "block-header"
    CONTENT = "content"
    FOOTER = "footer"


@dataclass(frozen=True)
class TitleEntry:
    text: str
    kind: ClassVar[EntryKind] = EntryKind.TITLE

    @property
    def metadata(self) -> dict[str, Any]:
        return {"type": self.kind.value}


@dataclass(frozen=True)
class BlankEntry:
    text: str = ""
    kind: ClassVar[EntryKind] = EntryKind.BLANK

    @property
    def metadata(self) -> dict[str, Any]:
        return {"type": self.kind.value}


@dataclass(frozen=True)
class EmptyEntry:
    text: str
    kind: ClassVar[EntryKind] = EntryKind.EMPTY

    @property
    def metadata(self) -> dict[str, Any]:
        return {"type": self.kind.value}


@dataclass(frozen=True)
class HeaderEntry:
    """Block header. ``display_summary`` is the (possibly truncated) summary in ``text``."""

    text: str
    hash: str
    author: str
    relative_date: str
    summary: str
    display_summary: str
    kind: ClassVar[EntryKind] = EntryKind.BLOCK_HEADER

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "hash": self.hash,
            "shortHash": self.short_hash,
            "author": self.author,
            "relativeDate": self.relative_date,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class ContentEntry:
    text: str
    hash: str
    line_number: int
    kind: ClassVar[EntryKind] = EntryKind.CONTENT

    @property
    def metadata(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "hash": self.hash,
            "lineNumber": self.line_number,
        }


@dataclass(frozen=True)
class FooterEntry:
    text: str
    kind: ClassVar[EntryKind] = EntryKind.FOOTER

    @property
    def metadata(self) -> dict[str, Any]:
        return {"type": self.kind.value}


DisplayEntry = TitleEntry | BlankEntry | EmptyEntry | HeaderEntry | ContentEntry | FooterEntry


# -------------------------------------------------------------------
# Highlighting
# -------------------------------------------------------------------

@dataclass(frozen=True)
class HighlightSpan:
    """Style applied to ``[start, end)`` bytes of the flattened view text."""

    start: int
    end: int
    color: RGB
    bold: bool = False
    underline: bool = False
    italic: bool = False
