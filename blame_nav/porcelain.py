"""
``git blame --porcelain`` parser and relative-date formatting.

Porcelain output is a sequence of groups, one per blamed line::

    <sha> <orig-line> <final-line> [<num-lines>]
    author <name>
    author-mail <email>
    author-time <timestamp>
    ...
    summary <commit message>
    filename <filename>
    \t<content>

The metadata lines only appear the first time a commit is mentioned, so
the parser keeps a per-pass cache of what it has seen for each commit.
"""

from __future__ import annotations

import re
import time

from .models import LineRecord


_HEADER_RE = re.compile(r"^([0-9a-f]{40}) (\d+) (\d+)")

# (bucket size in seconds, unit, upper bound of the bucket)
_BUCKETS = (
    (60, "minute", 3600),
    (3600, "hour", 86400),
    (86400, "day", 604800),
    (604800, "week", 2592000),
    (2592000, "month", 31536000),
)
_YEAR = 31536000


# ===================================================================
# Relative dates
# ===================================================================

def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'s' if value != 1 else ''} ago"


def relative_date(timestamp: int | None, now: int | float) -> str:
    """Format *timestamp* relative to *now* ("3 days ago").

    Buckets are fixed sizes in seconds, not calendar-aware: a month is
    30 days and a year is 365 days.
    """
    if timestamp is None:
        return "unknown date"

    diff = int(now) - int(timestamp)
    if diff < 60:
        return "just now"
    for size, unit, limit in _BUCKETS:
        if diff < limit:
            return _plural(diff // size, unit)
    return _plural(diff // _YEAR, "year")


# ===================================================================
# Porcelain parser
# ===================================================================

def parse_blame_porcelain(raw: str, now: int | float | None = None) -> list[LineRecord]:
    """Parse ``git blame --porcelain`` output into per-line records.

    *now* is the reference time for ``relative_date``; the wall clock is
    used when it is omitted.

    Malformed input never raises: unrecognised lines are skipped and the
    most recent good header values are carried forward.
    """
    if now is None:
        now = time.time()

    records: list[LineRecord] = []
    commit_info: dict[str, dict] = {}  # sha -> author, author_mail, author_time, summary, filename

    current_sha = ""
    orig_line = 0
    final_line = 0
    info: dict = {}

    for line in raw.split("\n"):
        if not line:
            continue

        # Content line: everything after the first tab, verbatim
        if line.startswith("\t"):
            if not current_sha:
                continue
            author_time = info.get("author_time")
            records.append(LineRecord(
                commit_hash=current_sha,
                orig_line=orig_line,
                final_line=final_line,
                content=line[1:],
                author=info.get("author", ""),
                author_mail=info.get("author_mail", ""),
                author_time=author_time,
                relative_date=relative_date(author_time, now),
                summary=info.get("summary", ""),
                filename=info.get("filename", ""),
            ))
            continue

        match = _HEADER_RE.match(line)
        if match:
            current_sha = match.group(1)
            orig_line = int(match.group(2))
            final_line = int(match.group(3))
            info = commit_info.setdefault(current_sha, {})
            continue

        if not current_sha:
            continue

        if line.startswith("author "):
            info["author"] = line[7:]
        elif line.startswith("author-mail "):
            info["author_mail"] = line[12:].strip("<>")
        elif line.startswith("author-time "):
            try:
                info["author_time"] = int(line[12:])
            except ValueError:
                pass
        elif line.startswith("summary "):
            info["summary"] = line[8:]
        elif line.startswith("filename "):
            info["filename"] = line[9:]

    return records
