"""
Block grouping — collapse consecutive lines from the same commit.
"""

from __future__ import annotations

from .models import Block, LineRecord


def group_into_blocks(lines: list[LineRecord]) -> list[Block]:
    """Group consecutive line records that share the same commit hash.

    Every record lands in exactly one block and the order is preserved,
    so flattening the blocks' ``lines`` gives back *lines*.
    """
    blocks: list[Block] = []
    current: Block | None = None

    for rec in lines:
        if current is None or current.commit_hash != rec.commit_hash:
            if current is not None:
                blocks.append(current)
            current = Block(
                commit_hash=rec.commit_hash,
                author=rec.author,
                relative_date=rec.relative_date,
                summary=rec.summary,
                start_line=rec.final_line,
                end_line=rec.final_line,
                author_time=rec.author_time,
            )

        current.lines.append(rec)
        current.start_line = min(current.start_line, rec.final_line)
        current.end_line = max(current.end_line, rec.final_line)

    if current is not None:
        blocks.append(current)

    return blocks
