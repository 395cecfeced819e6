"""
Blame session — the navigation state machine behind the blame panel.

A session is either closed or open at some commit.  Opening blames the
working state of the active file; "go back" re-blames the file at the
parent of the commit that owns the line under the cursor; closing puts
the previous view back and forgets everything.

Every failure leaves the state exactly as it was and is reported through
the host's status line.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable

from .blocks import group_into_blocks
from .clipboard import copy_to_clipboard, is_full_hash
from .config import Settings
from .git import fetch_blame
from .highlight import LAYER, highlights_for_entries
from .host import MODE_NAME, PANEL_NAME, BlameHost
from .models import NOT_COMMITTED, Block, DisplayEntry, LineRecord
from .view import build_blame_entries, entries_to_content

logger = logging.getLogger(__name__)

HEAD = "HEAD"

MSG_BUSY = "Git blame is busy"
MSG_ALREADY_OPEN = "Git blame already open"
MSG_NO_FILE = "No file open to blame"
MSG_LOADING = "Loading git blame..."
MSG_NO_BLAME = "No blame information available (not a git file or error)"
MSG_PANEL_FAILED = "Failed to open git blame panel"
MSG_CLOSED = "Git blame closed"
MSG_NO_LINE = "Move cursor to a blame line first"
MSG_NOT_COMMITTED = "This line is not yet committed"

Fetcher = Callable[..., tuple[list[LineRecord] | None, str | None]]


def parent_ref(commit_hash: str) -> str:
    """Reference to the first parent of *commit_hash*."""
    return f"{commit_hash}^"


@dataclass
class NavigationState:
    is_open: bool = False
    panel: Any = None
    slot: Any = None
    source_file_path: str | None = None
    current_commit: str | None = None   # None means HEAD / working tree
    commit_stack: list[str] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    entries: list[DisplayEntry] = field(default_factory=list)
    rendered_content: str = ""

    @property
    def depth(self) -> int:
        return len(self.commit_stack)


class BlameSession:
    """One blame panel's state, driven by host commands.

    Commands are serialized: one issued while another is still running
    is refused with a status message.
    """

    def __init__(
        self,
        host: BlameHost,
        *,
        fetch: Fetcher = fetch_blame,
        copy: Callable[..., bool] = copy_to_clipboard,
        settings: Settings | None = None,
    ):
        self.host = host
        self.state = NavigationState()
        self._fetch = fetch
        self._copy = copy
        self._settings = settings
        self._lock = threading.Lock()

    @contextmanager
    def _serialized(self):
        """Hold the command lock; yields False when another command has it."""
        if not self._lock.acquire(blocking=False):
            self.host.set_status(MSG_BUSY)
            yield False
            return
        try:
            yield True
        finally:
            self._lock.release()

    def _fetch_lines(self, ref: str | None) -> tuple[list[LineRecord] | None, str | None]:
        return self._fetch(self.state.source_file_path, ref, settings=self._settings)

    # -------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------

    def _assemble(self) -> list[DisplayEntry]:
        entries = build_blame_entries(self.state)
        self.state.entries = entries
        self.state.rendered_content = entries_to_content(entries)
        return entries

    def _paint(self) -> None:
        panel = self.state.panel
        self.host.clear_layer(panel, LAYER)
        for span in highlights_for_entries(self.state.entries):
            self.host.add_span(panel, LAYER, span)

    def _update_view(self) -> None:
        entries = self._assemble()
        self.host.set_panel_content(self.state.panel, entries)
        self._paint()

    def _reset(self) -> None:
        self.state = NavigationState()

    # -------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------

    def commit_at_cursor(self) -> str | None:
        """Hash of the commit owning the entry under the cursor, if any."""
        if self.state.panel is None:
            return None
        metadata = self.host.metadata_at_cursor(self.state.panel)
        if metadata:
            commit_hash = metadata.get("hash")
            if commit_hash:
                return commit_hash
        return None

    def _resolve_cursor_commit(self) -> str | None:
        """Cursor commit, or None after reporting why there isn't a usable one."""
        commit_hash = self.commit_at_cursor()
        if not commit_hash:
            self.host.set_status(MSG_NO_LINE)
            return None
        if commit_hash == NOT_COMMITTED:
            self.host.set_status(MSG_NOT_COMMITTED)
            return None
        return commit_hash


    # ===================================================================
    # Commands
    # ===================================================================

    def open(self, ref: str | None = None) -> bool:
        """Blame the host's active file at *ref* (HEAD when omitted) and show it."""
        with self._serialized() as acquired:
            return acquired and self._open(ref)

    def go_back(self) -> bool:
        """Re-blame at the parent of the commit owning the cursor line."""
        with self._serialized() as acquired:
            return acquired and self._go_back()

    def close(self) -> bool:
        """Close the panel, restore the previous view and forget the session."""
        with self._serialized() as acquired:
            return acquired and self._close()

    def copy_hash(self) -> bool:
        """Copy the full hash of the cursor line's commit to the clipboard."""
        with self._serialized() as acquired:
            return acquired and self._copy_hash()

    def _open(self, ref: str | None) -> bool:
        if self.state.is_open:
            self.host.set_status(MSG_ALREADY_OPEN)
            return False

        file_path = self.host.active_file()
        if not file_path:
            self.host.set_status(MSG_NO_FILE)
            return False

        self.host.set_status(MSG_LOADING)

        self.state.slot = self.host.active_slot()
        self.state.source_file_path = file_path
        self.state.current_commit = ref
        self.state.commit_stack = []

        lines, error = self._fetch_lines(ref)
        if lines is None:
            self._reset()
            self.host.set_status(f"Git blame error: {error}")
            return False
        if not lines:
            self._reset()
            self.host.set_status(MSG_NO_BLAME)
            return False

        self.state.blocks = group_into_blocks(lines)
        entries = self._assemble()

        panel = self.host.open_panel(self.state.slot, PANEL_NAME, MODE_NAME, entries)
        if panel is None:
            self._reset()
            self.host.set_status(MSG_PANEL_FAILED)
            return False

        self.state.panel = panel
        self.state.is_open = True
        self._paint()

        self.host.set_status(
            f"Git blame: {len(self.state.blocks)} blocks | b: blame at parent | q: close"
        )
        logger.debug("Git blame panel opened for %s", file_path)
        return True

    def _go_back(self) -> bool:
        if not self.state.is_open or not self.state.source_file_path:
            return False

        commit_hash = self._resolve_cursor_commit()
        if commit_hash is None:
            return False

        short = commit_hash[:7]
        parent = parent_ref(commit_hash)

        self.host.set_status(f"Loading blame at {short}^...")
        self.state.commit_stack.append(self.state.current_commit or HEAD)

        lines, error = self._fetch_lines(parent)
        if not lines:
            self.state.commit_stack.pop()
            message = f"Cannot get blame at {short}^ (may be initial commit or file didn't exist)"
            if error:
                message += f": {error}"
            self.host.set_status(message)
            logger.debug("blame at %s failed: %s", parent, error or "no lines")
            return False

        self.state.current_commit = parent
        self.state.blocks = group_into_blocks(lines)
        self._update_view()

        self.host.set_status(
            f"Git blame at {short}^ | depth: {self.state.depth} | b: go deeper | q: close"
        )
        return True

    def _close(self) -> bool:
        if not self.state.is_open:
            return False

        self.host.close_panel(self.state.panel, self.state.slot)
        self._reset()

        self.host.set_status(MSG_CLOSED)
        return True

    def _copy_hash(self) -> bool:
        if not self.state.is_open:
            return False

        commit_hash = self._resolve_cursor_commit()
        if commit_hash is None:
            return False
        if not is_full_hash(commit_hash):
            self.host.set_status(f"Not a commit hash: {commit_hash!r}")
            return False

        try:
            copied = self._copy(commit_hash, self._settings)
        except Exception as e:
            logger.debug("clipboard copy raised: %s", e)
            copied = False

        if copied:
            self.host.set_status(f"Copied: {commit_hash[:7]} ({commit_hash})")
        else:
            self.host.set_status(f"Hash: {commit_hash}")
        return copied
