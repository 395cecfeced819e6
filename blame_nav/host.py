"""
Host boundary — what the blame engine needs from the application it runs in.

A host owns panels (read-only views placed in a slot), a highlight layer
per panel, the cursor, the status line and key bindings.  ``BlameHost``
lists those operations; ``register`` wires a session's commands into a
host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from .models import DisplayEntry, HighlightSpan

if TYPE_CHECKING:
    from .session import BlameSession


MODE_NAME = "git-blame"
PANEL_NAME = "*Git Blame*"

# command name -> (description, BlameSession method)
COMMANDS = {
    "open-blame": ("Show git blame for current file", "open"),
    "blame-go-back": ("Show blame at parent commit of current line", "go_back"),
    "blame-close": ("Close the git blame panel", "close"),
    "blame-copy-hash": ("Copy the commit hash of the current line", "copy_hash"),
}

MODE_BINDINGS = {
    "b": "blame-go-back",
    "q": "blame-close",
    "escape": "blame-close",
    "y": "blame-copy-hash",
}


class BlameHost(ABC):
    """Interface the blame session drives.  Subclasses implement every method."""

    @abstractmethod
    def active_file(self) -> str | None:
        """Path of the file in the active view, or None."""
        pass

    @abstractmethod
    def active_slot(self) -> Any:
        """Token for the slot (split, window) the active view occupies."""
        pass

    @abstractmethod
    def open_panel(self, slot: Any, name: str, mode: str, entries: list[DisplayEntry]) -> Any:
        """Show *entries* read-only in *slot*; return a panel handle or None."""
        pass

    @abstractmethod
    def set_panel_content(self, panel: Any, entries: list[DisplayEntry]) -> None:
        pass

    @abstractmethod
    def close_panel(self, panel: Any, slot: Any) -> None:
        """Close *panel* and put back whatever occupied *slot* before it."""
        pass

    @abstractmethod
    def clear_layer(self, panel: Any, layer: str) -> None:
        pass

    @abstractmethod
    def add_span(self, panel: Any, layer: str, span: HighlightSpan) -> None:
        pass

    @abstractmethod
    def metadata_at_cursor(self, panel: Any) -> dict[str, Any] | None:
        """Metadata of the display entry under the cursor in *panel*."""
        pass

    @abstractmethod
    def set_status(self, message: str) -> None:
        pass

    @abstractmethod
    def define_mode(self, name: str, bindings: dict[str, Callable[[], None]], read_only: bool) -> None:
        pass

    @abstractmethod
    def register_command(self, name: str, description: str, callback: Callable[[], None]) -> None:
        pass


def register(host: BlameHost, session: BlameSession) -> None:
    """Register the blame commands and the read-only blame mode with *host*."""
    callbacks = {}
    for name, (description, method) in COMMANDS.items():
        callbacks[name] = getattr(session, method)
        host.register_command(name, description, callbacks[name])

    bindings = {key: callbacks[command] for key, command in MODE_BINDINGS.items()}
    host.define_mode(MODE_NAME, bindings, read_only=True)
