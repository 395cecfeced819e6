"""
Terminal host — runs a blame session in a textual app.

Highlight spans become rich ``Text`` styles.  The app shows the visible
slice of the display entries with the cursor line in reverse video, and a
status bar on the last row.  ``render_ansi`` uses the same styling for
non-interactive ``--print`` output.
"""

from __future__ import annotations

import io
import logging
import threading
from functools import partial
from typing import Any, Callable

from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from .host import BlameHost
from .models import DisplayEntry, EntryKind, HighlightSpan

logger = logging.getLogger(__name__)

_NAVIGATION_KEYS = {
    "up": -1,
    "k": -1,
    "down": 1,
    "j": 1,
}

TAB_WIDTH = 4
DEFAULT_PAGE_HEIGHT = 20


# ===================================================================
# Span rendering
# ===================================================================

def span_style(span: HighlightSpan) -> Style:
    return Style(
        color=Color.from_rgb(*span.color),
        bold=span.bold or None,
        italic=span.italic or None,
        underline=span.underline or None,
    )


def styled_lines(content: str, spans: list[HighlightSpan]) -> list[list[tuple[str, HighlightSpan | None]]]:
    """Split *content* into lines of ``(text, span)`` segments.

    Span offsets are UTF-8 byte offsets.  Where spans overlap, the one added
    last wins.
    """
    data = content.encode("utf-8")
    styles: list[HighlightSpan | None] = [None] * len(data)
    for span in spans:
        for pos in range(max(span.start, 0), min(span.end, len(data))):
            styles[pos] = span

    lines: list[list[tuple[str, HighlightSpan | None]]] = []
    segments: list[tuple[str, HighlightSpan | None]] = []
    run_start = 0
    for pos in range(len(data) + 1):
        at_end = pos == len(data)
        newline = not at_end and data[pos] == 0x0A
        if at_end or newline or styles[pos] is not styles[run_start]:
            if pos > run_start:
                segments.append((data[run_start:pos].decode("utf-8", errors="replace"), styles[run_start]))
            if newline or at_end:
                lines.append(segments)
                segments = []
                run_start = pos + 1
            else:
                run_start = pos
    if content.endswith("\n"):
        lines.pop()
    return lines


def styled_text(content: str, spans: list[HighlightSpan]) -> list[Text]:
    """One rich ``Text`` per line of *content*."""
    lines = []
    for segments in styled_lines(content, spans):
        line = Text(tab_size=TAB_WIDTH, no_wrap=True, overflow="crop")
        for text, span in segments:
            line.append(text, style=span_style(span) if span is not None else None)
        lines.append(line)
    return lines


def render_ansi(content: str, spans: list[HighlightSpan], *, color: bool = True) -> str:
    """Render *content* with *spans* applied as ANSI colours."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=color,
        color_system="truecolor" if color else None,
        highlight=False,
        soft_wrap=True,
    )
    console.print(Text("\n").join(styled_text(content, spans)), end="")
    return buffer.getvalue()


# ===================================================================
# Host
# ===================================================================

class TerminalHost(BlameHost):
    """A single-slot host: the blame panel fills the whole screen."""

    def __init__(self, file_path: str | None, *, color: bool = True):
        self.file_path = file_path
        self.color = color

        self.entries: list[DisplayEntry] = []
        self.layers: dict[str, list[HighlightSpan]] = {}
        self.panel: int | None = None
        self.cursor = 0
        self.top = 0
        self.page_height = DEFAULT_PAGE_HEIGHT
        self.status = ""
        self.statuses: list[str] = []
        self.commands: dict[str, Callable[[], None]] = {}
        self.modes: dict[str, dict[str, Callable[[], None]]] = {}
        self.mode: str | None = None
        self._next_panel = 1
        self.on_status: Callable[[str], None] | None = None

    # -------------------------------------------------------------------
    # BlameHost
    # -------------------------------------------------------------------

    def active_file(self) -> str | None:
        return self.file_path

    def active_slot(self) -> Any:
        return "main"

    def open_panel(self, slot: Any, name: str, mode: str, entries: list[DisplayEntry]) -> Any:
        self.panel = self._next_panel
        self._next_panel += 1
        self.mode = mode
        self.set_panel_content(self.panel, entries)
        self.cursor = self._first_content_line()
        logger.debug("opened panel %s (%s) in slot %s", self.panel, name, slot)
        return self.panel

    def set_panel_content(self, panel: Any, entries: list[DisplayEntry]) -> None:
        self.entries = list(entries)
        self.cursor = min(self.cursor, max(len(self.entries) - 1, 0))

    def close_panel(self, panel: Any, slot: Any) -> None:
        self.panel = None
        self.mode = None
        self.entries = []
        self.layers = {}

    def clear_layer(self, panel: Any, layer: str) -> None:
        self.layers[layer] = []

    def add_span(self, panel: Any, layer: str, span: HighlightSpan) -> None:
        self.layers.setdefault(layer, []).append(span)

    def metadata_at_cursor(self, panel: Any) -> dict[str, Any] | None:
        if panel is None or not 0 <= self.cursor < len(self.entries):
            return None
        return self.entries[self.cursor].metadata

    def set_status(self, message: str) -> None:
        self.status = message
        self.statuses.append(message)
        if self.on_status is not None:
            self.on_status(message)

    def define_mode(self, name: str, bindings: dict[str, Callable[[], None]], read_only: bool) -> None:
        self.modes[name] = dict(bindings)

    def register_command(self, name: str, description: str, callback: Callable[[], None]) -> None:
        self.commands[name] = callback

    # -------------------------------------------------------------------
    # Cursor movement
    # -------------------------------------------------------------------

    def _first_content_line(self) -> int:
        for idx, entry in enumerate(self.entries):
            if entry.kind is EntryKind.CONTENT:
                return idx
        return 0

    def move_cursor(self, delta: int) -> None:
        if not self.entries:
            return
        self.cursor = min(max(self.cursor + delta, 0), len(self.entries) - 1)

    def _scroll_into_view(self) -> None:
        if self.cursor < self.top:
            self.top = self.cursor
        elif self.cursor >= self.top + self.page_height:
            self.top = self.cursor - self.page_height + 1

    def spans(self) -> list[HighlightSpan]:
        return [span for layer in self.layers.values() for span in layer]

    def content(self) -> str:
        return "".join(f"{entry.text}\n" for entry in self.entries)

    def handle_key(self, key: str) -> None:
        if key in _NAVIGATION_KEYS:
            self.move_cursor(_NAVIGATION_KEYS[key])
        elif key == "pageup":
            self.move_cursor(-self.page_height)
        elif key == "pagedown":
            self.move_cursor(self.page_height)
        elif key in ("g", "home"):
            self.move_cursor(-len(self.entries))
        elif key in ("G", "end"):
            self.move_cursor(len(self.entries))
        else:
            action = self.binding_for(key)
            if action is not None:
                action()

    def binding_for(self, key: str) -> Callable[[], None] | None:
        """Command bound to *key* in the current mode, if any."""
        if self.mode is None:
            return None
        return self.modes.get(self.mode, {}).get(key)

    # -------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------

    def visible_text(self) -> Text:
        """The lines currently scrolled into view, cursor line reversed."""
        self._scroll_into_view()
        spans = self.spans() if self.color else []
        lines = styled_text(self.content(), spans)
        window = []
        for idx in range(self.top, min(self.top + self.page_height, len(lines))):
            line = lines[idx]
            if idx == self.cursor:
                if not line.plain:
                    line = Text(" ")
                line.stylize("reverse")
            window.append(line)
        body = Text("\n").join(window)
        body.no_wrap = True
        body.overflow = "crop"
        return body

    def run(self) -> None:
        """Interactive loop until the panel is closed."""
        BlameApp(self).run()


class BlameApp(App):
    """Full-screen view of a ``TerminalHost`` panel.

    Cursor keys are handled on the UI thread.  Session commands run in a
    thread worker so git never blocks the screen, and their status
    messages are drawn as they arrive.
    """

    CSS = """
    #blame {
        height: 1fr;
    }
    #status {
        dock: bottom;
        height: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", priority=True),
    ]

    def __init__(self, host: TerminalHost):
        super().__init__()
        self.host = host
        self._ui_thread: int | None = None

    def compose(self) -> ComposeResult:
        yield Static("", id="blame")
        yield Static("", id="status")

    def on_mount(self) -> None:
        self._ui_thread = threading.get_ident()
        self.host.on_status = self._status_changed
        self.host.page_height = max(self.size.height - 1, 1)
        self.refresh_view()

    def on_unmount(self) -> None:
        self.host.on_status = None

    def on_resize(self, event: events.Resize) -> None:
        self.host.page_height = max(event.size.height - 1, 1)
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        key = event.key
        if event.character and len(event.character) == 1 and event.character.isprintable():
            key = event.character
        logger.debug("key=%s", key)
        event.stop()

        action = self.host.binding_for(key)
        if action is None:
            self.host.handle_key(key)
            self.refresh_view()
            return
        self.run_worker(partial(self._run_command, action), thread=True, group="blame")

    def _run_command(self, action: Callable[[], None]) -> None:
        action()
        self.call_from_thread(self._command_finished)

    def _command_finished(self) -> None:
        if self.host.panel is None:
            self.exit()
        else:
            self.refresh_view()

    def _status_changed(self, message: str) -> None:
        if threading.get_ident() == self._ui_thread:
            self.refresh_view()
        else:
            self.call_from_thread(self.refresh_view)

    def refresh_view(self) -> None:
        self.query_one("#blame", Static).update(self.host.visible_text())
        status_style = "dim" if self.host.color else ""
        self.query_one("#status", Static).update(Text(self.host.status, style=status_style))
