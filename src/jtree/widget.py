"""Collapsible JSON tree widget."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from jtree.state import Command, Frame, FrameLine, Mode, ViewerState
from jtree.tokens import TokenKind


class JsonTreeView(Widget, can_focus=True):
    """A read-only JSON tree browser Textual widget.

    Supported keys:
      j k / arrows  move      ctrl+d ctrl+u / PgDn PgUp  half page
      g G / Home End  top and bottom
      l h / right left  expand and collapse    space  toggle
      M R  collapse all / expand all
      / search   n N  next / previous match   Esc  clear search   q  quit
    """

    DEFAULT_CSS = """
    JsonTreeView {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class Quit(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        state: ViewerState,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.state = state
        self.status_msg: str = ""

    _BROWSE_KEYS = {
        "j": Command.MOVE_DOWN,
        "down": Command.MOVE_DOWN,
        "k": Command.MOVE_UP,
        "up": Command.MOVE_UP,
        "ctrl+d": Command.PAGE_DOWN,
        "pagedown": Command.PAGE_DOWN,
        "ctrl+u": Command.PAGE_UP,
        "pageup": Command.PAGE_UP,
        "g": Command.TOP,
        "home": Command.TOP,
        "G": Command.BOTTOM,
        "end": Command.BOTTOM,
        "l": Command.EXPAND_CURRENT,
        "right": Command.EXPAND_CURRENT,
        "h": Command.COLLAPSE_CURRENT,
        "left": Command.COLLAPSE_CURRENT,
        "space": Command.TOGGLE_CURRENT,
        "M": Command.COLLAPSE_ALL,
        "R": Command.EXPAND_ALL,
        "/": Command.ENTER_SEARCH,
        "n": Command.NEXT_MATCH,
        "N": Command.PREV_MATCH,
        "escape": Command.CLEAR_SEARCH,
        "q": Command.QUIT,
        "Q": Command.QUIT,
    }

    _KIND_STYLE = {
        TokenKind.OBJECT: "bold white",
        TokenKind.ARRAY: "bold white",
        TokenKind.STRING: "green",
        TokenKind.PRIMITIVE: "yellow",
    }

    # -- Key handling ------------------------------------------------------

    def _command_for(self, event) -> tuple[Command | None, str]:
        key = event.key
        char = event.character or ""
        if self.state.mode is Mode.SEARCH_EDITING:
            if key == "enter":
                return Command.CONFIRM_SEARCH, ""
            if key == "escape":
                return Command.CANCEL_SEARCH, ""
            if key == "backspace":
                return Command.SEARCH_BACKSPACE, ""
            if char and char.isprintable():
                return Command.SEARCH_APPEND, char
            return None, ""
        # printable keys arrive with key names like "slash"; match the char first
        command = self._BROWSE_KEYS.get(char) if char.isprintable() and char else None
        if command is None:
            command = self._BROWSE_KEYS.get(key)
        return command, ""

    def _handle_key(self, event) -> None:
        command, char = self._command_for(event)
        if command is None:
            return
        self.status_msg = ""
        state = self.state
        state.handle(command, char)
        if command is Command.CONFIRM_SEARCH and state.search.term and not state.search:
            self.status_msg = f"Pattern not found: {state.search.term}"
        elif command in (Command.NEXT_MATCH, Command.PREV_MATCH) and not state.search:
            if state.search.term:
                self.status_msg = f"Pattern not found: {state.search.term}"
            else:
                self.status_msg = "No previous search"
        if not state.running:
            self.post_message(self.Quit())

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        self._handle_key(event)
        self.refresh()

    def on_resize(self, event: events.Resize) -> None:
        self.state.set_viewport_height(self._visible_height())

    def _visible_height(self) -> int:
        return max(1, self.content_region.height - 2)

    # =====================================================================
    # Rendering
    # =====================================================================

    def _render_line(self, result: Text, line: FrameLine) -> None:
        base = ""
        if line.is_current:
            base = "reverse "
        elif line.is_match:
            base = "bold black on dark_goldenrod "
        result.append(" " * line.indent)
        if line.key is not None:
            result.append(line.key, style=f"{base}cyan")
            result.append(" : ", style=f"{base}white")
        if line.collapsed is not None:
            marker, _, rest = line.text.partition(" ")
            result.append(marker + " ", style=f"{base}dim")
            result.append(rest, style=f"{base}{'dim italic' if line.collapsed else 'bold white'}")
        elif line.kind is not None:
            style = self._KIND_STYLE[line.kind]
            if line.kind is TokenKind.PRIMITIVE and line.text in ("true", "false", "null"):
                style = "magenta"
            result.append(line.text, style=f"{base}{style}")
        result.append("\n")

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 3 or width < 10:
            return Text("(too small)")

        state = self.state
        content_height = height - 2
        if state.viewport_height != content_height:
            state.set_viewport_height(content_height)
        frame: Frame = state.render()

        result = Text()
        for line in frame.lines:
            self._render_line(result, line)
        for _ in range(content_height - len(frame.lines)):
            result.append("~\n", style="dim blue")

        # status bar
        mode_label = " SEARCH " if frame.prompt is not None else " BROWSE "
        mode_style = (
            "bold white on dark_magenta"
            if frame.prompt is not None
            else "bold white on dark_green"
        )
        result.append(mode_label, style=mode_style)
        if frame.degraded:
            result.append(" [truncated] ", style="bold white on dark_red")
        status = str(frame.status) if frame.status else ""
        result.append(f"  {self.status_msg}")
        spacer = max(0, width - len(mode_label) - len(self.status_msg) - len(status) - 4)
        if frame.degraded:
            spacer = max(0, spacer - 13)
        result.append(" " * spacer)
        result.append(status, style="bold")

        if frame.prompt is not None:
            result.append(f"\n/{frame.prompt}", style="bold magenta")
            result.append(" ", style="reverse")
        else:
            result.append("\n")
        return result
