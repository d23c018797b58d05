"""Viewer session state and the per-command state machine.

Everything in here is independent of the terminal: a widget feeds
:class:`Command` values into :meth:`ViewerState.handle` and draws whatever
:meth:`ViewerState.render` returns.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from jtree._fold import MAX_LINES, CollapseState, VisibleLine, project
from jtree._search import SearchIndex
from jtree.errors import CapacityExceeded
from jtree.tokens import Token, TokenKind, tokenize
from jtree.tree import KeyClassifier, TokenTree

logger = logging.getLogger(__name__)


class Mode(Enum):
    BROWSING = auto()
    SEARCH_EDITING = auto()


class Command(Enum):
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    TOP = auto()
    BOTTOM = auto()
    EXPAND_CURRENT = auto()
    COLLAPSE_CURRENT = auto()
    TOGGLE_CURRENT = auto()
    COLLAPSE_ALL = auto()
    EXPAND_ALL = auto()
    ENTER_SEARCH = auto()
    CONFIRM_SEARCH = auto()
    CANCEL_SEARCH = auto()
    SEARCH_APPEND = auto()  # carries a character
    SEARCH_BACKSPACE = auto()
    NEXT_MATCH = auto()
    PREV_MATCH = auto()
    CLEAR_SEARCH = auto()
    QUIT = auto()


@dataclass
class ViewerConfig:
    indent_size: int = 4
    max_tokens: int = 2048
    max_lines: int = MAX_LINES
    max_search_len: int = 255
    viewport_height: int = 20


@dataclass
class FrameLine:
    position: int
    depth: int
    indent: int
    text: str  # value, inline value or container header
    kind: TokenKind | None = None
    key: str | None = None
    collapsed: bool | None = None  # None for non-containers
    is_current: bool = False
    is_match: bool = False

    @property
    def label(self) -> str:
        if self.key is None:
            return self.text
        return f"{self.key} : {self.text}"

    def __str__(self) -> str:
        return " " * self.indent + self.label


@dataclass
class StatusLine:
    position: int
    total: int
    token_count: int
    term: str = ""
    match_count: int = 0
    match_index: int = 0

    def __str__(self) -> str:
        if self.term:
            return (
                f"Line {self.position}/{self.total} | Search: \"{self.term}\" "
                f"({self.match_count} matches) | "
                f"Match {self.match_index}/{self.match_count}"
            )
        return f"Line {self.position}/{self.total} | Tokens: {self.token_count}"


@dataclass
class Frame:
    lines: list[FrameLine] = field(default_factory=list)
    status: StatusLine | None = None
    prompt: str | None = None  # search buffer while editing
    degraded: bool = False


def container_header(tok: Token, collapsed: bool) -> str:
    if tok.kind is TokenKind.OBJECT:
        body = f"{{{tok.child_count} items}}"
    else:
        body = f"[{tok.child_count} items]"
    if collapsed:
        return f"[+] {body} ..."
    return f"[-] {body}"


def literal_text(tok: Token, source: str) -> str:
    raw = source[tok.start : tok.end]
    if tok.kind is TokenKind.STRING:
        return f'"{raw}"'
    return raw


class ViewerState:
    """One browsing session over a read-only document."""

    def __init__(
        self,
        source: str,
        tokens: Sequence[Token],
        config: ViewerConfig | None = None,
    ) -> None:
        self.config = config or ViewerConfig()
        self.source = source
        self.degraded: CapacityExceeded | None = None
        limit = self.config.max_tokens
        if len(tokens) > limit:
            self.degraded = CapacityExceeded("token", limit, len(tokens))
            logger.warning("%s; browsing a truncated document", self.degraded)
            tokens = tokens[:limit]
        self.tree = TokenTree(tokens)
        self.keys = KeyClassifier(self.tree)
        self.collapsed = CollapseState(self.tree)
        self.search = SearchIndex()
        self.mode = Mode.BROWSING
        self.search_buffer = ""
        self.current_line = 0
        self.scroll_offset = 0
        self.viewport_height = self.config.viewport_height
        self.running = True
        self.lines: list[VisibleLine] = []
        self._refresh()
        logger.debug(
            "session ready: %d tokens, %d visible lines",
            len(self.tree),
            len(self.lines),
        )

    @classmethod
    def from_text(cls, source: str, config: ViewerConfig | None = None) -> ViewerState:
        """Tokenize *source* and open a session on it.

        Raises ParseError or EmptyDocument.
        """
        return cls(source, tokenize(source), config)

    # -- Queries -----------------------------------------------------------

    @property
    def visible_count(self) -> int:
        return len(self.lines)

    @property
    def current_token(self) -> int:
        return self.lines[self.current_line].token

    def _half_page(self) -> int:
        return max(1, self.viewport_height // 2)

    # -- Commands ----------------------------------------------------------

    def handle(self, command: Command, char: str = "") -> None:
        """Apply one input command and bring every derived view up to date."""
        if not self.running:
            return
        if self.mode is Mode.SEARCH_EDITING:
            self._handle_search_editing(command, char)
        else:
            self._handle_browsing(command)
        self._refresh()

    def _handle_browsing(self, command: Command) -> None:
        token = self.current_token
        if command is Command.QUIT:
            self.running = False
        elif command is Command.MOVE_UP:
            self.current_line -= 1
        elif command is Command.MOVE_DOWN:
            self.current_line += 1
        elif command is Command.PAGE_UP:
            self.current_line -= self._half_page()
        elif command is Command.PAGE_DOWN:
            self.current_line += self._half_page()
        elif command is Command.TOP:
            self.current_line = 0
        elif command is Command.BOTTOM:
            self.current_line = self.visible_count - 1
        elif command is Command.EXPAND_CURRENT:
            self.collapsed.expand(token)
        elif command is Command.COLLAPSE_CURRENT:
            self.collapsed.collapse(token)
        elif command is Command.TOGGLE_CURRENT:
            self.collapsed.toggle(token)
        elif command is Command.COLLAPSE_ALL:
            self.collapsed.collapse_all()
            self._refresh()
            self._relocate(token)
        elif command is Command.EXPAND_ALL:
            self.collapsed.expand_all()
            self._refresh()
            self._relocate(token)
        elif command is Command.ENTER_SEARCH:
            self.mode = Mode.SEARCH_EDITING
            self.search_buffer = ""
            self.search.clear()
        elif command is Command.NEXT_MATCH:
            line = self.search.next()
            if line is not None:
                self.current_line = line
        elif command is Command.PREV_MATCH:
            line = self.search.prev()
            if line is not None:
                self.current_line = line
        elif command is Command.CLEAR_SEARCH:
            self.search.clear()

    def _handle_search_editing(self, command: Command, char: str) -> None:
        if command is Command.CONFIRM_SEARCH:
            self.mode = Mode.BROWSING
            first = self.search.search(
                self.search_buffer, self.lines, self.tree, self.source
            )
            if first is not None:
                self.current_line = first
        elif command is Command.CANCEL_SEARCH:
            self.mode = Mode.BROWSING
            self.search_buffer = ""
            self.search.clear()
        elif command is Command.SEARCH_APPEND:
            if (
                len(char) == 1
                and char.isprintable()
                and len(self.search_buffer) < self.config.max_search_len
            ):
                self.search_buffer += char
        elif command is Command.SEARCH_BACKSPACE:
            self.search_buffer = self.search_buffer[:-1]

    def _relocate(self, token: int) -> None:
        """Put the current line on *token*, or its nearest visible ancestor."""
        positions = {line.token: pos for pos, line in enumerate(self.lines)}
        while token >= 0:
            pos = positions.get(token)
            if pos is not None:
                self.current_line = pos
                return
            token = self.tree.parent(token)
        self.current_line = 0

    # -- Derived state -----------------------------------------------------

    def _refresh(self) -> None:
        limit = self.config.max_lines
        lines = project(self.tree, self.keys, self.collapsed, limit=limit + 1)
        if len(lines) > limit:
            lines = lines[:limit]
            if self.degraded is None:
                self.degraded = CapacityExceeded("visible line", limit)
                logger.warning("%s; later lines are not shown", self.degraded)
        self.lines = lines
        if self.search.term:
            self.search.rebuild(self.lines, self.tree, self.source)
        self.current_line = max(0, min(self.current_line, self.visible_count - 1))
        self._ensure_current_visible()

    def _ensure_current_visible(self) -> None:
        height = max(1, self.viewport_height)
        if self.current_line < self.scroll_offset:
            self.scroll_offset = self.current_line
        if self.current_line >= self.scroll_offset + height:
            self.scroll_offset = self.current_line - height + 1

    def set_viewport_height(self, height: int) -> None:
        self.viewport_height = max(1, height)
        self._ensure_current_visible()

    # -- Rendering ---------------------------------------------------------

    def _frame_line(self, position: int) -> FrameLine:
        line = self.lines[position]
        tree = self.tree
        tok = tree[line.token]
        frame_line = FrameLine(
            position=position,
            depth=line.depth,
            indent=line.depth * self.config.indent_size,
            text="",
            is_current=position == self.current_line,
            is_match=self.search.is_match(position),
        )
        shown = line.token
        if line.is_key:
            frame_line.key = literal_text(tok, self.source)
            if line.value is None:
                return frame_line
            shown = line.value
        shown_tok = tree[shown]
        frame_line.kind = shown_tok.kind
        if shown_tok.is_container:
            frame_line.collapsed = shown in self.collapsed
            frame_line.text = container_header(shown_tok, frame_line.collapsed)
        else:
            frame_line.text = literal_text(shown_tok, self.source)
        return frame_line

    def render(self) -> Frame:
        top = self.scroll_offset
        bottom = min(self.visible_count, top + max(1, self.viewport_height))
        search = self.search
        status = StatusLine(
            position=self.current_line + 1,
            total=self.visible_count,
            token_count=len(self.tree),
            term=search.term,
            match_count=len(search),
            match_index=search.cursor + 1 if search else 0,
        )
        return Frame(
            lines=[self._frame_line(pos) for pos in range(top, bottom)],
            status=status,
            prompt=self.search_buffer if self.mode is Mode.SEARCH_EDITING else None,
            degraded=self.degraded is not None,
        )
