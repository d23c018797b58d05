"""Line-oriented search over the visible projection."""

from __future__ import annotations

from collections.abc import Sequence

from jtree._fold import VisibleLine
from jtree.tree import TokenTree


def build_matches(
    term: str, lines: Sequence[VisibleLine], tree: TokenTree, source: str
) -> list[int]:
    """Return positions of visible lines whose token text contains *term*.

    Matching is a case-insensitive substring test on the token's raw source
    text. Container lines are skipped: their header text is generated for
    display and is not part of the document.
    """
    if not term:
        return []
    needle = term.lower()
    matches: list[int] = []
    for pos, line in enumerate(lines):
        if tree.is_container(line.token):
            continue
        if needle in tree.text_of(line.token, source).lower():
            matches.append(pos)
    return matches


class SearchIndex:
    """Active search term, its matches and a cyclic match cursor.

    Matches are line positions, so they go stale whenever the projection
    changes; call :meth:`rebuild` after every collapse change.
    """

    def __init__(self) -> None:
        self.term: str = ""
        self.matches: list[int] = []
        self.cursor: int = 0
        self._match_set: frozenset[int] = frozenset()

    def __len__(self) -> int:
        return len(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)

    def rebuild(
        self, lines: Sequence[VisibleLine], tree: TokenTree, source: str
    ) -> None:
        self.matches = build_matches(self.term, lines, tree, source)
        self._match_set = frozenset(self.matches)
        if self.cursor >= len(self.matches):
            self.cursor = 0

    def search(
        self, term: str, lines: Sequence[VisibleLine], tree: TokenTree, source: str
    ) -> int | None:
        """Set a new term and return the first matching line, if any."""
        self.term = term
        self.cursor = 0
        self.rebuild(lines, tree, source)
        return self.current

    def clear(self) -> None:
        self.term = ""
        self.matches = []
        self._match_set = frozenset()
        self.cursor = 0

    def is_match(self, position: int) -> bool:
        return position in self._match_set

    @property
    def current(self) -> int | None:
        if not self.matches:
            return None
        return self.matches[self.cursor]

    def next(self) -> int | None:
        """Advance to the next match (wrapping) and return its line."""
        if not self.matches:
            return None
        self.cursor = (self.cursor + 1) % len(self.matches)
        return self.matches[self.cursor]

    def prev(self) -> int | None:
        """Step back to the previous match (wrapping) and return its line."""
        if not self.matches:
            return None
        total = len(self.matches)
        self.cursor = (self.cursor - 1 + total) % total
        return self.matches[self.cursor]
