"""Structure recovery over a flat token list."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from jtree.errors import EmptyDocument
from jtree.tokens import Token, TokenKind

logger = logging.getLogger(__name__)


class TokenTree:
    """Read-only view of a pre-order token list as a tree.

    There are no parent or child links in the tokens; ancestry comes from
    range containment. Token ``i`` is an ancestor of ``j`` iff
    ``tokens[i].start < tokens[j].start`` and ``tokens[i].end > tokens[j].end``.
    Depths and parents are computed once at construction with a stack of
    open tokens.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        if not tokens:
            raise EmptyDocument()
        self.tokens: list[Token] = list(tokens)
        self._depths: list[int] = []
        self._parents: list[int] = []
        self._skip_cache: dict[int, int] = {}
        self._scan()
        logger.debug("token tree built: %d tokens", len(self.tokens))

    def _scan(self) -> None:
        open_: list[int] = []
        for i, tok in enumerate(self.tokens):
            pos = tok.start
            # pre-order: the innermost candidate ancestor is on top
            while open_:
                top = self.tokens[open_[-1]]
                if top.start < pos < top.end:
                    break
                open_.pop()
            self._depths.append(len(open_))
            self._parents.append(open_[-1] if open_ else -1)
            open_.append(i)

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    def depth(self, index: int) -> int:
        return self._depths[index]

    def parent(self, index: int) -> int:
        """Nearest strictly containing token, or -1 for the root."""
        return self._parents[index]

    def is_container(self, index: int) -> bool:
        return self.tokens[index].is_container

    def contains(self, outer: int, inner: int) -> bool:
        a = self.tokens[outer]
        b = self.tokens[inner]
        return a.start < b.start and a.end > b.end

    def logical_child_count(self, index: int) -> int:
        """Number of tokens directly under *index* (keys and values both count)."""
        tok = self.tokens[index]
        if tok.kind is TokenKind.OBJECT:
            return tok.child_count * 2
        if tok.kind is TokenKind.ARRAY:
            return tok.child_count
        return 0

    def skip(self, index: int) -> int:
        """Index of the first token after the subtree rooted at *index*.

        Never exceeds ``len(self)``; callers treat that value as the end of
        the sibling run.
        """
        cached = self._skip_cache.get(index)
        if cached is not None:
            return cached
        count = len(self.tokens)
        nxt = index + 1
        # remaining children to pass, one entry per open container
        remaining = [self.logical_child_count(index)]
        while remaining and nxt < count:
            if remaining[-1] == 0:
                remaining.pop()
                continue
            remaining[-1] -= 1
            kids = self.logical_child_count(nxt)
            nxt += 1
            if kids:
                remaining.append(kids)
        self._skip_cache[index] = nxt
        return nxt

    def children(self, index: int) -> Iterator[int]:
        """Yield the direct children of *index* in document order."""
        child = index + 1
        for _ in range(self.logical_child_count(index)):
            if child >= len(self.tokens):
                return
            yield child
            child = self.skip(child)

    def text_of(self, index: int, source: str) -> str:
        tok = self.tokens[index]
        return source[tok.start : tok.end]


class KeyClassifier:
    """Tells object keys apart from values, elements and containers.

    Object members alternate key, value, key, value in the flat sequence,
    so a token is a key when its parent is an object and it sits at an even
    sibling slot.
    """

    def __init__(self, tree: TokenTree) -> None:
        self.tree = tree
        self._cache: dict[int, bool] = {}

    def is_key(self, index: int) -> bool:
        cached = self._cache.get(index)
        if cached is not None:
            return cached
        tree = self.tree
        parent = tree.parent(index)
        result = False
        if parent >= 0 and tree[parent].kind is TokenKind.OBJECT:
            slot = 0
            child = parent + 1
            while child < index:
                slot += 1
                child = tree.skip(child)
            result = slot % 2 == 0
        self._cache[index] = result
        return result

    def value_of(self, key: int) -> int | None:
        """Paired value token for *key*, or None if the document ends first."""
        value = self.tree.skip(key)
        return value if value < len(self.tree) else None
