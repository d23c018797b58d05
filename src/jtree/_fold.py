"""Collapse state and the visible-line projection."""

from __future__ import annotations

from collections.abc import Container, Iterator
from dataclasses import dataclass
from itertools import islice

from jtree.tokens import TokenKind
from jtree.tree import KeyClassifier, TokenTree

MAX_LINES = 2048


@dataclass(frozen=True)
class VisibleLine:
    """One row of the tree view.

    ``value`` is the paired value token for key lines. String and primitive
    values are not given a line of their own; they are drawn inline on the
    key's line.
    """

    token: int
    depth: int
    is_key: bool = False
    value: int | None = None


class CollapseState:
    """Set of collapsed container tokens. Empty means fully expanded."""

    def __init__(self, tree: TokenTree) -> None:
        self._tree = tree
        self._collapsed: set[int] = set()

    def __contains__(self, index: int) -> bool:
        return index in self._collapsed

    def __len__(self) -> int:
        return len(self._collapsed)

    def is_collapsed(self, index: int) -> bool:
        return index in self._collapsed

    def collapse(self, index: int) -> bool:
        """Collapse a container. Returns False if nothing changed."""
        if not self._tree.is_container(index) or index in self._collapsed:
            return False
        self._collapsed.add(index)
        return True

    def expand(self, index: int) -> bool:
        if index not in self._collapsed:
            return False
        self._collapsed.discard(index)
        return True

    def toggle(self, index: int) -> bool:
        if index in self._collapsed:
            return self.expand(index)
        return self.collapse(index)

    def collapse_all(self) -> None:
        """Collapse every container below the root."""
        tree = self._tree
        self._collapsed = {i for i in range(1, len(tree)) if tree.is_container(i)}

    def expand_all(self) -> None:
        self._collapsed.clear()


def iter_visible_lines(
    tree: TokenTree,
    keys: KeyClassifier,
    collapsed: Container[int],
    root: int = 0,
) -> Iterator[VisibleLine]:
    """Yield the visible lines under *root*, depth-first, pre-order.

    Pending work is kept on an explicit stack so deeply nested documents do
    not hit the recursion limit. Entries are either a token to expand or a
    finished key line.
    """
    count = len(tree)
    if root >= count:
        return
    # (token, depth, key_line); key_line is set for object keys
    stack: list[tuple[int, int, VisibleLine | None]] = [(root, tree.depth(root), None)]
    while stack:
        index, depth, key_line = stack.pop()
        if key_line is not None:
            yield key_line
            continue
        yield VisibleLine(index, depth)
        tok = tree[index]
        if not tok.is_container or index in collapsed:
            continue

        pending: list[tuple[int, int, VisibleLine | None]] = []
        child = index + 1
        if tok.kind is TokenKind.OBJECT:
            for _ in range(tok.child_count):
                if child >= count:
                    break
                value = keys.value_of(child)
                pending.append((child, depth + 1, VisibleLine(child, depth + 1, True, value)))
                if value is None:
                    break
                if tree[value].is_container:
                    pending.append((value, depth + 1, None))
                child = tree.skip(value)
        else:
            for element in tree.children(index):
                pending.append((element, depth + 1, None))
        stack.extend(reversed(pending))


def project(
    tree: TokenTree,
    keys: KeyClassifier,
    collapsed: Container[int],
    root: int = 0,
    limit: int = MAX_LINES,
) -> list[VisibleLine]:
    """Materialize the visible lines, stopping silently at *limit*."""
    return list(islice(iter_visible_lines(tree, keys, collapsed, root), limit))
