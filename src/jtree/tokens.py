"""Flat jsmn-style JSON tokenizer.

The document is turned into a pre-order list of :class:`Token` objects. Each
token only knows its kind, its ``[start, end)`` range in the source text and
how many immediate children it declares; structure has to be recovered from
range containment (see :mod:`jtree.tree`).

String tokens cover the string body without the surrounding quotes, so
``text[tok.start:tok.end]`` is the raw (still escaped) content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from jtree.errors import ParseError


class TokenKind(Enum):
    OBJECT = auto()
    ARRAY = auto()
    STRING = auto()
    PRIMITIVE = auto()


CONTAINER_KINDS = frozenset({TokenKind.OBJECT, TokenKind.ARRAY})


@dataclass
class Token:
    kind: TokenKind
    start: int
    end: int
    child_count: int = 0  # OBJECT: key/value pairs, ARRAY: elements

    @property
    def span(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS


_WHITESPACE = " \t\r\n"
_ESCAPES = frozenset('"\\/bfnrtu')
_HEX = frozenset("0123456789abcdefABCDEF")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_LITERALS = ("true", "false", "null")

# parser states
_VALUE = 0  # expecting a value
_KEY = 1  # expecting an object key
_COLON = 2  # expecting ':' after a key
_AFTER = 3  # expecting ',' or a closing bracket


def _scan_string(text: str, pos: int) -> int:
    """Return the index of the closing quote for a string opened at *pos*."""
    i = pos + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            return i
        if ch == "\\":
            i += 1
            if i >= n:
                break
            esc = text[i]
            if esc not in _ESCAPES:
                raise ParseError(i, f"invalid escape '\\{esc}'")
            if esc == "u":
                digits = text[i + 1 : i + 5]
                if len(digits) != 4 or not all(c in _HEX for c in digits):
                    raise ParseError(i, "invalid unicode escape")
                i += 4
        elif ch < " ":
            raise ParseError(i, "control character in string")
        i += 1
    raise ParseError(pos, "unterminated string")


def tokenize(text: str) -> list[Token]:
    """Tokenize *text* into a flat pre-order token list.

    Whitespace-only input yields an empty list. Anything that is not exactly
    one JSON value raises :class:`ParseError`.
    """
    tokens: list[Token] = []
    stack: list[int] = []  # indices of containers still open
    state = _VALUE
    allow_close = False  # directly after '{' or '['
    done = False
    i = 0
    n = len(text)

    def add(kind: TokenKind, start: int, end: int) -> int:
        tokens.append(Token(kind, start, end))
        return len(tokens) - 1

    def finish_value() -> None:
        nonlocal state, done
        if stack:
            parent = tokens[stack[-1]]
            if parent.kind is TokenKind.ARRAY:
                parent.child_count += 1
        else:
            done = True
        state = _AFTER

    while True:
        while i < n and text[i] in _WHITESPACE:
            i += 1
        if i >= n:
            break
        ch = text[i]
        if done:
            raise ParseError(i, "unexpected data after document")

        if ch in "}]" and (state == _AFTER or allow_close):
            if not stack:
                raise ParseError(i, f"unexpected '{ch}'")
            expected = TokenKind.OBJECT if ch == "}" else TokenKind.ARRAY
            container = tokens[stack[-1]]
            if container.kind is not expected:
                raise ParseError(i, f"mismatched '{ch}'")
            stack.pop()
            container.end = i + 1
            allow_close = False
            i += 1
            finish_value()
            continue

        if state == _AFTER:
            if ch != "," or not stack:
                raise ParseError(i, f"unexpected '{ch}'")
            state = _KEY if tokens[stack[-1]].kind is TokenKind.OBJECT else _VALUE
            i += 1
            continue

        if state == _COLON:
            if ch != ":":
                raise ParseError(i, "expected ':'")
            state = _VALUE
            i += 1
            continue

        allow_close = False
        if state == _KEY:
            if ch != '"':
                raise ParseError(i, "expected object key")
            close = _scan_string(text, i)
            add(TokenKind.STRING, i + 1, close)
            tokens[stack[-1]].child_count += 1
            state = _COLON
            i = close + 1
            continue

        # state == _VALUE
        if ch == "{" or ch == "[":
            kind = TokenKind.OBJECT if ch == "{" else TokenKind.ARRAY
            stack.append(add(kind, i, -1))
            state = _KEY if kind is TokenKind.OBJECT else _VALUE
            allow_close = True
            i += 1
        elif ch == '"':
            close = _scan_string(text, i)
            add(TokenKind.STRING, i + 1, close)
            i = close + 1
            finish_value()
        elif ch == "-" or ch.isdigit():
            m = _NUMBER_RE.match(text, i)
            if m is None:
                raise ParseError(i, "invalid number")
            add(TokenKind.PRIMITIVE, i, m.end())
            i = m.end()
            finish_value()
        else:
            for word in _LITERALS:
                if text.startswith(word, i):
                    add(TokenKind.PRIMITIVE, i, i + len(word))
                    i += len(word)
                    finish_value()
                    break
            else:
                raise ParseError(i, f"unexpected '{ch}'")

    if tokens and not done:
        raise ParseError(n, "unexpected end of input")
    return tokens
