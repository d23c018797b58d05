"""Exceptions raised by the JSON tree viewer."""

from __future__ import annotations


class JsonTreeError(Exception):
    """Base class for viewer errors."""


class EmptyDocument(JsonTreeError):
    """The document produced no tokens; there is nothing to display."""

    def __init__(self, message: str = "document is empty") -> None:
        super().__init__(message)


class ParseError(JsonTreeError):
    """The tokenizer rejected the source text."""

    def __init__(self, position: int, reason: str) -> None:
        super().__init__(f"{reason} at position {position}")
        self.position = position
        self.reason = reason


class CapacityExceeded(JsonTreeError):
    """Token or line count is over the session bound.

    Never raised out of the viewer core; a session that hits the bound keeps
    running on a truncated view and records one of these in ``degraded``.
    """

    def __init__(self, what: str, limit: int, actual: int | None = None) -> None:
        detail = f"{what} limit {limit} reached"
        if actual is not None:
            detail += f" ({actual} total)"
        super().__init__(detail)
        self.what = what
        self.limit = limit
        self.actual = actual
