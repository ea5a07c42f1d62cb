"""
Errors raised by the selector language and the entry graph.
"""

from enum import Enum


class SelectorErrorKind(str, Enum):
    """What went wrong while parsing a selector."""

    EMPTY = "empty selector"
    UNEXPECTED_CHARACTER = "unexpected character"
    UNEXPECTED_TOKEN = "unexpected token"
    UNEXPECTED_END = "unexpected end of selector"
    UNBALANCED_PARENTHESES = "unbalanced parentheses"
    UNKNOWN_ENTRY_TYPE = "unknown entry type"
    DUPLICATE_BINDING = "capture name bound twice"
    TOO_DEEP = "selector nested too deeply"


class SelectorError(ValueError):
    """Raised when a selector cannot be parsed or is structurally invalid."""

    def __init__(self, kind: SelectorErrorKind, offset: int, source: str = "", detail: str = ""):
        self.kind = kind
        self.offset = offset
        self.source = source
        self.detail = detail
        message = kind.value
        if detail:
            message = f"{message} ({detail})"
        super().__init__(f"{message} at offset {offset}")

    def caret(self) -> str:
        """Render the source with a caret under the failing offset."""
        return f"{self.source}\n{' ' * self.offset}^"


class EntryGraphError(RuntimeError):
    """Raised when the parent graph violates the acyclic, finite-depth assumption."""


class LibraryLoadError(ValueError):
    """Raised when a library cannot be built from its source data."""


class DuplicateKeyError(LibraryLoadError):
    """Raised when a key is loaded or pushed into a library twice."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"duplicate key {key}")


class TypeSpecMismatch(LookupError):
    """Raised when an entry does not satisfy an entry type spec."""
