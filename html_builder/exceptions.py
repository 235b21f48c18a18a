"""
Custom exceptions for the HTML builder.

Error philosophy:
  - ParseError subclasses → FAIL HARD: parsing aborts, no partial tree is returned.
  - TemplateCacheError    → NON-FATAL: the cache entry is treated as a miss, warning logged.

Everything else the parser meets is handled leniently and never raises:
whitespace-only text is dropped, unclosed elements are closed at the end of
their range, unknown placeholders are left in place and empty attribute keys
are discarded.
"""

from typing import Optional


class HTMLBuilderError(Exception):
    """Base exception for all HTML builder errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- FAIL HARD: structural violations found while preprocessing or building the tree ---

class ParseError(HTMLBuilderError):
    """
    Raised when markup is structurally broken.

    Callers catch the subclass they care about, or ParseError for all of them.
    """

    def to_response(self) -> dict:
        """Convert to ParseErrorResponse format."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class UnterminatedCommentError(ParseError):
    """An opening <!-- has no matching -->."""

    def __init__(self, position: int):
        super().__init__(
            f"Malformed comment: no closing '-->' for comment at offset {position}",
            details={"position": position},
        )
        self.position = position


class UnterminatedTagError(ParseError):
    """An opening '<' has no '>' before the end of input."""

    def __init__(self, position: int):
        super().__init__(
            f"Malformed HTML: no closing '>' for tag at offset {position}",
            details={"position": position},
        )
        self.position = position


class MismatchedClosingTagError(ParseError):
    """
    A closing tag does not belong to any element that is still open.

    `expected` is None when the closing tag appears with nothing open.
    """

    def __init__(self, expected: Optional[str], found: str, position: Optional[int] = None):
        if expected is None:
            message = f"Unmatched closing tag: found </{found}> with no open element"
        else:
            message = f"Unmatched closing tag: expected </{expected}> but found </{found}>"
        super().__init__(
            message,
            details={"expected": expected, "found": found, "position": position},
        )
        self.expected = expected
        self.found = found
        self.position = position


class NestingDepthError(ParseError):
    """Element nesting went deeper than the configured limit."""

    def __init__(self, max_depth: int, position: int):
        super().__init__(
            f"Nesting deeper than {max_depth} levels at offset {position}",
            details={"max_depth": max_depth, "position": position},
        )
        self.max_depth = max_depth
        self.position = position


# --- NON-FATAL: a broken cache file just means we parse again ---

class TemplateCacheError(HTMLBuilderError):
    """Raised when a cached template cannot be read back."""

    def __init__(self, message: str, cache_key: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.cache_key = cache_key
