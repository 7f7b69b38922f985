"""Error taxonomy for sessionscope.

Only ``NotFound`` and ``InvalidQuery`` ever reach a caller. ``ParseError`` is
raised per file by the parser and always absorbed by the registry.
"""

from enum import Enum


class SessionScopeError(Exception):
    """Base class for all sessionscope errors."""


class ParseErrorKind(str, Enum):
    NOT_JSON = "not_json"
    UNRECOGNIZED_SHAPE = "unrecognized_shape"
    EMPTY = "empty"


class ParseError(SessionScopeError):
    """A file could not be turned into a session."""

    def __init__(self, kind: ParseErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(f"{kind.value}: {detail}" if detail else kind.value)


class NotFound(SessionScopeError):
    """No session with the requested id exists in the archive."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class InvalidQuery(SessionScopeError):
    """A search query contained no usable terms."""

    def __init__(self, message: str = "Query must contain at least one search term"):
        super().__init__(message)
