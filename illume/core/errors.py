"""Project error hierarchy."""

from __future__ import annotations


class IllumeError(Exception):
    """Base error."""


class ParseError(IllumeError):
    """Raised when a directive or template cannot be parsed."""


class MissingKeyError(ParseError):
    """Raised when an interpolation placeholder names an unknown key."""

    def __init__(self, key: str) -> None:
        super().__init__(f"missing key: {key}")
        self.key = key


class UnmatchedBraceError(ParseError):
    """Raised when an interpolation `{` has no closing `}`."""

    def __init__(self, offset: int) -> None:
        super().__init__(f"unmatched '{{' at offset {offset}")
        self.offset = offset


class ResolutionError(IllumeError):
    """Raised when a named resource cannot be found."""


class ProfileNotFoundError(ResolutionError):
    pass


class ContextNotFoundError(ResolutionError):
    pass


class DirectiveError(IllumeError):
    """Wraps an error with the document and line that caused it."""

    def __init__(self, document: str, line: int, cause: Exception) -> None:
        super().__init__(f"{document}:{line}: {cause}")
        self.document = document
        self.line = line
        self.cause = cause


class TransportError(IllumeError):
    """Raised when the request cannot be sent or is not answered with 200."""

    def __init__(self, status: int, body: str) -> None:
        if status:
            message = f"HTTP {status}: {body}"
        else:
            message = body
        super().__init__(message)
        self.status = status
        self.body = body
