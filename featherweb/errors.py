"""Exceptions raised while building and parsing HTTP messages."""

from __future__ import annotations


class HeaderError(ValueError):
    """A header name or value was rejected."""


class InvalidHeaderName(HeaderError):
    """The header name is not a valid HTTP token."""

    def __init__(self, name: object = None) -> None:
        super().__init__("Invalid Header Name")
        self.name = name


class InvalidHeaderValue(HeaderError):
    """The header value holds characters not allowed in a header."""

    def __init__(self, value: object = None) -> None:
        super().__init__("Invalid Header Value")
        self.value = value


class RequestParseError(ValueError):
    """Raw bytes, a query string or a body could not be parsed."""