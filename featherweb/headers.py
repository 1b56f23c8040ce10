"""A case-insensitive, insertion-ordered map of HTTP headers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Optional, Union

from .errors import InvalidHeaderName, InvalidHeaderValue

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

HeaderText = Union[str, bytes, bytearray]


def _as_text(data: HeaderText) -> str:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="surrogateescape")
    return data


def _normalize_name(name: HeaderText) -> str:
    text = _as_text(name)
    if not isinstance(text, str) or not text or not set(text) <= _TOKEN_CHARS:
        raise InvalidHeaderName(name)
    return text.lower()


def _validate_value(value: HeaderText) -> str:
    text = _as_text(value)
    if not isinstance(text, str):
        raise InvalidHeaderValue(value)
    if any((ord(ch) < 32 and ch != "\t") or ord(ch) == 127 for ch in text):
        raise InvalidHeaderValue(value)
    return text


class HeaderMap:
    """Headers keyed by lower-cased name; inserting a name replaces its value."""

    def __init__(
        self,
        headers: Union[Mapping[HeaderText, HeaderText], Iterable[tuple[HeaderText, HeaderText]]] = (),
    ) -> None:
        self._entries: dict[str, str] = {}
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        for name, value in pairs:
            self.insert(name, value)

    def insert(self, name: HeaderText, value: HeaderText) -> None:
        """Set ``name`` to ``value``, replacing any earlier value."""
        text = _validate_value(value)
        self._entries[_normalize_name(name)] = text

    def get(self, name: HeaderText, default: Optional[str] = None) -> Optional[str]:
        """Return the value stored under ``name`` or ``default``."""
        return self._entries.get(self._key(name), default)

    def remove(self, name: HeaderText) -> Optional[str]:
        """Remove ``name`` and return its value, or None if it was absent."""
        return self._entries.pop(self._key(name), None)

    def items(self) -> list[tuple[str, str]]:
        """Return the (name, value) pairs in insertion order."""
        return list(self._entries.items())

    @staticmethod
    def _key(name: object) -> str:
        if isinstance(name, (bytes, bytearray, str)):
            return _as_text(name).lower()
        return ""

    def __getitem__(self, name: HeaderText) -> str:
        key = self._key(name)
        if key not in self._entries:
            raise KeyError(name)
        return self._entries[key]

    def __setitem__(self, name: HeaderText, value: HeaderText) -> None:
        self.insert(name, value)

    def __delitem__(self, name: HeaderText) -> None:
        key = self._key(name)
        if key not in self._entries:
            raise KeyError(name)
        del self._entries[key]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, (str, bytes, bytearray)) and self._key(name) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HeaderMap({self._entries!r})"