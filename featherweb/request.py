"""Incoming HTTP requests."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from urllib.parse import parse_qsl, unquote

from .errors import HeaderError, RequestParseError
from .headers import HeaderMap

_MAX_HEADERS = 64
_TOKEN_BYTES = frozenset(
    b"!#$%&'*+-.^_`|~0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_VERSIONS = {b"HTTP/1.0": "HTTP/1.0", b"HTTP/1.1": "HTTP/1.1"}
_HEAD_END = re.compile(rb"\r?\n\r?\n")
_LINE_BREAK = re.compile(rb"\r?\n")
_ABSOLUTE = re.compile(
    r"^[A-Za-z][A-Za-z0-9+.\-]*://[^/?]*(?P<path>[^?]*)(?:\?(?P<query>.*))?$"
)


def _parse_failure(reason: str) -> RequestParseError:
    return RequestParseError(f"Failed to parse request: {reason}")


def _split_target(target: str) -> tuple[str, str]:
    """Split a request target into its path and query string."""
    target = target.partition("#")[0]
    if target.startswith("/") or target == "*":
        path, _, query = target.partition("?")
        return path, query
    match = _ABSOLUTE.match(target)
    if match:
        return match.group("path") or "/", match.group("query") or ""
    return "", ""


def _parse_request_line(line: bytes) -> tuple[str, str, str]:
    parts = line.split(b" ")
    if len(parts) != 3:
        raise _parse_failure("invalid request line")
    method, target, version = parts
    if not method or not set(method) <= _TOKEN_BYTES:
        raise _parse_failure("invalid token")
    if not target or any(byte < 0x21 or byte == 0x7F for byte in target):
        raise _parse_failure("invalid token")
    if not target.isascii():
        raise RequestParseError("Failed to parse URI: invalid uri character")
    if version not in _VERSIONS:
        raise _parse_failure("invalid HTTP version")
    return method.decode("ascii"), target.decode("ascii"), _VERSIONS[version]


def _parse_headers(lines: list[bytes]) -> HeaderMap:
    if len(lines) > _MAX_HEADERS:
        raise _parse_failure("too many headers")
    headers = HeaderMap()
    for line in lines:
        name, sep, value = line.partition(b":")
        if not sep:
            raise _parse_failure("invalid header name")
        try:
            headers.insert(name, value.strip(b" \t"))
        except HeaderError as exc:
            raise RequestParseError(f"Failed to parse header: {exc}") from exc
    return headers


@dataclass
class Request:
    """An HTTP request with its method, target, headers and body."""

    method: str = "GET"
    uri: str = "/"
    version: str = "HTTP/1.1"
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: bytes = b""
    extensions: dict[Any, Any] = field(default_factory=dict)
    _params: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def parse(cls, raw: Union[bytes, bytearray, memoryview]) -> "Request":
        """Parse a request from raw bytes; raise RequestParseError on bad input."""
        data = bytes(raw)
        head = data.lstrip(b"\r\n")
        end = _HEAD_END.search(head)
        if end is None:
            raise _parse_failure("incomplete request")
        request_line, *header_lines = _LINE_BREAK.split(head[: end.start()])
        method, target, version = _parse_request_line(request_line)
        headers = _parse_headers(header_lines)
        separator = data.find(b"\r\n\r\n")
        body = data[separator + 4 :] if separator >= 0 else b""
        return cls(method=method, uri=target, version=version, headers=headers, body=body)

    @property
    def uri_path(self) -> str:
        """The path of the request target, still percent-encoded."""
        return _split_target(self.uri)[0]

    @property
    def query_string(self) -> str:
        """The raw query string of the request target, empty if absent."""
        return _split_target(self.uri)[1]

    def json(self) -> Any:
        """Decode the body as JSON."""
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise RequestParseError(f"Failed to parse JSON body: {exc}") from exc

    def query(self) -> dict[str, str]:
        """Return the query parameters; later duplicates win."""
        return dict(parse_qsl(self.query_string, keep_blank_values=True))

    def set_params(self, params: dict[str, str]) -> None:
        """Replace the route parameters."""
        self._params = dict(params)

    def param(self, key: str) -> Optional[str]:
        """Return the route parameter ``key`` or None."""
        return self._params.get(key)

    def path(self) -> str:
        """Return the percent-decoded path."""
        try:
            return unquote(self.uri_path, errors="strict")
        except UnicodeDecodeError as exc:
            raise RequestParseError(f"Invalid percent-encoding in path: {exc}") from exc

    def __str__(self) -> str:
        return f"{self.method} {self.uri_path}"