"""Outgoing HTTP responses."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import IO, Any, ClassVar, Optional, Union

from .headers import HeaderMap

_REASONS = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _rfc2822_now() -> str:
    now = datetime.now(timezone.utc)
    return (
        f"{_WEEKDAYS[now.weekday()]}, {now.day} {_MONTHS[now.month - 1]} {now.year} "
        f"{now:%H:%M:%S} +0000"
    )


def _encode(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


@dataclass
class Response:
    """An HTTP response: status, headers and optional body."""

    MAX_FILE_SIZE_BYTES: ClassVar[int] = 4 * 1024 * 1024

    status: int = 200
    headers: HeaderMap = field(default_factory=HeaderMap)
    body: Optional[bytes] = None
    version: str = "HTTP/1.1"

    @property
    def reason(self) -> str:
        """The canonical reason phrase of the status, or "Unknown"."""
        return _REASONS.get(self.status, "Unknown")

    def _set_body(self, body: bytes, content_type: Optional[str]) -> None:
        self.body = body
        if content_type is not None:
            self.headers.insert("content-type", content_type)
        self.headers.insert("content-length", str(len(body)))

    def _fail(self, status: int, message: str) -> None:
        self.status = status
        self.body = message.encode("utf-8")

    def set_status(self, status: int) -> "Response":
        """Set the status code; codes outside 100-999 become 500."""
        self.status = status if 100 <= status <= 999 else 500
        return self

    def add_header(self, key: str, value: str) -> None:
        """Set a header; raise HeaderError if the name or value is invalid."""
        self.headers.insert(key, value)

    def to_raw(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire bytes."""
        body = self.body or b""
        parts = [f"HTTP/1.1 {self.status} {self.reason}\r\n".encode("ascii")]
        parts.extend(_encode(name) + b": " + _encode(value) + b"\r\n" for name, value in self.headers.items())
        if "date" not in self.headers:
            parts.append(b"date: " + _rfc2822_now().encode("ascii") + b"\r\n")
        if "content-length" not in self.headers and body:
            parts.append(f"content-length: {len(body)}\r\n".encode("ascii"))
        parts.append(b"\r\n")
        parts.append(body)
        return b"".join(parts)

    def send_text(self, data: str) -> None:
        """Send ``data`` as UTF-8 plain text."""
        self._set_body(data.encode("utf-8"), "text/plain;charset=utf-8")

    def send_bytes(self, data: Union[bytes, bytearray, memoryview, str]) -> None:
        """Send raw bytes without touching the content type."""
        body = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self._set_body(body, None)

    def send_html(self, data: str) -> None:
        """Send ``data`` as HTML."""
        self._set_body(data.encode("utf-8"), "text/html")

    def send_json(self, data: Any) -> None:
        """Send ``data`` serialized as JSON; unserializable data yields a 500."""
        try:
            encoded = json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError):
            self.status = 500
            self._set_body(b"Internal Server Error", "text/plain")
            return
        self._set_body(encoded.encode("utf-8"), "application/json")

    def send_file(self, file: IO[bytes]) -> None:
        """Send the rest of an open file; files over 4 MB yield a 413."""
        try:
            size = os.fstat(file.fileno()).st_size
        except (OSError, ValueError):
            self._fail(500, "Failed to read file metadata.")
            return
        if size > self.MAX_FILE_SIZE_BYTES:
            self._fail(413, "File size exceeds 4MB limit. Use chunked encoding for larger files.")
            return
        try:
            data = file.read()
        except (OSError, ValueError):
            self._fail(500, "Internal Server Error during file read.")
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._set_body(bytes(data), None)