"""Ready-made middleware: request logging, CORS headers and static files."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path, PurePath
from typing import Optional, Union

from .context import AppContext
from .middleware import Middleware, MiddlewareResult
from .request import Request
from .response import Response

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    "html": "text/html; charset=utf-8",
    "htm": "text/html; charset=utf-8",
    "css": "text/css; charset=utf-8",
    "js": "application/javascript; charset=utf-8",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "txt": "text/plain; charset=utf-8",
}
_DEFAULT_CONTENT_TYPE = "application/octet-stream"

_STATUS_TEXT = {
    403: "403 Forbidden",
    404: "404 Not Found",
    500: "500 Internal Server Error",
}


def guess_content_type(path: Union[str, os.PathLike]) -> str:
    """Return the content type for ``path`` judged by its file extension."""
    suffix = PurePath(path).suffix
    if not suffix:
        return _DEFAULT_CONTENT_TYPE
    return _CONTENT_TYPES.get(suffix[1:], _DEFAULT_CONTENT_TYPE)


class Logger(Middleware):
    """Log each request's method and path, then pass it on."""

    def handle(self, request: Request, response: Response, ctx: AppContext) -> MiddlewareResult:
        logger.info("%s %s", request.method, request.uri_path)
        return MiddlewareResult.NEXT


class Cors(Middleware):
    """Add an Access-Control-Allow-Origin header to every response."""

    def __init__(self, origin: Optional[str] = None) -> None:
        self.origin = origin

    def handle(self, request: Request, response: Response, ctx: AppContext) -> MiddlewareResult:
        response.add_header("Access-Control-Allow-Origin", self.origin if self.origin is not None else "*")
        return MiddlewareResult.NEXT

    def __repr__(self) -> str:
        return f"Cors({self.origin!r})"


def _status_for(exc: BaseException) -> int:
    if isinstance(exc, PermissionError):
        return 403
    if isinstance(exc, FileNotFoundError):
        return 404
    return 500


class ServeStatic(Middleware):
    """Serve files below a base directory, refusing paths that escape it."""

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self.directory = os.fspath(directory)

    def __repr__(self) -> str:
        return f"ServeStatic({self.directory!r})"

    def _answer(self, response: Response, status: int) -> None:
        response.set_status(status)
        response.send_text(_STATUS_TEXT[status])

    def _io_error(self, exc: BaseException, path: Path, response: Response) -> None:
        status = _status_for(exc)
        logger.error(
            "ServeStatic: Error accessing path %r (Base: %s): %s - Responding with %d",
            str(path),
            self.directory,
            exc,
            status,
        )
        self._answer(response, status)

    def handle(self, request: Request, response: Response, ctx: AppContext) -> MiddlewareResult:
        requested = request.uri_path.lstrip("/")
        base = Path(self.directory)
        target = base / requested

        try:
            canonical = target.resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            self._io_error(exc, target, response)
            return MiddlewareResult.NEXT
        try:
            canonical_base = base.resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            self._io_error(exc, base, response)
            return MiddlewareResult.NEXT

        if not canonical.is_relative_to(canonical_base):
            logger.error(
                "ServeStatic: Forbidden path traversal attempt: Requested '%s', "
                "Resolved '%s' outside base '%s'",
                requested,
                canonical,
                canonical_base,
            )
            self._answer(response, 403)
            return MiddlewareResult.NEXT

        try:
            mode = canonical.stat().st_mode
        except OSError as exc:
            self._io_error(exc, canonical, response)
            return MiddlewareResult.NEXT

        if stat.S_ISREG(mode):
            try:
                data = canonical.read_bytes()
            except OSError as exc:
                self._io_error(exc, canonical, response)
                return MiddlewareResult.NEXT
            response.add_header("Content-Type", guess_content_type(canonical))
            response.add_header("Content-Length", str(len(data)))
            response.send_bytes(data)
        elif stat.S_ISDIR(mode):
            logger.error("ServeStatic: Access denied for directory: %s", canonical)
            self._answer(response, 403)
        else:
            logger.error("ServeStatic: Path is not a file or directory: %s", canonical)
            self._answer(response, 404)
        return MiddlewareResult.NEXT