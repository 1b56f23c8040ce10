"""The service that routes requests through an application's middleware."""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .context import AppContext
from .middleware import MiddlewareLike, run_middleware
from .request import Request
from .response import Response
from .service import Service

if TYPE_CHECKING:
    from .app import Route

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Exception, Request, Response], None]
"""Called with the raised exception, the request and the response being built."""


def match_route(pattern: str, path: str) -> Optional[dict[str, str]]:
    """Match ``path`` against ``pattern``; return the ``:name`` parameters or None."""
    pattern_parts = pattern.strip("/").split("/")
    path_parts = path.strip("/").split("/")
    if len(pattern_parts) != len(path_parts):
        return None
    params: dict[str, str] = {}
    for pat, value in zip(pattern_parts, path_parts):
        if pat.startswith(":"):
            params[pat[1:]] = value
        elif pat != value:
            return None
    return params


@dataclass
class AppService(Service):
    """Runs global middleware, then the first route matching the request."""

    routes: Sequence["Route"] = field(default_factory=list)
    middleware: Sequence[MiddlewareLike] = field(default_factory=list)
    context: AppContext = field(default_factory=AppContext)
    error_handler: Optional[ErrorHandler] = None

    def handle(self, request: Request, stream: Optional[socket.socket]) -> Response:
        """Answer ``request``; the stream is never taken over."""
        return self.dispatch(request)

    def dispatch(self, request: Request) -> Response:
        """Build the response for ``request``."""
        response = Response()

        for middleware in self.middleware:
            try:
                run_middleware(middleware, request, response, self.context)
            except Exception as exc:
                if self.error_handler is None:
                    logger.error("Unhandled Error caught in middlewares: %s", exc)
                    response.set_status(500).send_text("Internal Server Error!")
                    return response
                self.error_handler(exc, request, response)

        for route in self.routes:
            if route.method != request.method:
                continue
            params = match_route(route.path, request.path())
            if params is None:
                continue
            request.set_params(params)
            try:
                run_middleware(route.middleware, request, response, self.context)
            except Exception as exc:
                if self.error_handler is None:
                    logger.error("Unhandled Error caught in Route Middlewares : %s", exc)
                    response.set_status(500).send_text("Internal Server Error")
                else:
                    self.error_handler(exc, request, response)
            return response

        response.set_status(404).send_text("404 Not Found")
        return response