"""The application object: routes, global middleware and server settings."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Optional

from .app_service import AppService, ErrorHandler
from .context import AppContext
from .middleware import MiddlewareLike
from .server import Address, Server, ServerConfig


@dataclass
class Route:
    """A method and path pattern bound to the middleware that answers them."""

    method: str
    path: str
    middleware: MiddlewareLike


@functools.lru_cache(maxsize=None)
def _install_logger() -> None:
    package_logger = logging.getLogger("featherweb")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    handler.addFilter(lambda record: not record.name.startswith("featherweb.server"))
    package_logger.addHandler(handler)
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(logging.INFO)


def _check_middleware(middleware: MiddlewareLike) -> MiddlewareLike:
    if callable(getattr(middleware, "handle", None)) or callable(middleware):
        return middleware
    raise TypeError(f"{middleware!r} is not a middleware")


def _display(address: Address) -> str:
    if isinstance(address, tuple):
        host, port = address
        return f"{host}:{port}"
    return str(address)


class App:
    """A web application built from routes and middleware."""

    def __init__(self, config: Optional[ServerConfig] = None, *, install_logger: bool = True) -> None:
        if install_logger:
            _install_logger()
        self.config = config if config is not None else ServerConfig()
        self._routes: list[Route] = []
        self._middleware: list[MiddlewareLike] = []
        self._context = AppContext()
        self._error_handler: Optional[ErrorHandler] = None

    def context(self) -> AppContext:
        """Return the application-wide state store."""
        return self._context

    def set_error_handler(self, handler: ErrorHandler) -> None:
        """Handle middleware errors with ``handler`` instead of a plain 500."""
        self._error_handler = handler

    def max_body(self, size: int) -> "App":
        """Set the largest accepted request, in bytes."""
        self.config.max_body_size = size
        return self

    def read_timeout(self, seconds: float) -> "App":
        """Set how long to wait for a client to send, in seconds."""
        self.config.read_timeout_secs = seconds
        return self

    def workers(self, count: int) -> "App":
        """Set the number of workers."""
        self.config.workers = count
        return self

    def stack_size(self, size: int) -> "App":
        """Set the stack size per connection handler, in bytes."""
        self.config.stack_size = size
        return self

    def route(self, method: str, path: str, middleware: MiddlewareLike) -> None:
        """Answer ``method`` requests on ``path`` with ``middleware``."""
        self._routes.append(Route(method, str(path), _check_middleware(middleware)))

    def use_middleware(self, middleware: MiddlewareLike) -> None:
        """Run ``middleware`` for every request, before the route."""
        self._middleware.append(_check_middleware(middleware))

    def get(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a GET route."""
        self.route("GET", path, middleware)

    def post(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a POST route."""
        self.route("POST", path, middleware)

    def put(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a PUT route."""
        self.route("PUT", path, middleware)

    def delete(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a DELETE route."""
        self.route("DELETE", path, middleware)

    def patch(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a PATCH route."""
        self.route("PATCH", path, middleware)

    def head(self, path: str, middleware: MiddlewareLike) -> None:
        """Add a HEAD route."""
        self.route("HEAD", path, middleware)

    def options(self, path: str, middleware: MiddlewareLike) -> None:
        """Add an OPTIONS route."""
        self.route("OPTIONS", path, middleware)

    def build_service(self) -> AppService:
        """Return the service that answers requests for this application."""
        return AppService(
            routes=list(self._routes),
            middleware=list(self._middleware),
            context=self._context,
            error_handler=self._error_handler,
        )

    def listen(self, address: Address) -> None:
        """Serve the application on ``address``, blocking until the server stops."""
        service = self.build_service()
        print(f"Feather listening on : http://{_display(address)}")
        Server.with_config(service, self.config).run(address)