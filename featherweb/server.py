"""A threaded HTTP/1.1 server that hands parsed requests to a service."""

from __future__ import annotations

import logging
import os
import socket
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from .errors import RequestParseError
from .request import Request
from .response import Response
from .service import Consumed, Service

logger = logging.getLogger(__name__)

_ACCEPT_POLL_SECONDS = 0.25

Address = Union[str, "tuple[str, int]"]


@dataclass
class ServerConfig:
    """Tunables for the server."""

    max_body_size: int = 8192
    read_timeout_secs: float = 30
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    stack_size: int = 64 * 1024


def _socket_address(address: Address) -> tuple[str, int]:
    if isinstance(address, tuple):
        host, port = address
        host, port = str(host), int(port)
    else:
        host, sep, port_text = str(address).rpartition(":")
        if not sep or not port_text.isdigit():
            raise ValueError(f"invalid socket address: {address!r}")
        host, port = host.strip("[]"), int(port_text)
    if not 0 <= port <= 65535:
        raise ValueError(f"invalid port in socket address: {address!r}")
    return host, port


def _send_error(conn: socket.socket, status: int, message: str) -> None:
    response = Response()
    response.set_status(status)
    response.send_text(message)
    response.add_header("X-Content-Type-Options", "nosniff")
    response.add_header("X-Frame-Options", "DENY")
    response.add_header("Connection", "close")
    conn.sendall(response.to_raw())


def _wants_keep_alive(request: Request) -> bool:
    if request.version != "HTTP/1.1":
        return False
    connection = request.headers.get("connection")
    return connection is None or connection.lower() == "keep-alive"


def _asks_to_close(response: Response) -> bool:
    connection = response.headers.get("connection")
    return connection is not None and connection.lower() == "close"


class Server:
    """Accepts TCP connections and serves each one on its own thread."""

    def __init__(self, service: Service, max_body_size: int = 8192) -> None:
        self.service = service
        self.config = ServerConfig(max_body_size=max_body_size)
        self.local_address: Optional[tuple[str, int]] = None
        self._running = threading.Event()
        self._running.set()

    @classmethod
    def with_config(cls, service: Service, config: ServerConfig) -> "Server":
        """Create a server using a complete configuration."""
        server = cls(service)
        server.config = config
        return server

    def shutdown(self) -> None:
        """Ask a running server to stop accepting connections."""
        self._running.clear()

    def run(self, address: Address) -> None:
        """Bind to ``address`` and serve until shutdown is called."""
        host, port = _socket_address(address)
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        with socket.create_server((host, port), family=family) as listener:
            bound = listener.getsockname()
            self.local_address = (bound[0], bound[1])
            logger.info("Feather Runtime Started on %s:%s", bound[0], bound[1])
            listener.settimeout(_ACCEPT_POLL_SECONDS)
            while self._running.is_set():
                try:
                    conn, peer = listener.accept()
                except TimeoutError:
                    continue
                except OSError as exc:
                    logger.warning("Failed to accept connection: %s", exc)
                    continue
                logger.debug("New connection from %s", peer)
                threading.Thread(target=self._serve, args=(conn,), daemon=True).start()
        logger.info("Server shutting down")

    def _serve(self, conn: socket.socket) -> None:
        with conn:
            try:
                self.handle_connection(conn)
            except Exception:
                logger.exception("Connection handler error")

    def handle_connection(self, conn: socket.socket) -> None:
        """Read, dispatch and answer requests on ``conn`` until it should close.

        Raises TimeoutError, after answering 408, when the client stays silent
        longer than the read timeout.
        """
        config = self.config
        keep_alive = True
        while keep_alive:
            conn.settimeout(config.read_timeout_secs)
            try:
                data = conn.recv(config.max_body_size)
            except TimeoutError:
                _send_error(conn, 408, "Request timed out")
                raise
            if not data:
                return
            if len(data) >= config.max_body_size:
                _send_error(conn, 413, "Request body too large")
                return

            try:
                request = Request.parse(data)
            except RequestParseError as exc:
                _send_error(conn, 400, f"Invalid request: {exc}")
                return
            keep_alive = _wants_keep_alive(request)

            try:
                result = self.service.handle(request, None)
            except Exception as exc:
                _send_error(conn, 500, f"Internal error: {exc}")
                return

            if isinstance(result, Consumed):
                return
            conn.sendall(result.to_raw())
            if _asks_to_close(result):
                return