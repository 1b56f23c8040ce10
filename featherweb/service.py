"""The interface between the HTTP server and the application logic."""

from __future__ import annotations

import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from .request import Request
from .response import Response


@dataclass(frozen=True)
class Consumed:
    """Returned by a service that took over the connection.

    The server stops serving the connection as soon as it sees this result.
    """


ServiceResult = Union[Response, Consumed]


class Service(ABC):
    """Application logic that turns a request into a response."""

    @abstractmethod
    def handle(self, request: Request, stream: Optional[socket.socket]) -> ServiceResult:
        """Handle ``request`` and return a Response, or Consumed if the stream was taken.

        ``stream`` is the underlying connection when the server offers it for an
        upgrade, otherwise None. Raising an exception makes the server answer 500.
        """