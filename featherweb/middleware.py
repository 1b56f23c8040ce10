"""The middleware protocol and helpers to run and chain middleware."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, Union

from .context import AppContext
from .request import Request
from .response import Response


class MiddlewareResult(enum.Enum):
    """What a middleware asks the pipeline to do next."""

    NEXT = "next"
    """Continue to the next middleware."""
    NEXT_ROUTE = "next_route"
    """Skip all subsequent middleware and continue to the next route."""


# The value a middleware returns; errors are raised as exceptions.
Outcome = MiddlewareResult


class Middleware(ABC):
    """A step in request handling; may read the request and shape the response."""

    @abstractmethod
    def handle(self, request: Request, response: Response, ctx: AppContext) -> Optional[MiddlewareResult]:
        """Process the request; return a MiddlewareResult (None means NEXT)."""

    def __call__(self, request: Request, response: Response, ctx: AppContext) -> Optional[MiddlewareResult]:
        return self.handle(request, response, ctx)


MiddlewareLike = Union[Middleware, Callable[[Request, Response, AppContext], Any]]


def run_middleware(
    middleware: MiddlewareLike, request: Request, response: Response, ctx: AppContext
) -> MiddlewareResult:
    """Run a middleware object or plain callable and return its result.

    A return value of None counts as NEXT. Exceptions raised by the
    middleware propagate to the caller.
    """
    handler = getattr(middleware, "handle", None)
    if not callable(handler):
        if not callable(middleware):
            raise TypeError(f"{middleware!r} is not a middleware")
        handler = middleware
    result = handler(request, response, ctx)
    if result is None:
        return MiddlewareResult.NEXT
    if not isinstance(result, MiddlewareResult):
        raise TypeError(f"middleware returned {result!r}, expected a MiddlewareResult")
    return result


class _Chain(Middleware):
    """Two middleware run one after the other."""

    def __init__(self, first: MiddlewareLike, second: MiddlewareLike) -> None:
        self.first = first
        self.second = second

    def handle(self, request: Request, response: Response, ctx: AppContext) -> MiddlewareResult:
        if run_middleware(self.first, request, response, ctx) is MiddlewareResult.NEXT_ROUTE:
            return MiddlewareResult.NEXT_ROUTE
        return run_middleware(self.second, request, response, ctx)

    def __repr__(self) -> str:
        return f"chain({self.first!r}, {self.second!r})"


def chain(first: MiddlewareLike, *args: MiddlewareLike) -> Middleware:
    """Chain two or more middleware; each runs only if the previous returned NEXT."""
    if not args:
        raise TypeError("chain() needs at least two middleware")
    chained: MiddlewareLike = first
    for nxt in args:
        chained = _Chain(chained, nxt)
    return chained  # type: ignore[return-value]