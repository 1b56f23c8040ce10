"""A small, synchronous, middleware-first HTTP framework with an Express-like routing API."""

__version__ = "0.1.0"

__all__ = [
    "app",
    "app_service",
    "builtins",
    "context",
    "errors",
    "headers",
    "middleware",
    "request",
    "response",
    "server",
    "service",
]