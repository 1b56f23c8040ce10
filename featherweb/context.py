"""Application-wide shared state, keyed by type."""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Hashable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

_MISSING = object()


class StateNotFoundError(LookupError):
    """No state is stored under the requested key."""

    def __init__(self, key: object = None) -> None:
        super().__init__("state not found for requested type")
        self.key = key


class State(Generic[T]):
    """A value guarded by a lock, for mutable data kept in an AppContext.

    The lock is not reentrant: using the same State again inside one of its
    own scopes deadlocks.
    """

    def __init__(self, value: T) -> None:
        self._value = value
        self._lock = threading.Lock()

    @contextmanager
    def lock(self) -> Iterator[T]:
        """Hold the lock for the duration of a ``with`` block and yield the value."""
        with self._lock:
            yield self._value

    def with_scope(self, func: Callable[[T], R]) -> R:
        """Call ``func`` with the value while holding the lock and return its result."""
        with self._lock:
            return func(self._value)

    def with_mut_scope(self, func: Callable[[T], R]) -> R:
        """Call ``func`` to modify the value while holding the lock; return its result."""
        with self._lock:
            return func(self._value)

    def get_clone(self) -> T:
        """Return an independent copy of the value."""
        with self._lock:
            return copy.deepcopy(self._value)

    def __repr__(self) -> str:
        return f"State({self._value!r})"


class _Store:
    """The lock-protected mapping shared by copies of a context."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.values: dict[Hashable, Any] = {}


class AppContext:
    """A thread-safe store of application state keyed by type.

    Each value is stored under its own type unless an explicit key is given,
    so setting a second value of the same type replaces the first. Copies made
    with :meth:`copy` share the same store.
    """

    def __init__(self) -> None:
        self._store = _Store()

    def set_state(self, value: Any, key: Optional[Hashable] = None) -> None:
        """Insert or replace the value stored under ``key`` (default: its type)."""
        slot = type(value) if key is None else key
        with self._store.lock:
            self._store.values[slot] = value

    def try_get_state(self, key: Hashable) -> Optional[Any]:
        """Return the value stored under ``key``, or None if there is none."""
        with self._store.lock:
            return self._store.values.get(key)

    def get_state(self, key: Hashable) -> Any:
        """Return the value stored under ``key``; raise StateNotFoundError if missing."""
        with self._store.lock:
            value = self._store.values.get(key, _MISSING)
        if value is _MISSING:
            raise StateNotFoundError(key)
        return value

    def remove_state(self, key: Hashable) -> bool:
        """Remove the value stored under ``key``; return whether one was removed."""
        with self._store.lock:
            return self._store.values.pop(key, _MISSING) is not _MISSING

    def copy(self) -> "AppContext":
        """Return a handle that shares this context's state."""
        other = AppContext.__new__(AppContext)
        other._store = self._store
        return other

    def __repr__(self) -> str:
        with self._store.lock:
            keys = list(self._store.values)
        return f"AppContext(keys={keys!r})"