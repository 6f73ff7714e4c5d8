"""
Single-flight operation queue for the session store.

Store operations read, modify and rewrite the whole history file; each one
runs alone, in strict arrival order.
"""

from __future__ import annotations

import threading
from functools import wraps
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class OperationQueue:
    """FIFO ticket lock: operations run one at a time, in arrival order.

    Usage:
        queue = OperationQueue()
        with queue:
            sessions = storage.load()
            ...
            storage.save(sessions)
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._next_ticket = 0
        self._serving = 0

    def __enter__(self) -> "OperationQueue":
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._serving:
                self._cond.wait()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        with self._cond:
            self._serving += 1
            self._cond.notify_all()

    @property
    def pending(self) -> int:
        """Number of operations running or waiting."""
        with self._cond:
            return self._next_ticket - self._serving


def serialized(method: F) -> F:
    """Run a store method inside its owner's ``_queue``."""

    @wraps(method)
    def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        with self._queue:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
