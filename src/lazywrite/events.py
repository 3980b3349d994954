"""Event payloads and listener registration for coalescer notifications."""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from lazywrite.writers.base import Content

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Listener = Callable[[T], Any]


@dataclass(frozen=True, slots=True)
class WriteSuccess:
    """Payload of the ``writeSuccess`` event.

    Attributes:
        path: Destination that was written.
        content: Exactly the content handed to the write primitive.
    """

    path: str
    content: Content


class ListenerSet(Generic[T]):
    """Ordered set of listeners for a single event name.

    Listeners may be plain callables or coroutine functions. A listener that
    raises is logged and skipped; the remaining listeners still run.
    """

    __slots__ = ("_listeners", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener[T]] = []

    def add(self, listener: Listener[T]) -> Listener[T]:
        if not callable(listener):
            raise TypeError(f"{self.name} listener must be callable, got {listener!r}")
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def remove(self, listener: Listener[T]) -> bool:
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    async def emit(self, payload: T) -> int:
        """Deliver *payload* to every listener and return how many were called."""
        listeners = list(self._listeners)
        for listener in listeners:
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Listener failed", event_name=self.name, listener=repr(listener))
        return len(listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"ListenerSet(name={self.name!r}, listeners={len(self._listeners)})"
