"""One coalescer per destination path."""

import os
from typing import Any

import structlog

from lazywrite.config import DEFAULT_MODE, SaverConfig
from lazywrite.core import DelayedWriteCoalescer
from lazywrite.errors import FlushWriteFailure
from lazywrite.events import Listener, WriteSuccess
from lazywrite.writers.base import BaseWriter, Content

logger = structlog.get_logger(__name__)


class CoalescerPool:
    """Hands out a single :class:`DelayedWriteCoalescer` per destination.

    Coalescers for different paths share nothing but the defaults and the
    listeners registered on the pool. They flush independently.

    Args:
        delay: Delay in seconds for every coalescer created by the pool.
        writer: Write primitive shared by all coalescers.
        mode: Permission bits for newly created files.
        encoding: Encoding applied to ``str`` content.

    Example::

        async with CoalescerPool(delay=0.5) as pool:
            pool.request("a.json", "{}")
            pool.request("b.json", "[]")
    """

    __slots__ = (
        "_closed",
        "_coalescers",
        "_error_listeners",
        "_success_listeners",
        "delay",
        "encoding",
        "mode",
        "writer",
    )

    def __init__(
        self,
        delay: float = 0.5,
        *,
        writer: BaseWriter | None = None,
        mode: int = DEFAULT_MODE,
        encoding: str = "utf-8",
    ) -> None:
        if not delay >= 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self.delay = delay
        self.writer = writer
        self.mode = mode
        self.encoding = encoding
        self._coalescers: dict[str, DelayedWriteCoalescer] = {}
        self._success_listeners: list[Listener[WriteSuccess]] = []
        self._error_listeners: list[Listener[FlushWriteFailure]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active(self) -> int:
        """Number of coalescers created so far."""
        return len(self._coalescers)

    def __contains__(self, path: str | os.PathLike[str]) -> bool:
        return os.fspath(path) in self._coalescers

    def get(self, path: str | os.PathLike[str]) -> DelayedWriteCoalescer:
        """Return the coalescer for *path*, creating it on first use."""
        self._ensure_open()
        key = os.fspath(path)
        coalescer = self._coalescers.get(key)
        if coalescer is None:
            coalescer = self._spawn(key)
            self._coalescers[key] = coalescer
        return coalescer

    def request(self, path: str | os.PathLike[str], content: Content) -> None:
        self.get(path).request(content)

    def on_write_success(self, listener: Listener[WriteSuccess]) -> Listener[WriteSuccess]:
        """Register a ``writeSuccess`` listener on current and future coalescers."""
        self._success_listeners.append(listener)
        for coalescer in self._coalescers.values():
            coalescer.on_write_success(listener)
        return listener

    def on_error(self, listener: Listener[FlushWriteFailure]) -> Listener[FlushWriteFailure]:
        """Register an ``error`` listener on current and future coalescers."""
        self._error_listeners.append(listener)
        for coalescer in self._coalescers.values():
            coalescer.on_error(listener)
        return listener

    def _spawn(self, path: str) -> DelayedWriteCoalescer:
        config = SaverConfig(path=path, delay=self.delay, mode=self.mode, encoding=self.encoding)
        coalescer = DelayedWriteCoalescer(config, writer=self.writer)
        for listener in self._success_listeners:
            coalescer.on_write_success(listener)
        for listener in self._error_listeners:
            coalescer.on_error(listener)
        logger.debug("Coalescer created", path=path, delay=self.delay)
        return coalescer

    async def close(self) -> None:
        """Close every coalescer, writing whatever is still pending."""
        if self._closed:
            return
        self._closed = True
        coalescers = list(self._coalescers.values())
        self._coalescers.clear()
        for coalescer in coalescers:
            await coalescer.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("CoalescerPool is closed")

    async def __aenter__(self) -> "CoalescerPool":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"CoalescerPool(delay={self.delay}, active={len(self._coalescers)})"
