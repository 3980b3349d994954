"""DelayedWriteCoalescer, the main entry point for the library."""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, Any, NamedTuple

import structlog

from lazywrite.config import SaverConfig
from lazywrite.errors import FlushWriteFailure
from lazywrite.events import ListenerSet, WriteSuccess
from lazywrite.writers.file import FileWriter

if TYPE_CHECKING:
    from lazywrite.events import Listener
    from lazywrite.writers.base import BaseWriter, Content

logger = structlog.get_logger(__name__)

_UNSET: Any = object()


def check_content(content: Any) -> None:
    if not isinstance(content, str | bytes | bytearray | memoryview):
        raise TypeError(f"content must be str or bytes-like, got {type(content).__name__}")


class CoalescerStats(NamedTuple):
    """Counters of completed flush attempts."""

    writes: int
    failures: int


class DelayedWriteCoalescer:
    """Coalesce rapid content updates for one file into delayed writes.

    How it works:
        - ``request`` stores the content as the single pending value.
        - The first request of a cycle arms a one-shot timer for ``delay``
          seconds. Later requests only replace the pending value; they do
          not push the timer back.
        - When the timer fires, the coalescer is unarmed again and the
          latest pending value is handed to the writer as soon as any earlier
          write has finished. The next request starts a new full delay window.
        - Each completed write emits ``writeSuccess`` or ``error`` exactly once.

    Example::

        delay=0.5s

        t=0.00s request("discarded value")  -> arm timer (0.5s)
        t=0.05s request("eventual value")   -> replace pending value
        t=0.50s timer fires                 -> write "eventual value"
        t=1.20s request("another value")    -> arm timer (0.5s)
        t=1.70s timer fires                 -> write "another value"

    All state is touched from the event loop thread only, which makes the
    pending update and the arm check a single critical section. Use
    :class:`lazywrite.ThreadedCoalescer` when requests come from other threads.

    Args:
        config: Destination, delay and file options.
        writer: Write primitive. Defaults to :class:`FileWriter`.
    """

    __slots__ = (
        "_closed",
        "_config",
        "_error",
        "_failures",
        "_flush_tasks",
        "_idle",
        "_loop",
        "_pending",
        "_timer_handle",
        "_write_lock",
        "_write_success",
        "_writer",
        "_writes",
    )

    def __init__(self, config: SaverConfig, *, writer: BaseWriter | None = None) -> None:
        self._config = config
        self._writer: BaseWriter = writer or FileWriter(encoding=config.encoding)
        self._pending: Content = _UNSET
        self._timer_handle: asyncio.TimerHandle | None = None
        self._flush_tasks: set[asyncio.Task[None]] = set()
        self._write_lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._write_success: ListenerSet[WriteSuccess] = ListenerSet("writeSuccess")
        self._error: ListenerSet[FlushWriteFailure] = ListenerSet("error")
        self._writes = 0
        self._failures = 0
        self._closed = False

    @classmethod
    def create(
        cls,
        path: str | os.PathLike[str],
        delay_ms: float,
        *,
        writer: BaseWriter | None = None,
        **options: Any,
    ) -> DelayedWriteCoalescer:
        """Build a coalescer for *path* with a delay given in milliseconds."""
        return cls(SaverConfig.from_millis(path, delay_ms, **options), writer=writer)

    @property
    def config(self) -> SaverConfig:
        return self._config

    @property
    def path(self) -> str:
        return os.fspath(self._config.path)

    @property
    def delay(self) -> float:
        return self._config.delay

    @property
    def writer(self) -> BaseWriter:
        return self._writer

    @property
    def armed(self) -> bool:
        """Whether a flush is currently scheduled."""
        return self._timer_handle is not None

    @property
    def has_pending(self) -> bool:
        return self._pending is not _UNSET

    @property
    def writing(self) -> bool:
        """Whether a flush is handed to the writer and not yet finished."""
        return bool(self._flush_tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> CoalescerStats:
        return CoalescerStats(writes=self._writes, failures=self._failures)

    def on_write_success(self, listener: Listener[WriteSuccess]) -> Listener[WriteSuccess]:
        """Register a ``writeSuccess`` listener. Usable as a decorator."""
        return self._write_success.add(listener)

    def on_error(self, listener: Listener[FlushWriteFailure]) -> Listener[FlushWriteFailure]:
        """Register an ``error`` listener. Usable as a decorator."""
        return self._error.add(listener)

    def remove_listener(self, listener: Listener[Any]) -> bool:
        removed_success = self._write_success.remove(listener)
        removed_error = self._error.remove(listener)
        return removed_success or removed_error

    def request(self, content: Content) -> None:
        """Ask for *content* to be written within ``delay`` seconds.

        If several requests arrive before the flush starts, only the latest
        one is written. Write failures are reported through the ``error``
        event, never raised here.
        """
        self._ensure_open()
        check_content(content)

        self._pending = content

        if self._timer_handle is None:
            loop = self._get_loop()
            self._timer_handle = loop.call_later(self._config.delay, self._on_timer)
            self._idle.clear()
            logger.debug("Flush armed", path=self.path, delay=self._config.delay)

    async def wait_idle(self) -> None:
        """Wait until no flush is armed and no write is in flight."""
        await self._idle.wait()

    async def close(self) -> None:
        """Close the coalescer, writing any pending content right away.

        Safe to call from a listener: the flush delivering the event is not
        waited for, since it is the caller.
        """
        if self._closed:
            return
        self._closed = True
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._on_timer()
        current = asyncio.current_task()
        others = self._flush_tasks - {current}
        while others:
            await asyncio.wait(others)
            others = self._flush_tasks - {current}

    async def __aenter__(self) -> DelayedWriteCoalescer:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("DelayedWriteCoalescer is closed")

    def _on_timer(self) -> None:
        self._timer_handle = None
        task = self._get_loop().create_task(self._flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._on_flush_done)

    def _on_flush_done(self, task: asyncio.Task[None]) -> None:
        self._flush_tasks.discard(task)
        if self._timer_handle is None and not self._flush_tasks:
            self._idle.set()

    async def _flush(self) -> None:
        failure: FlushWriteFailure | None = None
        async with self._write_lock:
            # An earlier flush queued on the lock may already have taken the value.
            if self._pending is _UNSET:
                return
            content, self._pending = self._pending, _UNSET
            logger.debug("Flush started", path=self.path, size=len(content))
            try:
                await self._writer.write(
                    self._config.path,
                    content,
                    mode=self._config.mode,
                    truncate=True,
                )
            except Exception as exc:
                failure = FlushWriteFailure(self._config.path, exc)
                self._failures += 1
            else:
                self._writes += 1

        if failure is not None:
            if self._error:
                logger.warning("Flush failed", path=self.path, error=str(failure.cause))
            else:
                logger.error("Flush failure has no error listener", path=self.path, error=str(failure.cause))
            await self._error.emit(failure)
            return

        logger.debug("Flush finished", path=self.path, size=len(content))
        await self._write_success.emit(WriteSuccess(path=self.path, content=content))

    def __repr__(self) -> str:
        return (
            f"DelayedWriteCoalescer(path={self.path!r}, "
            f"delay={self._config.delay}, "
            f"armed={self.armed}, "
            f"closed={self._closed})"
        )
