"""Synchronous facade for multi-threaded hosts.

Manages a background event loop thread that acts as the single sequencer for
coalescers driven from ordinary threads.
"""

import asyncio
import threading
from collections.abc import Callable
from typing import Any

import structlog

from lazywrite.config import SaverConfig
from lazywrite.core import CoalescerStats, DelayedWriteCoalescer, check_content
from lazywrite.errors import FlushWriteFailure
from lazywrite.events import Listener, WriteSuccess
from lazywrite.writers.base import BaseWriter, Content

logger = structlog.get_logger(__name__)


class _EventLoopThread:
    """Runs the event loop that serializes every ThreadedCoalescer call.

    The loop is closed once the thread stops, after its async generators
    have been finalized.
    """

    __slots__ = ("_loop", "_name", "_started", "_thread")

    def __init__(self, name: str = "lazywrite-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None

    def start(self) -> None:
        """Start the background event loop thread (idempotent)."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        self._started.wait()

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._started.set()
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule *callback* on the background loop without waiting for it."""
        if self._loop is None:
            self.start()
        assert self._loop is not None
        self._loop.call_soon_threadsafe(callback, *args)

    def run_coroutine(self, coro: Any, timeout: float | None = None) -> Any:
        """Submit a coroutine to the background loop and block for the result."""
        if self._loop is None:
            self.start()
        assert self._loop is not None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def shutdown(self) -> None:
        """Stop the background event loop and join the thread."""
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
            self._loop = None
            self._started.clear()


# Module-level shared event loop thread for sync operations
_shared_loop = _EventLoopThread()


def get_shared_loop() -> _EventLoopThread:
    """Return the shared background event loop thread, starting it if needed."""
    _shared_loop.start()
    return _shared_loop


class ThreadedCoalescer:
    """Thread-safe wrapper around :class:`DelayedWriteCoalescer`.

    ``request`` may be called from any thread. Every state change of the
    wrapped coalescer runs on the background loop, one callback at a time,
    so a request racing with a firing timer is never lost and never arms a
    second timer. Listeners are invoked on the background loop thread.

    Args:
        config: Destination, delay and file options.
        writer: Write primitive. Defaults to :class:`FileWriter`.
        runner: Loop thread to use. Defaults to the shared one.

    Example::

        saver = ThreadedCoalescer(SaverConfig("state.json", delay=0.5))
        saver.on_write_success(lambda event: print(event.content))
        saver.request('{"count": 1}')
        saver.close()
    """

    __slots__ = ("_inner", "_runner")

    def __init__(
        self,
        config: SaverConfig,
        *,
        writer: BaseWriter | None = None,
        runner: _EventLoopThread | None = None,
    ) -> None:
        self._runner = runner or get_shared_loop()
        self._inner = DelayedWriteCoalescer(config, writer=writer)

    @property
    def coalescer(self) -> DelayedWriteCoalescer:
        """Access the wrapped :class:`DelayedWriteCoalescer`."""
        return self._inner

    @property
    def path(self) -> str:
        return self._inner.path

    @property
    def closed(self) -> bool:
        return self._inner.closed

    @property
    def stats(self) -> CoalescerStats:
        return self._inner.stats

    def on_write_success(self, listener: Listener[WriteSuccess]) -> Listener[WriteSuccess]:
        return self._inner.on_write_success(listener)

    def on_error(self, listener: Listener[FlushWriteFailure]) -> Listener[FlushWriteFailure]:
        return self._inner.on_error(listener)

    def request(self, content: Content) -> None:
        """Hand *content* to the background loop; returns immediately."""
        if self._inner.closed:
            raise RuntimeError("DelayedWriteCoalescer is closed")
        check_content(content)
        self._runner.call_soon(self._request_on_loop, content)

    def _request_on_loop(self, content: Content) -> None:
        # close() may have run between the caller-side check and this callback.
        if self._inner.closed:
            logger.error("Request dropped, coalescer closed", path=self._inner.path, size=len(content))
            return
        self._inner.request(content)

    def wait_idle(self, timeout: float | None = None) -> None:
        """Block until no flush is armed and no write is in flight."""
        self._runner.run_coroutine(self._inner.wait_idle(), timeout)

    def close(self, timeout: float | None = None) -> None:
        """Write any pending content and block until it is done."""
        self._runner.run_coroutine(self._inner.close(), timeout)

    def __enter__(self) -> "ThreadedCoalescer":
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ThreadedCoalescer({self._inner!r})"
