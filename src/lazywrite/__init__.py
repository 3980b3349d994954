"""lazywrite — coalesce rapid file updates into delayed writes.

A producer may ask for new file content many times per second; only the
latest content is kept in memory and written once the delay after the first
request of a cycle has passed.

Basic usage:

    from lazywrite import DelayedWriteCoalescer

    saver = DelayedWriteCoalescer.create("state.json", 500)
    saver.on_write_success(lambda event: print("saved", event.content))
    saver.on_error(lambda failure: print("failed", failure))

    saver.request('{"count": 1}')
    saver.request('{"count": 2}')  # only this one is written
    await saver.close()

From ordinary threads:

    from lazywrite import SaverConfig, ThreadedCoalescer

    with ThreadedCoalescer(SaverConfig("state.json", delay=0.5)) as saver:
        saver.request('{"count": 1}')
"""

from lazywrite._sync import ThreadedCoalescer
from lazywrite.config import SaverConfig
from lazywrite.core import CoalescerStats, DelayedWriteCoalescer
from lazywrite.errors import FlushWriteFailure
from lazywrite.events import ListenerSet, WriteSuccess
from lazywrite.pool import CoalescerPool
from lazywrite.writers.base import BaseWriter
from lazywrite.writers.file import FileWriter

__all__ = [
    "BaseWriter",
    "CoalescerPool",
    "CoalescerStats",
    "DelayedWriteCoalescer",
    "FileWriter",
    "FlushWriteFailure",
    "ListenerSet",
    "SaverConfig",
    "ThreadedCoalescer",
    "WriteSuccess",
]

__version__ = "0.1.0"
