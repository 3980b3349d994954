"""Shared fixtures for lazywrite tests."""

import asyncio
import os
from typing import NamedTuple

import pytest

from lazywrite._sync import _EventLoopThread
from lazywrite.config import DEFAULT_MODE, SaverConfig
from lazywrite.writers.base import BaseWriter


class WriteCall(NamedTuple):
    path: str
    content: object
    mode: int
    truncate: bool
    at: float


class RecordingWriter(BaseWriter):
    """In-memory write primitive that records every call.

    ``latency`` keeps each write in flight for that many seconds and
    ``error`` is raised after the latency elapses.
    """

    def __init__(self, *, latency: float = 0.0, error: Exception | None = None) -> None:
        super().__init__()
        self.latency = latency
        self.error = error
        self.calls: list[WriteCall] = []
        self.active = 0
        self.max_active = 0

    @property
    def contents(self) -> list[object]:
        return [call.content for call in self.calls]

    async def write(self, path, content, *, mode=DEFAULT_MODE, truncate=True):
        now = asyncio.get_running_loop().time()
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.calls.append(WriteCall(os.fspath(path), content, mode, truncate, now))
            if self.latency:
                await asyncio.sleep(self.latency)
            if self.error is not None:
                raise self.error
        finally:
            self.active -= 1


@pytest.fixture
def writer():
    return RecordingWriter()


@pytest.fixture
def make_writer():
    def factory(**kwargs) -> RecordingWriter:
        return RecordingWriter(**kwargs)

    return factory


@pytest.fixture
def fast_config():
    return SaverConfig(path="state.json", delay=0.05)


@pytest.fixture
def runner():
    elt = _EventLoopThread()
    elt.start()
    yield elt
    elt.shutdown()
