"""Abstract base class for the write primitive used by coalescers."""

import os
from abc import ABC, abstractmethod

from lazywrite.config import DEFAULT_MODE

Content = str | bytes | bytearray | memoryview


class BaseWriter(ABC):
    """Base class for write primitives.

    A writer persists one snapshot of content per call. It is invoked at most
    once per flush cycle and never concurrently for the same coalescer.
    Failures are reported by raising; the coalescer turns them into ``error``
    events.

    Args:
        encoding: Encoding applied to ``str`` content.
    """

    __slots__ = ("encoding",)

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def encode(self, content: Content) -> bytes:
        if isinstance(content, str):
            return content.encode(self.encoding)
        return bytes(content)

    @abstractmethod
    async def write(
        self,
        path: str | os.PathLike[str],
        content: Content,
        *,
        mode: int = DEFAULT_MODE,
        truncate: bool = True,
    ) -> None:
        """Persist *content* at *path*, replacing prior content when *truncate* is set."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(encoding={self.encoding!r})"
