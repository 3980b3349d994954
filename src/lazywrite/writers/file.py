"""Default write primitive backed by the local filesystem."""

import asyncio
import os

from lazywrite.config import DEFAULT_MODE
from lazywrite.writers.base import BaseWriter, Content

_O_BINARY = getattr(os, "O_BINARY", 0)


class FileWriter(BaseWriter):
    """Truncate-and-write to a local file from a worker thread.

    How it works:
        - The file is opened with ``O_WRONLY | O_CREAT | O_TRUNC`` (or
          ``O_APPEND`` when ``truncate`` is false), so each write fully
          replaces what was there before.
        - ``mode`` applies when the file is created and is subject to the
          process umask. Platforms without permission bits ignore it.
        - The blocking syscalls run in ``asyncio.to_thread`` so the event
          loop driving the coalescer is never stalled by disk I/O.

    No temporary file or rename is involved: a crash mid-write can leave a
    truncated file.
    """

    __slots__ = ()

    async def write(
        self,
        path: str | os.PathLike[str],
        content: Content,
        *,
        mode: int = DEFAULT_MODE,
        truncate: bool = True,
    ) -> None:
        data = self.encode(content)
        await asyncio.to_thread(self._write_sync, os.fspath(path), data, mode, truncate)

    @staticmethod
    def _write_sync(path: str, data: bytes, mode: int, truncate: bool) -> None:
        flags = os.O_WRONLY | os.O_CREAT | _O_BINARY
        flags |= os.O_TRUNC if truncate else os.O_APPEND
        fd = os.open(path, flags, mode)
        try:
            view = memoryview(data)
            while view:
                written = os.write(fd, view)
                view = view[written:]
        finally:
            os.close(fd)
