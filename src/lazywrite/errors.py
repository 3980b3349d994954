"""Exceptions reported by coalescers.

Write failures are never raised from ``request``; they are delivered to the
owner through the ``error`` event.
"""

import os


class FlushWriteFailure(Exception):
    """A flush attempt failed in the underlying write primitive.

    Attributes:
        path: Destination the flush was writing to.
        cause: The exception raised by the write primitive.
    """

    def __init__(self, path: str | os.PathLike[str], cause: BaseException) -> None:
        self.path = os.fspath(path)
        self.cause = cause
        super().__init__(f"Failed to write '{self.path}': {cause}")
        self.__cause__ = cause
