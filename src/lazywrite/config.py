"""Configuration types for the lazywrite library."""

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_MODE = 0o644


@dataclass(frozen=True, slots=True)
class SaverConfig:
    """Configuration for a DelayedWriteCoalescer instance.

    Attributes:
        path: Destination file. Every flush fully replaces its content.
        delay: Seconds to wait after the first request of a cycle before
               flushing. ``0`` flushes on the next event loop iteration.
        mode: Permission bits used when the file is created.
        encoding: Encoding applied to ``str`` content.
    """

    path: str | os.PathLike[str]
    delay: float = 0.5
    mode: int = DEFAULT_MODE
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not os.fspath(self.path):
            raise ValueError("path must not be empty")

        if not self.delay >= 0:
            raise ValueError(f"delay must be non-negative, got {self.delay}")

        if not 0 <= self.mode <= 0o7777:
            raise ValueError(f"mode must be a permission mask, got {self.mode:#o}")

    @classmethod
    def from_millis(cls, path: str | os.PathLike[str], delay_ms: float, **kwargs: Any) -> "SaverConfig":
        """Build a config from a delay expressed in milliseconds."""
        if not delay_ms >= 0:
            raise ValueError(f"delay must be non-negative, got {delay_ms}ms")
        return cls(path=path, delay=delay_ms / 1000.0, **kwargs)
