"""Save a file at most once per half second while content keeps changing.

Run with ``python examples/periodic_save.py``; it writes ``save-test.dummy``
in the current directory.
"""

import asyncio

import structlog

from lazywrite import DelayedWriteCoalescer, FlushWriteFailure, WriteSuccess

logger = structlog.get_logger()


async def main() -> None:
    saver = DelayedWriteCoalescer.create("./save-test.dummy", 500)

    @saver.on_write_success
    def saved(event: WriteSuccess) -> None:
        logger.info("Saved content", content=event.content)

    @saver.on_error
    def failed(failure: FlushWriteFailure) -> None:
        logger.error("Save failed", error=str(failure))

    # Both requests land in the same 500ms window, so only the second is written.
    saver.request("discarded value")
    saver.request("eventual value")

    # The first write is done by now; this request starts a fresh 500ms window.
    await asyncio.sleep(1.2)
    saver.request("another eventual value")

    await saver.wait_idle()
    await saver.close()


if __name__ == "__main__":
    asyncio.run(main())
