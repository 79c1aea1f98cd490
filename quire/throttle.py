"""Throttled persistence of rapidly changing participant state.

``ThrottledWriter`` coalesces bursts of save requests into at most one flush
per window. The first request in a quiet period arms a timer; requests that
arrive while it is armed only mark the state dirty. When the timer fires the
flush callback reads whatever state is current at that moment, so the last
update of a burst is always written and intermediate states are skipped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 3.0


class ThrottledWriter:
    """Scheduled flush task with trailing-edge coalescing.

    Parameters
    ----------
    flush : Callable[[], Awaitable[None]]
        Coroutine function that writes the current state.
    window : float
        Seconds between the first request of a burst and its flush.
    name : str
        Label used in log messages.

    Attributes
    ----------
    write_count : int
        Number of successful flushes.
    failure_count : int
        Number of flushes that raised.
    last_error : Exception | None
        Exception raised by the most recent failed flush.

    Examples
    --------
    >>> async def main() -> None:  # doctest: +SKIP
    ...     writer = ThrottledWriter(save, window=3.0)
    ...     writer.schedule()
    ...     writer.schedule()  # coalesced with the first request
    ...     await writer.flush_now()
    """

    def __init__(
        self,
        flush: Callable[[], Awaitable[None]],
        window: float = DEFAULT_WINDOW_SECONDS,
        name: str = "writer",
    ) -> None:
        if window < 0:
            raise ValueError(f"window must be non-negative, got {window}")
        self._flush = flush
        self.window = window
        self.name = name
        self._timer: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self.write_count = 0
        self.failure_count = 0
        self.last_error: Exception | None = None

    @property
    def pending(self) -> bool:
        """Whether a flush is scheduled and has not started yet."""
        return self._timer is not None and not self._timer.done()

    def schedule(self) -> None:
        """Request a flush within the current window.

        Must be called from a running event loop. Never waits on I/O.
        """
        if self.pending:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._flush_after_window())

    async def _flush_after_window(self) -> None:
        await asyncio.sleep(self.window)
        # requests arriving during the flush open a new window
        self._timer = None
        await self._run_flush()

    async def _run_flush(self) -> bool:
        async with self._lock:
            try:
                await self._flush()
            except Exception as e:
                self.failure_count += 1
                self.last_error = e
                logger.error(
                    f"Throttled flush of {self.name} failed; update dropped",
                    exc_info=True,
                )
                return False
            self.write_count += 1
            return True

    async def flush_now(self) -> bool:
        """Cancel the pending timer and flush immediately.

        Returns
        -------
        bool
            True if the flush succeeded.
        """
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
        return await self._run_flush()

    async def close(self) -> None:
        """Flush pending work, if any, and disarm the timer."""
        if self.pending:
            await self.flush_now()
