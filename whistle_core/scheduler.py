"""
Cooperative tick scheduler.

Single Responsibility: Run "next frame" callbacks one at a time, in order.

There is exactly one thread. Callbacks request their own follow-up tick,
the same way a display-refresh callback re-registers itself.
"""
import time
from collections import OrderedDict
from typing import Callable, Optional

from logger import get_logger

log = get_logger(__name__)

TickCallback = Callable[[], None]


class TickScheduler:
    """
    Recurring "next tick" primitive.

    Single Responsibility: Ordering and pacing of tick callbacks.
    """

    def __init__(self, tick_interval_sec: float = 0.0, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize scheduler.

        Args:
            tick_interval_sec: Minimum spacing between ticks. Zero means
                the callbacks pace themselves (e.g. by a blocking read).
            clock: Monotonic clock, injectable for tests
            sleep: Sleep function, injectable for tests
        """
        if tick_interval_sec < 0:
            raise ValueError("tick_interval_sec must be non-negative")
        self.tick_interval_sec = tick_interval_sec
        self._clock = clock
        self._sleep = sleep
        self._pending: "OrderedDict[int, TickCallback]" = OrderedDict()
        self._next_handle = 1
        self._last_tick: Optional[float] = None

    def request_tick(self, callback: TickCallback) -> int:
        """
        Schedule callback for the next tick.

        Returns:
            Handle usable with cancel()
        """
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        """Cancel a pending tick. Unknown or None handles are ignored."""
        if handle is not None:
            self._pending.pop(handle, None)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def run_once(self) -> int:
        """
        Run every callback that was pending when this tick began.

        Callbacks requested during the tick run on the next tick.

        Returns:
            Number of callbacks executed
        """
        if self._last_tick is not None and self.tick_interval_sec > 0:
            wait = self.tick_interval_sec - (self._clock() - self._last_tick)
            if wait > 0:
                self._sleep(wait)
        self._last_tick = self._clock()

        due = list(self._pending.keys())
        executed = 0
        for handle in due:
            # Cancelled by an earlier callback in this same tick
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback()
            executed += 1
        return executed

    def run(self, should_continue: Optional[Callable[[], bool]] = None) -> None:
        """
        Run ticks until nothing is pending or should_continue() is False.
        """
        while self._pending:
            if should_continue is not None and not should_continue():
                log.debug("Scheduler stopped by caller")
                return
            self.run_once()
        log.debug("Scheduler idle: no pending ticks")
