"""
Countdown cooking timer.

Single Responsibility: Count down whole seconds and sound the alarm once
at zero.
"""
import time
from typing import Callable, Optional

from logger import get_logger

from .errors import InvalidConfigError

log = get_logger(__name__)


class CookingTimer:
    """Start / pause / resume / reset countdown driven by tick(now)."""

    def __init__(self, alarm=None, clock: Callable[[], float] = time.monotonic):
        """
        Initialize timer.

        Args:
            alarm: Object with a play() method, or None
            clock: Monotonic clock used when tick() gets no explicit time
        """
        self.alarm = alarm
        self._clock = clock
        self._remaining = 0
        self._running = False
        self._last_tick: Optional[float] = None
        self._carry = 0.0
        self.finished = False

    @property
    def remaining(self) -> int:
        """Seconds left."""
        return self._remaining

    @property
    def running(self) -> bool:
        return self._running

    def start(self, minutes: int = 0, seconds: int = 0) -> None:
        """
        Start a new countdown.

        Raises:
            InvalidConfigError: if the duration is not positive
        """
        if minutes < 0 or seconds < 0:
            raise InvalidConfigError("Timer minutes and seconds must be non-negative")
        total = int(minutes) * 60 + int(seconds)
        if total <= 0:
            raise InvalidConfigError("Timer duration must be greater than zero")

        self._remaining = total
        self._running = True
        self._last_tick = self._clock()
        self._carry = 0.0
        self.finished = False
        log.info(f"Timer started: {self.format_remaining()}")

    def pause(self) -> None:
        if self._running:
            self._running = False
            log.info(f"Timer paused at {self.format_remaining()}")

    def resume(self) -> None:
        if not self._running and self._remaining > 0:
            self._running = True
            self._last_tick = self._clock()
            log.info(f"Timer resumed at {self.format_remaining()}")

    def reset(self) -> None:
        self._running = False
        self._remaining = 0
        self._last_tick = None
        self._carry = 0.0
        self.finished = False

    def tick(self, now: Optional[float] = None) -> None:
        """Advance the countdown by the whole seconds elapsed since the last tick."""
        if not self._running:
            return
        if now is None:
            now = self._clock()

        self._carry += now - self._last_tick
        self._last_tick = now
        elapsed = int(self._carry)
        if elapsed <= 0:
            return
        self._carry -= elapsed

        self._remaining = max(0, self._remaining - elapsed)
        if self._remaining == 0:
            self._running = False
            self.finished = True
            log.info("Timer finished")
            if self.alarm is not None:
                self.alarm.play()

    def format_remaining(self) -> str:
        """MM:SS."""
        mins, secs = divmod(self._remaining, 60)
        return f"{mins:02d}:{secs:02d}"
