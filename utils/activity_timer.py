"""Idle countdown that closes the open vault when it runs out."""

import logging
import time
from typing import Any, Callable, Mapping, Optional

log = logging.getLogger(__name__)


def format_hms(seconds: int) -> str:
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ActivityTimer:
    """
    Single countdown with one-second ticks.

    A period of 0 disables the timer. `on_expire` fires once per expiry;
    the timer is idle afterwards until the next restart. A stopped timer
    belongs to a torn-down view and never ticks or fires again.
    """

    def __init__(self, timeout: Optional[int], on_expire: Callable[[], None], clock: Callable[[], float] = time.monotonic):
        self.period = int(timeout) if timeout else 0
        self.remaining = self.period
        self.running = False
        self.deadline: Optional[float] = None
        self._on_expire = on_expire
        self._clock = clock
        self._fresh = False
        self._stopped = False
        self._last_tick = clock()

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any], on_expire: Callable[[], None], clock: Callable[[], float] = time.monotonic) -> "ActivityTimer":
        try:
            timeout = int(settings.get("timeout") or 0)
        except (TypeError, ValueError):
            log.warning(f"Ignoring invalid idle timeout setting: {settings.get('timeout')!r}")
            timeout = 0
        return cls(timeout, on_expire, clock=clock)

    @property
    def enabled(self) -> bool:
        return self.period > 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> bool:
        return self.restart(force=True)

    def restart(self, force: bool = False) -> bool:
        """Reset remaining time. Unforced restarts leave a fresh, untouched countdown alone."""
        if not self.enabled or self._stopped:
            return False
        if not force and self.running and self._fresh:
            return False
        now = self._clock()
        self.remaining = self.period
        self.running = True
        self.deadline = now + self.period
        self._last_tick = now
        self._fresh = True
        return True

    def tick(self) -> None:
        if not self.running or self._stopped:
            return
        self._fresh = False
        self._last_tick += 1
        self.remaining = max(self.remaining - 1, 0)
        if self.remaining == 0:
            self.running = False
            self.deadline = None
            log.info("Idle timer expired")
            self._on_expire()

    def catch_up(self) -> int:
        """Apply every whole second elapsed on the clock since the last tick."""
        if not self.running or self._stopped:
            return 0
        due = int(self._clock() - self._last_tick)
        applied = 0
        while applied < due and self.running:
            self.tick()
            applied += 1
        return applied

    def stop(self) -> None:
        self.running = False
        self.deadline = None
        self._stopped = True

    def format_remaining(self) -> str:
        return format_hms(self.remaining)
