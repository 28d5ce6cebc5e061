"""Per-session gate for automatically triggered crawls."""
import logging
import threading
import time
from collections.abc import Callable
from typing import Optional

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class ThrottleController:
    """Minimum-interval gate for automatic discovery triggers.

    Holds one timestamp per session. Manual refreshes never pass through
    here: they neither consult nor move the timestamp.

    Usage:
        throttle = ThrottleController(min_interval_ms=60_000)
        if throttle.try_admit_auto():
            ...start crawl...
    """

    def __init__(
        self,
        min_interval_ms: int = 60_000,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.min_interval_ms = min_interval_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._last_auto_trigger_at: Optional[float] = None

    @property
    def last_auto_trigger_at(self) -> Optional[float]:
        return self._last_auto_trigger_at

    def try_admit_auto(self) -> bool:
        """Admit an automatic trigger and stamp it, as one critical section.

        The timestamp is set on admission, before the crawl starts, so a
        slow crawl cannot be re-triggered while it is still running.
        """
        with self._lock:
            now = self._clock()
            last = self._last_auto_trigger_at
            if last is not None and now - last < self.min_interval_ms:
                logger.debug(
                    "Automatic trigger throttled (%.0fms since last, need %dms)",
                    now - last, self.min_interval_ms,
                )
                return False
            self._last_auto_trigger_at = now
            return True

    def remaining_ms(self) -> float:
        """Milliseconds until the next automatic trigger would be admitted."""
        with self._lock:
            if self._last_auto_trigger_at is None:
                return 0.0
            return max(0.0, self.min_interval_ms - (self._clock() - self._last_auto_trigger_at))

    def reset(self) -> None:
        """Forget the last trigger (session end)."""
        with self._lock:
            self._last_auto_trigger_at = None
