"""
Session clock - fixed-period tick source for an active recording.
"""

import logging
import threading
import time
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class SessionClock:
    """
    Invokes a callback once per period on a background thread.

    The schedule is fixed-rate on the monotonic clock. If the callback
    overruns, the missed periods are dropped rather than replayed, so two
    callbacks never run concurrently and no backlog builds up.
    """

    def __init__(self, callback: Callable[[], None], period: float = 1.0):
        if period <= 0:
            raise ValueError(f"Clock period must be positive, got {period}")
        self._callback = callback
        self._period = period
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.ticks = 0
        self.dropped_ticks = 0

    @property
    def period(self) -> float:
        return self._period

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event,),
            name="session-clock",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Session clock started (period={self._period}s)")

    def stop(self) -> None:
        """Halt the clock; returns once no callback can still be running."""
        thread = self._thread
        self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        logger.debug(f"Session clock stopped after {self.ticks} ticks")

    def _run(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic() + self._period
        while not stop_event.wait(max(next_tick - time.monotonic(), 0.0)):
            try:
                self._callback()
            except Exception:
                logger.exception("Session clock callback failed")
            self.ticks += 1

            next_tick += self._period
            now = time.monotonic()
            if next_tick <= now:
                missed = int((now - next_tick) // self._period) + 1
                self.dropped_ticks += missed
                next_tick += missed * self._period
                logger.warning(f"Sampling overran the tick period, dropped {missed} tick(s)")
