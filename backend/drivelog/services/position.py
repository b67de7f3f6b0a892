"""
Position sources - the location provider interface consumed by the recorder.
"""

import threading
from typing import Iterable, Optional, Protocol

from drivelog.models.fix import PositionFix


class PositionSource(Protocol):
    """Anything that can report the latest known position fix."""

    def latest_fix(self) -> Optional[PositionFix]:
        ...

    def rewind(self) -> None:
        """Called when a new session starts."""
        ...


class PushedPositionSource:
    """
    Holds the most recent fix pushed by the host.

    Mirrors a platform "last known location": the same fix keeps being
    reported until a newer one arrives or the source is cleared.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._fix: Optional[PositionFix] = None

    def push(self, fix: PositionFix) -> None:
        with self._lock:
            self._fix = fix

    def clear(self) -> None:
        with self._lock:
            self._fix = None

    def rewind(self) -> None:
        # The last known location stays valid across sessions
        pass

    def latest_fix(self) -> Optional[PositionFix]:
        with self._lock:
            return self._fix


class ReplayPositionSource:
    """
    Plays back a prepared sequence of fixes, one per call.

    None entries stand for ticks where the provider had no fix. Once the
    sequence is exhausted the source reports no fix until it is rewound,
    which the recorder does at the start of every session.
    """

    def __init__(self, fixes: Iterable[Optional[PositionFix]]):
        self._fixes = list(fixes)
        self._position = 0
        self._lock = threading.Lock()

    @property
    def remaining(self) -> int:
        return len(self._fixes) - self._position

    def rewind(self) -> None:
        """Play the sequence again from the first fix."""
        with self._lock:
            self._position = 0

    def latest_fix(self) -> Optional[PositionFix]:
        with self._lock:
            if self._position >= len(self._fixes):
                return None
            fix = self._fixes[self._position]
            self._position += 1
            return fix
