"""
Shared fixtures: a manually driven clock and a wired-up runtime.
"""

import pytest

from drivelog.config import Settings
from drivelog.services.runtime import build_runtime


class ManualClock:
    """Stands in for SessionClock; tests call tick() themselves."""

    def __init__(self, callback):
        self.callback = callback
        self.running = False
        self.starts = 0
        self.stops = 0

    def start(self):
        if not self.running:
            self.starts += 1
        self.running = True

    def stop(self):
        self.stops += 1
        self.running = False

    def tick(self, n=1):
        for _ in range(n):
            if self.running:
                self.callback()


@pytest.fixture
def clocks():
    """Every ManualClock created by the recorder under test."""
    return []


@pytest.fixture
def clock_factory(clocks):
    def factory(callback):
        clock = ManualClock(callback)
        clocks.append(clock)
        return clock
    return factory


@pytest.fixture
def settings(tmp_path):
    return Settings(
        sessions_folder=tmp_path / "sessions",
        state_folder=tmp_path / "state",
    )


@pytest.fixture
def make_runtime(settings, clock_factory):
    def make(position_source=None):
        return build_runtime(settings, position_source=position_source, clock_factory=clock_factory)
    return make
