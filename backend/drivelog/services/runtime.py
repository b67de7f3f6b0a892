"""
Runtime - explicit construction and teardown of the recorder object graph.

One runtime per process, built from Settings by the app's startup and torn
down on shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from drivelog.config import Settings
from drivelog.services.counter import SessionCounter
from drivelog.services.position import PositionSource, PushedPositionSource, ReplayPositionSource
from drivelog.services.preferences import PreferencesStore
from drivelog.services.recorder import ClockFactory, RecordingController
from drivelog.services.session_store import SessionStore
from drivelog.utils.sample_data import generate_figure_eight_drive


logger = logging.getLogger(__name__)

SIMULATED_DRIVE_S = 600.0


@dataclass
class Runtime:
    settings: Settings
    store: SessionStore
    counter: SessionCounter
    preferences: PreferencesStore
    position_source: PositionSource
    recorder: RecordingController

    @property
    def pushed_source(self) -> Optional[PushedPositionSource]:
        if isinstance(self.position_source, PushedPositionSource):
            return self.position_source
        return None


def build_runtime(
    settings: Settings,
    position_source: Optional[PositionSource] = None,
    clock_factory: Optional[ClockFactory] = None,
) -> Runtime:
    """Wire up all collaborators for the given settings."""
    settings.state_folder.mkdir(parents=True, exist_ok=True)

    store = SessionStore(settings.sessions_folder)
    counter = SessionCounter(settings.counter_path)
    preferences = PreferencesStore(settings.preferences_path)
    if position_source is not None:
        source = position_source
    elif settings.simulate:
        source = ReplayPositionSource(generate_figure_eight_drive(duration_s=SIMULATED_DRIVE_S, noise_m=1.0))
    else:
        source = PushedPositionSource()

    recorder = RecordingController(
        position_source=source,
        store=store,
        counter=counter,
        preferences=preferences,
        tick_period_s=settings.tick_period_s,
        clock_factory=clock_factory,
    )
    return Runtime(
        settings=settings,
        store=store,
        counter=counter,
        preferences=preferences,
        position_source=source,
        recorder=recorder,
    )


# Global runtime instance (set up by app initialization)
_runtime: Optional[Runtime] = None


def get_runtime() -> Runtime:
    """Get the global runtime, building one from the environment if needed."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime(Settings.from_env())
    return _runtime


def init_runtime(
    settings: Settings,
    position_source: Optional[PositionSource] = None,
    clock_factory: Optional[ClockFactory] = None,
) -> Runtime:
    """Initialize the global runtime, replacing any previous one."""
    global _runtime
    shutdown_runtime()
    _runtime = build_runtime(settings, position_source, clock_factory)
    logger.info(f"Runtime initialized, sessions folder: {settings.sessions_folder}")
    return _runtime


def shutdown_runtime() -> None:
    """Stop any active recording (persisting it) and drop the global runtime."""
    global _runtime
    if _runtime is None:
        return
    if _runtime.recorder.is_recording:
        logger.info("Shutting down with an active recording; stopping it")
        _runtime.recorder.stop()
    _runtime = None
