"""
Recording controller - the session lifecycle state machine.

Coordinates the session clock, position source, metric accumulator and
session store:

    IDLE --start()--> RECORDING --stop()--> IDLE

Each clock tick while RECORDING runs one sampling step. stop() halts the
clock before sealing and persisting, so sampling and persistence never
overlap. A failed save is reported but still returns the controller to IDLE.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Deque, Optional

from drivelog.errors import PersistenceFailure
from drivelog.models.session import LiveTelemetry, Session
from drivelog.services.accumulator import MetricAccumulator
from drivelog.services.clock import SessionClock
from drivelog.services.counter import SessionCounter
from drivelog.services.position import PositionSource
from drivelog.services.preferences import Preferences
from drivelog.services.session_store import SessionStore


logger = logging.getLogger(__name__)

STATUS_HISTORY_CAPACITY = 100


class RecorderState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class AuthorizationStatus(Enum):
    """Location capability status reported by the host."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"


@dataclass(frozen=True)
class RecorderStatus:
    """One event on the status channel."""

    kind: str  # "permission" | "persistence_failure"
    message: str
    at: float = field(default_factory=time.time)


ClockFactory = Callable[[Callable[[], None]], SessionClock]


class RecordingController:
    """
    State machine for one recorder process.

    Collaborators are injected; the controller never reaches for globals.
    """

    def __init__(
        self,
        position_source: PositionSource,
        store: SessionStore,
        counter: SessionCounter,
        preferences: Preferences,
        tick_period_s: float = 1.0,
        clock_factory: Optional[ClockFactory] = None,
        now: Callable[[], float] = time.time,
    ):
        self._source = position_source
        self._store = store
        self._counter = counter
        self._preferences = preferences
        self._now = now

        if clock_factory is None:
            clock_factory = lambda callback: SessionClock(callback, period=tick_period_s)
        self._clock = clock_factory(self.tick)

        self._accumulator = MetricAccumulator(on_update=self._publish_live)
        self._live = LiveTelemetry()

        self._state = RecorderState.IDLE
        self._session: Optional[Session] = None

        # Guards the active session: held by a tick while sampling and by stop()
        # while sealing and persisting.
        self._session_lock = threading.RLock()
        self._tick_lock = threading.Lock()
        self.dropped_ticks = 0

        self._authorization = AuthorizationStatus.NOT_DETERMINED
        self._statuses: Deque[RecorderStatus] = deque(maxlen=STATUS_HISTORY_CAPACITY)
        self._live_listeners: list[Callable[[LiveTelemetry], None]] = []
        self._status_listeners: list[Callable[[RecorderStatus], None]] = []
        self.last_error: Optional[Exception] = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecorderState.RECORDING

    @property
    def active_session_id(self) -> Optional[int]:
        session = self._session
        return session.session_id if session is not None else None

    @property
    def live(self) -> LiveTelemetry:
        return self._live

    @property
    def authorization(self) -> AuthorizationStatus:
        return self._authorization

    @property
    def statuses(self) -> list[RecorderStatus]:
        return list(self._statuses)

    @property
    def clock_running(self) -> bool:
        return self._clock.running

    def add_live_listener(self, callback: Callable[[LiveTelemetry], None]) -> None:
        self._live_listeners.append(callback)

    def add_status_listener(self, callback: Callable[[RecorderStatus], None]) -> None:
        self._status_listeners.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Optional[Session]:
        """
        Begin a new session.

        Returns the new (open) session, or None if already recording.
        """
        with self._session_lock:
            if self._state is RecorderState.RECORDING:
                logger.warning("start() called while already recording; ignoring")
                return None

            session_id = self._counter.next_id()
            session = Session(
                session_id=session_id,
                session_start=self._now(),
                tyre_type=self._preferences.current_tyre_type(),
                driver_name=self._preferences.current_driver_name(),
            )
            self._source.rewind()
            self._accumulator.reset(publish=True)
            self._session = session
            self._state = RecorderState.RECORDING
            self.last_error = None
            self._clock.start()

        logger.info(f"Recording started: session {session_id}")
        return session

    def stop(self) -> Optional[Path]:
        """
        End the active session and persist it.

        Returns the written file, or None if idle or if persistence failed.
        """
        if self._state is not RecorderState.RECORDING:
            logger.warning("stop() called while idle; ignoring")
            return None

        # Join the clock first so no tick can be sampling while we persist.
        self._clock.stop()

        with self._session_lock:
            session = self._session
            if self._state is not RecorderState.RECORDING or session is None:
                return None

            filepath: Optional[Path] = None
            try:
                session.seal(self._now())
                filepath = self._store.persist(session)
            except PersistenceFailure as e:
                logger.error(f"Error saving session: {e}")
                self.last_error = e
                self._report("persistence_failure", str(e))
            finally:
                self._session = None
                self._state = RecorderState.IDLE
                self._accumulator.reset(publish=True)

        logger.info(
            f"Recording stopped: session {session.session_id}, "
            f"{len(session.data)} samples, {session.total_distance_m:.1f} m"
        )
        return filepath

    def suspend(self) -> None:
        """Host is going to the background: halt ticks but keep the session open."""
        if self._state is not RecorderState.RECORDING:
            return
        self._clock.stop()
        logger.info(f"Recording suspended: session {self.active_session_id}")

    def resume(self) -> None:
        """Host became active again: restart ticks if a session is open."""
        if self._state is not RecorderState.RECORDING or self._clock.running:
            return
        self._clock.start()
        logger.info(f"Recording resumed: session {self.active_session_id}")

    def update_authorization(self, status: AuthorizationStatus) -> None:
        """
        Record the host's location authorization status.

        Denied or restricted access is reported once per change. Recording is
        not blocked here; gating the start action is the caller's job.
        """
        status = AuthorizationStatus(status)
        previous = self._authorization
        self._authorization = status
        if status == previous:
            return
        if status in (AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED):
            logger.warning(f"Location access {status.value}")
            self._report("permission", f"Location access is {status.value}. Please enable it in Settings.")

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Run one sampling step; dropped if the previous step is still running."""
        if not self._tick_lock.acquire(blocking=False):
            self.dropped_ticks += 1
            logger.debug("Previous sampling step still running, dropping tick")
            return
        try:
            with self._session_lock:
                session = self._session
                if self._state is not RecorderState.RECORDING or session is None:
                    return
                fix = self._source.latest_fix()
                point = self._accumulator.sample(fix, self._now())
                if point is None:
                    return
                session.append(point)
                # Publish only once the point is recorded; a listener may call stop().
                self._accumulator.publish()
        finally:
            self._tick_lock.release()

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def _publish_live(self, live: LiveTelemetry) -> None:
        self._live = live
        for listener in list(self._live_listeners):
            try:
                listener(live)
            except Exception as e:
                logger.error(f"Live telemetry listener failed: {e}")

    def _report(self, kind: str, message: str) -> None:
        status = RecorderStatus(kind=kind, message=message)
        self._statuses.append(status)
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Status listener failed: {e}")
