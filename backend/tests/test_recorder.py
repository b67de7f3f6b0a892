"""
Tests for the recording controller state machine.
"""

import json
import threading

import pytest
from numpy.testing import assert_allclose

from drivelog.errors import CounterError, PersistenceFailure
from drivelog.models.fix import PositionFix
from drivelog.models.session import TyreType
from drivelog.services.counter import SessionCounter
from drivelog.services.position import PushedPositionSource, ReplayPositionSource
from drivelog.services.preferences import PreferencesStore
from drivelog.services.recorder import (
    STATUS_HISTORY_CAPACITY,
    AuthorizationStatus,
    RecorderState,
    RecordingController,
)
from drivelog.services.session_store import SessionStore
from drivelog.utils.coordinates import haversine_distance
from drivelog.utils.sample_data import generate_straight_drive, with_dropouts


class FakeTime:
    def __init__(self, start=1714572000.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds=1.0):
        self.value += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def source():
    return PushedPositionSource()


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "sessions")


@pytest.fixture
def preferences(tmp_path):
    return PreferencesStore(tmp_path / "state" / "preferences.json")


@pytest.fixture
def counter(tmp_path):
    return SessionCounter(tmp_path / "state" / "counter.json")


@pytest.fixture
def recorder(source, store, counter, preferences, clock_factory, fake_time):
    return RecordingController(
        position_source=source,
        store=store,
        counter=counter,
        preferences=preferences,
        clock_factory=clock_factory,
        now=fake_time,
    )


@pytest.fixture
def clock(recorder, clocks):
    return clocks[0]


def _load(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestLifecycle:
    """Start/stop transitions."""

    def test_initially_idle(self, recorder, clock):
        assert recorder.state is RecorderState.IDLE
        assert recorder.active_session_id is None
        assert not clock.running

    def test_start_stop_without_ticks(self, recorder, clock, fake_time, store):
        session = recorder.start()
        assert recorder.state is RecorderState.RECORDING
        assert clock.running
        assert recorder.active_session_id == session.session_id

        fake_time.advance(0.5)
        path = recorder.stop()

        assert recorder.state is RecorderState.IDLE
        assert not clock.running
        payload = _load(path)
        assert payload["data"] == []
        assert payload["session_end"] >= payload["session_start"]
        assert payload["session_id"] == 1
        assert [s.ref for s in store.list_sessions()] == [path.name]

    def test_ids_strictly_increase(self, recorder):
        ids = []
        for _ in range(3):
            ids.append(recorder.start().session_id)
            recorder.stop()

        assert ids == [1, 2, 3]

    def test_ids_continue_after_restart(self, recorder, source, store, counter, preferences, clock_factory):
        recorder.start()
        recorder.stop()

        again = RecordingController(
            position_source=source,
            store=store,
            counter=SessionCounter(counter.path),
            preferences=preferences,
            clock_factory=clock_factory,
        )

        assert again.start().session_id == 2
        again.stop()

    def test_start_while_recording_is_noop(self, recorder, clock, counter):
        first = recorder.start()

        assert recorder.start() is None
        assert recorder.active_session_id == first.session_id
        assert counter.peek() == 1
        assert clock.starts == 1

    def test_stop_while_idle_is_noop(self, recorder, store):
        assert recorder.stop() is None
        assert store.list_sessions() == []

    def test_preferences_captured_at_start(self, recorder, preferences, clock, source):
        preferences.update(tyre_type=TyreType.WINTER, driver_name="Alex")
        recorder.start()

        preferences.update(tyre_type=TyreType.SUMMER, driver_name="Someone else")
        source.push(PositionFix(32.0, -89.0, 3.0))
        clock.tick()
        payload = _load(recorder.stop())

        assert payload["tyreType"] == "Winter"
        assert payload["driverName"] == "Alex"

    def test_counter_failure_keeps_idle(self, recorder, counter, clock):
        counter.path.parent.mkdir(parents=True, exist_ok=True)
        counter.path.write_text("garbage")

        with pytest.raises(CounterError):
            recorder.start()

        assert recorder.state is RecorderState.IDLE
        assert not clock.running


class TestSampling:
    """Ticks while recording."""

    def test_two_fix_example(self, recorder, clock, source, fake_time):
        recorder.start()
        source.push(PositionFix(0.0, 0.0, 0.0))
        clock.tick()
        fake_time.advance()
        source.push(PositionFix(0.0, 0.0001, 10.0))
        clock.tick()

        step = haversine_distance(0.0, 0.0, 0.0, 0.0001)
        assert_allclose(recorder.live.total_distance_m, step)
        assert_allclose(recorder.live.current_speed_kmh, 36.0)

        data = _load(recorder.stop())["data"]
        assert [p["index"] for p in data] == [0, 1]
        assert data[0]["distance"] == 0.0
        assert data[0]["speed"] == 0.0
        assert_allclose(data[1]["distance"], step)
        assert data[1]["speed"] == 10.0
        assert data[1]["timestamp"] - data[0]["timestamp"] == 1.0

    def test_no_fix_skips_tick(self, recorder, clock):
        recorder.start()
        clock.tick(5)

        assert recorder.live.rolling_window == ()
        assert _load(recorder.stop())["data"] == []

    def test_non_finite_fixes_do_not_lose_the_session(self, store, counter, preferences, clock_factory, clocks):
        replay = ReplayPositionSource([
            PositionFix(32.0, -89.0, 5.0),
            PositionFix(32.0001, -89.0, float("inf")),
            PositionFix(float("nan"), -89.0, 5.0),
            PositionFix(32.0002, -89.0, 5.0),
        ])
        recorder = RecordingController(replay, store, counter, preferences, clock_factory=clock_factory)

        recorder.start()
        clocks[-1].tick(4)
        path = recorder.stop()

        assert path is not None
        assert recorder.last_error is None
        data = _load(path)["data"]
        assert [p["index"] for p in data] == [0, 1, 2]
        assert [p["speed"] for p in data] == [5.0, 0.0, 5.0]
        assert_allclose(data[-1]["distance"], haversine_distance(32.0, -89.0, 32.0002, -89.0))

    def test_dropouts_leave_no_index_gaps(self, store, counter, preferences, clock_factory, clocks):
        fixes = generate_straight_drive(n_samples=20, speed_mps=12.0)
        replay = ReplayPositionSource(with_dropouts(fixes, every=3))
        recorder = RecordingController(replay, store, counter, preferences, clock_factory=clock_factory)

        recorder.start()
        clocks[-1].tick(replay.remaining + 2)
        data = _load(recorder.stop())["data"]

        assert [p["index"] for p in data] == list(range(20))
        distances = [p["distance"] for p in data]
        assert distances == sorted(distances)
        assert_allclose(distances[-1], 19 * 12.0, rtol=0.01)

    def test_ticks_ignored_when_idle(self, recorder, source):
        source.push(PositionFix(32.0, -89.0, 3.0))
        recorder.tick()

        assert recorder.live.rolling_window == ()

    def test_overlapping_tick_is_dropped(self, recorder, source, clock):
        recorder.start()
        source.push(PositionFix(32.0, -89.0, 3.0))

        recorder._tick_lock.acquire()
        try:
            recorder.tick()
        finally:
            recorder._tick_lock.release()

        assert recorder.dropped_ticks == 1
        assert recorder.live.rolling_window == ()

    def test_live_listeners_receive_updates(self, recorder, source, clock):
        updates = []
        recorder.add_live_listener(updates.append)

        recorder.start()
        source.push(PositionFix(32.0, -89.0, 5.0))
        clock.tick()
        recorder.stop()

        assert updates[-2].current_speed_kmh == pytest.approx(18.0)
        # stop() publishes the cleared state
        assert updates[-1].current_speed_kmh == 0.0
        assert updates[-1].total_distance_m == 0.0
        assert updates[-1].rolling_window == ()

    def test_listener_stopping_recording_keeps_published_sample(self, recorder, source, clock, store):
        paths = []

        def stop_on_first_sample(live):
            if live.rolling_window and recorder.is_recording:
                paths.append(recorder.stop())

        recorder.add_live_listener(stop_on_first_sample)
        recorder.start()
        source.push(PositionFix(32.0, -89.0, 5.0))

        clock.tick()

        assert recorder.state is RecorderState.IDLE
        assert recorder.last_error is None
        data = _load(paths[0])["data"]
        assert len(data) == 1
        assert data[0]["speed"] == 5.0
        assert len(store.list_sessions()) == 1

    def test_replay_restarts_each_session(self, store, counter, preferences, clock_factory, clocks):
        replay = ReplayPositionSource(generate_straight_drive(n_samples=5, speed_mps=10.0))
        recorder = RecordingController(replay, store, counter, preferences, clock_factory=clock_factory)

        counts = []
        for _ in range(2):
            recorder.start()
            clocks[-1].tick(8)
            counts.append(len(_load(recorder.stop())["data"]))

        assert counts == [5, 5]

    def test_state_cleared_after_stop(self, recorder, source, clock):
        recorder.start()
        source.push(PositionFix(32.0, -89.0, 5.0))
        clock.tick()
        source.push(PositionFix(32.001, -89.0, 5.0))
        clock.tick()
        recorder.stop()

        assert recorder.live.total_distance_m == 0.0
        assert recorder.live.current_speed_kmh == 0.0
        assert recorder.live.rolling_window == ()

        # The next session starts from zero
        recorder.start()
        clock.tick()
        data = _load(recorder.stop())["data"]
        assert data[0]["index"] == 0
        assert data[0]["distance"] == 0.0


class TestErrorContainment:
    """Failures never leave the controller stuck."""

    def test_persistence_failure_returns_to_idle(self, recorder, store, clock, monkeypatch):
        statuses = []
        recorder.add_status_listener(statuses.append)

        def failing_persist(session):
            raise PersistenceFailure("disk full")

        monkeypatch.setattr(store, "persist", failing_persist)

        recorder.start()
        assert recorder.stop() is None

        assert recorder.state is RecorderState.IDLE
        assert isinstance(recorder.last_error, PersistenceFailure)
        assert [s.kind for s in statuses] == ["persistence_failure"]
        assert not clock.running

        # Still usable afterwards
        monkeypatch.undo()
        recorder.start()
        assert recorder.stop() is not None
        assert recorder.last_error is None

    def test_broken_listener_does_not_break_sampling(self, recorder, source, clock):
        def broken(_live):
            raise RuntimeError("display gone")

        recorder.add_live_listener(broken)
        recorder.start()
        source.push(PositionFix(32.0, -89.0, 5.0))
        clock.tick()

        assert len(_load(recorder.stop())["data"]) == 1


class TestHostSignals:
    """Suspend/resume and authorization reporting."""

    def test_suspend_and_resume(self, recorder, clock):
        recorder.start()

        recorder.suspend()
        assert not clock.running
        assert recorder.state is RecorderState.RECORDING

        recorder.resume()
        assert clock.running

    def test_resume_when_idle_is_noop(self, recorder, clock):
        recorder.resume()

        assert not clock.running

    def test_denied_reported_once(self, recorder):
        recorder.update_authorization(AuthorizationStatus.DENIED)
        recorder.update_authorization(AuthorizationStatus.DENIED)

        assert [s.kind for s in recorder.statuses] == ["permission"]

        recorder.update_authorization(AuthorizationStatus.AUTHORIZED)
        recorder.update_authorization(AuthorizationStatus.RESTRICTED)

        assert len(recorder.statuses) == 2
        assert "restricted" in recorder.statuses[-1].message

    def test_status_history_is_bounded(self, recorder):
        for _ in range(STATUS_HISTORY_CAPACITY + 20):
            recorder.update_authorization(AuthorizationStatus.AUTHORIZED)
            recorder.update_authorization(AuthorizationStatus.DENIED)

        assert len(recorder.statuses) == STATUS_HISTORY_CAPACITY
        assert all(s.kind == "permission" for s in recorder.statuses)

    def test_authorization_does_not_gate_start(self, recorder):
        recorder.update_authorization(AuthorizationStatus.DENIED)

        assert recorder.start() is not None
        recorder.stop()


class TestWithRealClock:
    """End-to-end with the threaded SessionClock."""

    def test_records_samples(self, store, counter, preferences):
        source = PushedPositionSource()
        source.push(PositionFix(32.0, -89.0, 8.0))
        recorder = RecordingController(source, store, counter, preferences, tick_period_s=0.02)
        sampled = threading.Event()
        recorder.add_live_listener(lambda live: live.rolling_window and sampled.set())

        recorder.start()
        assert sampled.wait(2.0)
        path = recorder.stop()

        data = _load(path)["data"]
        assert len(data) >= 1
        assert [p["index"] for p in data] == list(range(len(data)))
        assert not recorder.clock_running
