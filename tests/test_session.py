"""Tests for the session controller and its tick timer."""

import threading
import time

import pytest

from wc_simulator.core import actions as act
from wc_simulator.core.config import ConfigurationError, WellConfiguration
from wc_simulator.core.state import SimStatus, SimulationMode
from wc_simulator.session import SessionConfig, SimulationSession


def wait_for(predicate, timeout=3.0, interval=0.01):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def session():
    s = SimulationSession(WellConfiguration(), SessionConfig(tick_interval_s=0.01))
    yield s
    s.close()


class TestConstruction:
    def test_invalid_configuration(self):
        with pytest.raises(ConfigurationError):
            SimulationSession(WellConfiguration(tvd=0.0))

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            SimulationSession(session_config=SessionConfig(tick_interval_s=0.0))

    def test_results_derived(self, session):
        assert session.results.maasp == pytest.approx(962.0)
        assert session.state.status is SimStatus.READY
        assert not session.is_ticking


class TestDispatch:
    def test_manual_tick_noop_when_ready(self, session):
        before = session.state
        assert session.tick() is before

    def test_listener_receives_new_state(self, session):
        seen = []
        session.add_listener(seen.append)
        state = session.dispatch(act.SetSpeed(2.0))
        assert seen == [state]

        session.remove_listener(seen.append)
        session.dispatch(act.SetSpeed(3.0))
        assert len(seen) == 1

    def test_listener_failure_is_contained(self, session):
        def broken(state):
            raise RuntimeError("boom")

        session.add_listener(broken)
        assert session.dispatch(act.SetSpeed(2.0)).speed == 2.0

    def test_update_configuration(self, session):
        results = session.update_configuration(WellConfiguration(leak_off_test_mw=15.0))
        assert results.maasp == pytest.approx((15.0 - 10.5) * 0.052 * 5000)
        assert session.results is results

    def test_update_configuration_rejects_invalid(self, session):
        with pytest.raises(ConfigurationError):
            session.update_configuration(WellConfiguration(current_mud_weight=-1.0))
        assert session.results.maasp == pytest.approx(962.0)


class TestTimer:
    def test_starts_and_ticks_while_running(self, session):
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        assert session.is_ticking
        assert wait_for(lambda: session.state.current_strokes >= 50.0)

    def test_stops_on_pause(self, session):
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        assert wait_for(lambda: session.state.current_strokes > 0)

        session.dispatch(act.SetStatus(SimStatus.PAUSED))
        assert not session.is_ticking
        strokes = session.state.current_strokes
        time.sleep(0.05)
        assert session.state.current_strokes == strokes

    def test_stops_on_mode_change(self, session):
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        session.dispatch(act.SetMode(SimulationMode.STRIPPING, session.config))
        assert session.state.status is SimStatus.READY
        assert not session.is_ticking

    def test_stops_on_emergency(self, session):
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        session.dispatch(act.EmergencySequence())
        assert not session.is_ticking

    def test_stops_after_maasp_interlock(self, session):
        session.dispatch(act.SetMode(SimulationMode.STANDARD_KILL, session.config))
        session.dispatch(act.BleedPressure(-1000.0))
        session.dispatch(act.SetStatus(SimStatus.RUNNING))

        assert wait_for(lambda: session.state.status is SimStatus.PAUSED)
        assert wait_for(lambda: not session.is_ticking)

    def test_resume_restarts_timer(self, session):
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        session.dispatch(act.SetStatus(SimStatus.PAUSED))
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        assert session.is_ticking


class TestPublishOrder:
    def test_late_timer_snapshot_does_not_overwrite_pause(self, session, monkeypatch):
        seen = []
        session.add_listener(lambda state: seen.append(state.status))

        deliver = session._notify

        def slow_timer_delivery(state, sequence):
            if threading.current_thread().name == "SimulationTimer":
                time.sleep(0.2)
            deliver(state, sequence)

        monkeypatch.setattr(session, "_notify", slow_timer_delivery)

        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        time.sleep(0.05)
        session.dispatch(act.SetStatus(SimStatus.PAUSED))
        assert wait_for(lambda: not session.is_ticking)
        time.sleep(0.3)

        assert session.state.status is SimStatus.PAUSED
        assert seen[-1] is SimStatus.PAUSED
        assert seen[0] is SimStatus.RUNNING

    def test_every_commit_published_once(self, session):
        seen = []
        session.add_listener(seen.append)
        states = [session.dispatch(act.SetSpeed(v)) for v in (1.5, 2.0, 2.5)]
        assert seen == states


class TestClose:
    def test_close_stops_timer(self):
        session = SimulationSession(session_config=SessionConfig(tick_interval_s=0.01))
        session.dispatch(act.SetStatus(SimStatus.RUNNING))
        session.close()
        assert not session.is_ticking

    def test_close_is_idempotent(self):
        session = SimulationSession()
        session.close()
        session.close()

    def test_dispatch_after_close(self):
        session = SimulationSession()
        session.close()
        with pytest.raises(RuntimeError):
            session.dispatch(act.SetSpeed(2.0))
        assert session.tick() is session.state

    def test_context_manager(self):
        with SimulationSession(session_config=SessionConfig(tick_interval_s=0.01)) as session:
            session.dispatch(act.SetStatus(SimStatus.RUNNING))
            assert session.is_ticking
        assert not session.is_ticking
