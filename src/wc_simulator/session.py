"""
Simulation Session Controller
=============================

Owns the periodic timer that drives the physics tick, outside the pure core.

The session holds the current SimulationState, the WellConfiguration and
its derived CalculationResults. Every command goes through dispatch(),
which applies the pure transition under a lock and then synchronises the
timer with the resulting status:

    status enters RUNNING  -> timer started
    status leaves RUNNING  -> timer stopped (also after the MAASP interlock)

Ticks never overlap: a single daemon thread issues one Tick at a time,
paced on time.monotonic().

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .core.actions import Action, Tick
from .core.config import WellConfiguration
from .core.events import EventFactory, default_factory
from .core.hydraulics import CalculationResults, calculate
from .core.machine import transition
from .core.state import SimulationState, initial_state

logger = logging.getLogger(__name__)

Listener = Callable[[SimulationState], None]


@dataclass
class SessionConfig:
    """Timer configuration for a simulation session."""

    tick_interval_s: float = 0.1  # Nominal 100 ms tick
    shutdown_timeout_sec: float = 1.0

    def validate(self):
        if self.tick_interval_s <= 0:
            raise ValueError(f"Tick interval must be positive: {self.tick_interval_s}")
        if self.shutdown_timeout_sec < 0:
            raise ValueError(
                f"Shutdown timeout must be non-negative: {self.shutdown_timeout_sec}"
            )


class SimulationSession:
    """
    Thread-safe owner of one running simulation.

    Listeners receive new state snapshots in commit order. They are called
    outside the state lock and must not block. A snapshot superseded by a
    later commit before delivery is dropped.
    """

    def __init__(
        self,
        config: Optional[WellConfiguration] = None,
        session_config: Optional[SessionConfig] = None,
        factory: EventFactory = default_factory,
    ):
        self.session_config = session_config or SessionConfig()
        self.session_config.validate()

        config = config or WellConfiguration()
        config.validate()

        self._config = config
        self._results = calculate(config)
        self._factory = factory
        self._state = initial_state(factory)

        self._listeners: List[Listener] = []
        self._commit_seq = 0
        self._published_seq = 0

        # Synchronization
        self._lock = threading.RLock()
        self._publish_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._closed = False

        logger.info(
            f"Session initialized: tick={self.session_config.tick_interval_s * 1000:.0f} ms, "
            f"MAASP={self._results.maasp:.0f} psi"
        )

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SimulationState:
        with self._lock:
            return self._state

    @property
    def config(self) -> WellConfiguration:
        with self._lock:
            return self._config

    @property
    def results(self) -> CalculationResults:
        with self._lock:
            return self._results

    @property
    def is_ticking(self) -> bool:
        """True while the timer thread is alive and not asked to stop."""
        thread = self._timer_thread
        return (
            thread is not None
            and thread.is_alive()
            and not self._stop_event.is_set()
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> SimulationState:
        """
        Apply one action and synchronise the timer.

        Returns:
            The committed state

        Raises:
            RuntimeError: If the session has been closed
        """
        with self._lock:
            if self._closed:
                if isinstance(action, Tick):
                    return self._state
                raise RuntimeError("Session is closed")
            previous = self._state
            self._state = transition(previous, action, self._factory)
            state = self._state
            if state is not previous:
                self._commit_seq += 1
            sequence = self._commit_seq

        if state is not previous:
            self._notify(state, sequence)
        self._sync_timer()
        return state

    def tick(self) -> SimulationState:
        """Issue one Tick with the current configuration and results."""
        with self._lock:
            action = Tick(self._results, self._config)
        return self.dispatch(action)

    def update_configuration(self, config: WellConfiguration) -> CalculationResults:
        """
        Replace the well configuration.

        Takes effect on the next tick. The current state is not reset;
        dispatch SetMode to reinitialise the profile.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config.validate()
        results = calculate(config)
        with self._lock:
            self._config = config
            self._results = results
        logger.info(
            f"Configuration updated: KMW={results.kill_mud_weight:.2f} ppg, "
            f"ICP={results.icp:.0f} psi, FCP={results.fcp:.0f} psi"
        )
        return results

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, callback: Listener):
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener):
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self, state: SimulationState, sequence: int):
        with self._publish_lock:
            if sequence <= self._published_seq:
                logger.debug(f"Dropped stale snapshot #{sequence}")
                return
            self._published_seq = sequence

            with self._lock:
                listeners = list(self._listeners)
            for callback in listeners:
                try:
                    callback(state)
                except Exception:
                    logger.exception("Session listener failed")

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    def _sync_timer(self):
        # Follows the committed state, not the caller's snapshot
        with self._lock:
            if self._state.is_running:
                self._start_timer_locked()
                return
            thread = self._stop_timer_locked()
        self._join(thread)

    def _start_timer_locked(self):
        if self._closed or self.is_ticking:
            return

        # Each thread owns its stop event; a finishing thread never sees it cleared
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._timer_thread = threading.Thread(
            target=self._run_timer,
            args=(stop_event,),
            daemon=True,
            name="SimulationTimer",
        )
        self._timer_thread.start()
        logger.info("Simulation timer started")

    def _stop_timer_locked(self) -> Optional[threading.Thread]:
        thread = self._timer_thread
        if thread is None or self._stop_event.is_set():
            return None
        self._stop_event.set()
        logger.info("Simulation timer stopped")
        return thread

    def _join(self, thread: Optional[threading.Thread]):
        # The timer thread stops itself by setting its event only
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=self.session_config.shutdown_timeout_sec)
        if thread.is_alive():
            logger.warning("Simulation timer did not terminate cleanly")

    def _run_timer(self, stop_event: threading.Event):
        interval = self.session_config.tick_interval_s
        next_tick = time.monotonic() + interval

        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self.tick()
            except Exception:
                logger.exception("Simulation tick failed, stopping timer")
                stop_event.set()
                break

            next_tick += interval
            now = time.monotonic()
            if next_tick < now:
                # Fell behind: drop missed ticks rather than bursting
                next_tick = now + interval

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self):
        """Stop the timer and refuse further commands. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._stop_timer_locked()

        self._join(thread)
        logger.info("Session closed")

    def __enter__(self) -> "SimulationSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
