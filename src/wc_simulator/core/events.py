"""
Operational Event Log
=====================

Append-only, capacity-bounded records emitted by state transitions:

- EventLog: human-readable operational events, newest first
- PressureTrend: {time, pressure, target} samples for trend charting, oldest first

Both are fixed-capacity rings over collections.deque(maxlen=...). When full,
the oldest entry is dropped silently.

Both containers are values: push()/append() return a new container and leave
the original untouched, so every SimulationState snapshot stays inspectable
after later transitions.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import itertools
import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Iterable, Iterator, Optional


HISTORY_CAPACITY = 100
TREND_CAPACITY = 100


class EventType(Enum):
    """Category of an operational event."""

    SYSTEM = "SYSTEM"
    OPS = "OPS"
    ALARM = "ALARM"
    SUCCESS = "SUCCESS"
    TEST = "TEST"
    STRIP = "STRIP"
    MILLING = "MILLING"
    GAS = "GAS"
    VOLUMETRIC = "VOLUMETRIC"
    SNUBBING = "SNUBBING"
    PARAMETER = "PARAMETER"
    EMERGENCY = "EMERGENCY"


class Severity(Enum):
    """Display severity of an operational event."""

    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"


@dataclass(frozen=True)
class HistoryEvent:
    """Single timestamped operational event."""

    id: str
    timestamp: float  # [s] Wall-clock time
    type: EventType
    message: str
    severity: Severity = Severity.INFO


@dataclass(frozen=True)
class PressureSample:
    """Surface pressure sample for the trend chart."""

    time: float  # [s] Wall-clock time
    pressure: float  # [psi] Surface pressure after the tick
    target: float  # [psi] Target pressure


class EventFactory:
    """
    Builds HistoryEvents with unique identifiers.

    Identifiers combine the millisecond timestamp with a process-wide
    counter, so two events created in the same millisecond never clash.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.time
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self, timestamp: float) -> str:
        with self._lock:
            sequence = next(self._counter)
        return f"{int(timestamp * 1000)}-{sequence}"

    def create(
        self,
        event_type: EventType,
        message: str,
        severity: Severity = Severity.INFO,
    ) -> HistoryEvent:
        timestamp = self.clock()
        return HistoryEvent(
            id=self.next_id(timestamp),
            timestamp=timestamp,
            type=event_type,
            message=message,
            severity=severity,
        )

    def sample(self, pressure: float, target: float) -> PressureSample:
        return PressureSample(time=self.clock(), pressure=pressure, target=target)


default_factory = EventFactory()


class _BoundedRing:
    """Immutable-by-convention fixed-capacity sequence."""

    def __init__(self, capacity: int, entries: Iterable = ()):
        if capacity < 1:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: Deque = deque(entries, maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator:
        return iter(self._entries)

    def __getitem__(self, index: int):
        return self._entries[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self.capacity == other.capacity and self._entries == other._entries

    def __hash__(self) -> int:
        return hash((self.capacity, tuple(self._entries)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(capacity={self.capacity}, size={len(self)})"

    def to_list(self) -> list:
        return list(self._entries)


class EventLog(_BoundedRing):
    """
    Newest-first operational history.

    Index 0 is always the most recent event. Pushing onto a full log drops
    the oldest event.
    """

    def __init__(self, entries: Iterable[HistoryEvent] = (), capacity: int = HISTORY_CAPACITY):
        # Newest entries lead; keep the head, not the tail
        super().__init__(capacity, itertools.islice(entries, max(capacity, 0)))

    def push(self, event: HistoryEvent) -> "EventLog":
        """Return a new log with event inserted at the front."""
        log = EventLog(self._entries, self.capacity)
        # appendleft on a full deque discards from the right (oldest)
        log._entries.appendleft(event)
        return log

    def extend_newest(self, events: Iterable[HistoryEvent]) -> "EventLog":
        """Push several events in chronological order (last ends up first)."""
        log = self
        for event in events:
            log = log.push(event)
        return log

    @property
    def newest(self) -> Optional[HistoryEvent]:
        return self._entries[0] if self._entries else None


class PressureTrend(_BoundedRing):
    """Chronological surface-pressure trend (newest last)."""

    def __init__(self, samples: Iterable[PressureSample] = (), capacity: int = TREND_CAPACITY):
        super().__init__(capacity, samples)

    def append(self, sample: PressureSample) -> "PressureTrend":
        """Return a new trend with sample added at the end."""
        trend = PressureTrend(self._entries, self.capacity)
        trend._entries.append(sample)
        return trend

    @property
    def latest(self) -> Optional[PressureSample]:
        return self._entries[-1] if self._entries else None
