"""
Simulation Actions
==================

Commands accepted by the state machine. Each action is a small frozen
dataclass; the union of all of them is the Action type consumed by
machine.transition().

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from dataclasses import dataclass
from typing import Union

from .config import WellConfiguration
from .events import EventType, Severity
from .hydraulics import CalculationResults
from .state import SimStatus, SimulationMode, Valve, WinchDirection


@dataclass(frozen=True)
class SetStatus:
    status: SimStatus


@dataclass(frozen=True)
class SetMode:
    mode: SimulationMode
    config: WellConfiguration


@dataclass(frozen=True)
class SetSpeed:
    value: float


@dataclass(frozen=True)
class SetWinchSpeed:
    value: float  # [ft/min]


@dataclass(frozen=True)
class SetChokePosition:
    value: float  # [%]


@dataclass(frozen=True)
class SetWinchDirection:
    direction: WinchDirection


@dataclass(frozen=True)
class SetMillSpeed:
    value: float  # [rpm]


@dataclass(frozen=True)
class SetCircRate:
    value: float  # [bbl/min]


@dataclass(frozen=True)
class ToggleValve:
    valve: Valve


@dataclass(frozen=True)
class ToggleDrawworks:
    pass


@dataclass(frozen=True)
class ToggleRotation:
    pass


@dataclass(frozen=True)
class BleedPressure:
    amount: float  # [psi]


@dataclass(frozen=True)
class EmergencySequence:
    pass


@dataclass(frozen=True)
class Tick:
    """Periodic physics update, issued by the session timer."""

    results: CalculationResults
    config: WellConfiguration


@dataclass(frozen=True)
class LogEvent:
    """Caller-driven annotation of the event log."""

    message: str
    severity: Severity = Severity.INFO
    event_type: EventType = EventType.SYSTEM


Action = Union[
    SetStatus,
    SetMode,
    SetSpeed,
    SetWinchSpeed,
    SetChokePosition,
    SetWinchDirection,
    SetMillSpeed,
    SetCircRate,
    ToggleValve,
    ToggleDrawworks,
    ToggleRotation,
    BleedPressure,
    EmergencySequence,
    Tick,
    LogEvent,
]
