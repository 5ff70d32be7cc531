"""
Simulation State
================

The mutable operational state of the well-control trainer, modelled as an
immutable snapshot that is replaced wholesale on every transition.

STATE GROUPS
============

- Lifecycle: status, mode, speed multiplier
- Pressures: surface pressure, target pressure, initial BHP
- Gas influx: bubble depth and volume
- Workstring: tool depth, hook-load forces, winch, mill, circulation, pump strokes
- Valve bank: choke, kill, annular, pipe ram, shear ram, blind ram
- Rig floor mirror: drawworks, top drive, rotary table
- History: event log (newest first) and pressure trend (oldest first)

STATUS LIFECYCLE
================

READY --SetStatus(RUNNING)--> RUNNING
RUNNING --SetStatus(PAUSED) or MAASP breach--> PAUSED
PAUSED --SetStatus(RUNNING)--> RUNNING
any --SetMode--> READY
any --EmergencySequence--> PAUSED

The state never resumes itself.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from .events import (
    EventFactory,
    EventLog,
    EventType,
    PressureTrend,
    Severity,
    default_factory,
)


# Initial profile constants
BASE_GAS_VOLUME = 10.0  # [bbl] Initial influx volume
INITIAL_GAS_DEPTH = 8000.0  # [ft]
INITIAL_TARGET_PRESSURE = 3500.0  # [psi]
INITIAL_WINCH_SPEED = 100.0  # [ft/min]
SLICKLINE_TOOL_WEIGHT_LBS = 450.0  # [lbf]
NOMINAL_MILL_SPEED = 60.0  # [rpm]
STRIPPING_START_DEPTH = 500.0  # [ft]


class SimStatus(Enum):
    """Simulation lifecycle status."""

    READY = "READY"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"


class SimulationMode(Enum):
    """Operational scenario being trained."""

    STANDARD_KILL = "STANDARD_KILL"
    GAS_MIGRATION = "GAS_MIGRATION"
    STRIPPING = "STRIPPING"
    INTERVENTION_PRESSURE_TEST = "INTERVENTION_PRESSURE_TEST"
    SLICKLINE_OPERATION = "SLICKLINE_OPERATION"
    WIRELINE_OPERATION = "WIRELINE_OPERATION"
    COILED_TUBING_MILLING = "COILED_TUBING_MILLING"
    SNUBBING_OPERATION = "SNUBBING_OPERATION"
    MPD_CONTROL = "MPD_CONTROL"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class ValveState(Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

    def toggled(self) -> "ValveState":
        return ValveState.CLOSED if self is ValveState.OPEN else ValveState.OPEN


class Valve(Enum):
    """Independently operated BOP stack and manifold valves."""

    CHOKE = "choke"
    KILL = "kill"
    ANNULAR = "annular"
    PIPE_RAM = "pipe_ram"
    SHEAR_RAM = "shear_ram"
    BLIND_RAM = "blind_ram"


class WinchDirection(Enum):
    IN = "IN"  # Running in hole (depth increases)
    OUT = "OUT"  # Pulling out of hole
    NONE = "NONE"


class Drawworks(Enum):
    ENGAGED = "ENGAGED"
    DISENGAGED = "DISENGAGED"


class TopDrive(Enum):
    ACTIVE = "ACTIVE"
    IDLE = "IDLE"


class RotaryTable(Enum):
    ROTATING = "ROTATING"
    STATIONARY = "STATIONARY"


@dataclass(frozen=True)
class ValveBank:
    """Open/closed state of the six valves."""

    choke: ValveState = ValveState.CLOSED
    kill: ValveState = ValveState.CLOSED
    annular: ValveState = ValveState.OPEN
    pipe_ram: ValveState = ValveState.OPEN
    shear_ram: ValveState = ValveState.OPEN
    blind_ram: ValveState = ValveState.OPEN

    def state_of(self, valve: Valve) -> ValveState:
        return getattr(self, valve.value)

    def is_closed(self, valve: Valve) -> bool:
        return self.state_of(valve) is ValveState.CLOSED

    def toggled(self, valve: Valve) -> "ValveBank":
        return replace(self, **{valve.value: self.state_of(valve).toggled()})

    def closed(self, *valves: Valve) -> "ValveBank":
        return replace(self, **{v.value: ValveState.CLOSED for v in valves})


@dataclass(frozen=True)
class RigFloor:
    """Rig-floor equipment mirror, kept consistent with winch and mill."""

    drawworks: Drawworks = Drawworks.DISENGAGED
    top_drive: TopDrive = TopDrive.IDLE
    rotary_table: RotaryTable = RotaryTable.STATIONARY

    def with_winch(self, direction: WinchDirection) -> "RigFloor":
        drawworks = (
            Drawworks.ENGAGED
            if direction is not WinchDirection.NONE
            else Drawworks.DISENGAGED
        )
        return replace(self, drawworks=drawworks)

    def with_mill(self, mill_speed: float) -> "RigFloor":
        rotating = mill_speed > 0
        return replace(
            self,
            top_drive=TopDrive.ACTIVE if rotating else TopDrive.IDLE,
            rotary_table=RotaryTable.ROTATING if rotating else RotaryTable.STATIONARY,
        )


def _boot_history(factory: EventFactory = default_factory) -> EventLog:
    return EventLog().push(
        factory.create(EventType.SYSTEM, "Core systems online.", Severity.INFO)
    )


@dataclass(frozen=True)
class SimulationState:
    """
    Complete snapshot of the simulator at one instant.

    Never mutated in place: transitions build a new instance with
    dataclasses.replace().
    """

    status: SimStatus = SimStatus.READY
    mode: SimulationMode = SimulationMode.STANDARD_KILL
    speed: float = 1.0  # Global simulation time multiplier

    # Pressures
    surface_pressure: float = 0.0  # [psi]
    target_pressure: float = INITIAL_TARGET_PRESSURE  # [psi]
    initial_bhp: float = 0.0  # [psi] Captured at mode initialisation

    # Gas influx
    gas_depth: float = INITIAL_GAS_DEPTH  # [ft] Top of the bubble
    gas_volume: float = BASE_GAS_VOLUME  # [bbl]

    # Workstring and hook load
    tool_depth: float = 0.0  # [ft]
    indicated_weight: float = SLICKLINE_TOOL_WEIGHT_LBS  # [lbf]
    upward_force: float = 0.0  # [lbf]
    downward_force: float = SLICKLINE_TOOL_WEIGHT_LBS  # [lbf]
    winch_direction: WinchDirection = WinchDirection.NONE
    winch_speed: float = INITIAL_WINCH_SPEED  # [ft/min]
    mill_speed: float = 0.0  # [rpm]
    circ_rate: float = 0.0  # [bbl/min]
    choke_position: float = 0.0  # [%] 0 = shut, 100 = fully open
    current_strokes: float = 0.0

    # Equipment
    valves: ValveBank = field(default_factory=ValveBank)
    rig_floor: RigFloor = field(default_factory=RigFloor)

    # History
    history: EventLog = field(default_factory=_boot_history)
    pressure_history: PressureTrend = field(default_factory=PressureTrend)

    @property
    def is_running(self) -> bool:
        return self.status is SimStatus.RUNNING

    @property
    def string_in_hole(self) -> bool:
        return self.tool_depth > 0


def initial_state(factory: EventFactory = default_factory) -> SimulationState:
    """Global initial profile: READY, standard kill, all rams open."""
    return SimulationState(history=_boot_history(factory))
