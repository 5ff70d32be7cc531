"""
Well-Control Simulator Core Package
===================================

Deterministic kill-sheet calculator and tick-driven well-control state
machine.

This package provides:
- Configuration: Static well and rig data with validation
- Hydraulics: Kill mud weight, ICP/FCP, MAASP, volumes, strokes, CO2e
- Thermodynamics: Thermal gradient, combined gas law, equipment derating
- Events: Bounded operational log and pressure trend
- State machine: Pure transition function over an immutable state
- Physics: Per-tick winch, pump, stripping and gas migration update

USAGE EXAMPLE
=============

```python
from wc_simulator.core import (
    WellConfiguration, calculate, initial_state, transition,
    SetMode, SetStatus, Tick, SimulationMode, SimStatus,
)

config = WellConfiguration(sidpp=600.0)
config.validate()
results = calculate(config)

state = transition(initial_state(), SetMode(SimulationMode.GAS_MIGRATION, config))
state = transition(state, SetStatus(SimStatus.RUNNING))

for _ in range(100):
    state = transition(state, Tick(results, config))

print(state.surface_pressure, state.gas_depth)
```

PURE CORE
=========

Nothing in this package owns a timer, a thread or a socket. Periodic ticks
are issued by a session controller (see wc_simulator.session); rendering and
transport live in outer layers.

Run validation: `python -m wc_simulator.core` or call `run_all_validations()`

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

# Configuration
from .config import ConfigurationError, FluidType, RigPowerSource, WellConfiguration

# Hydraulic calculator
from .hydraulics import (
    CalculationResults,
    EmissionsBreakdown,
    calculate,
    current_bhp,
    is_maasp_breached,
    validate_hydraulics,
)

# Thermodynamics
from .thermodynamics import equipment_efficiency, validate_thermodynamics

# Event log
from .events import (
    EventFactory,
    EventLog,
    EventType,
    HistoryEvent,
    PressureSample,
    PressureTrend,
    Severity,
)

# State and actions
from .state import (
    SimStatus,
    SimulationMode,
    SimulationState,
    Valve,
    ValveState,
    WinchDirection,
    initial_state,
)
from .actions import (
    Action,
    BleedPressure,
    EmergencySequence,
    LogEvent,
    SetChokePosition,
    SetCircRate,
    SetMillSpeed,
    SetMode,
    SetSpeed,
    SetStatus,
    SetWinchDirection,
    SetWinchSpeed,
    Tick,
    ToggleDrawworks,
    ToggleRotation,
    ToggleValve,
)

# State machine
from .machine import transition, validate_state_machine

__all__ = [
    # Configuration
    "WellConfiguration",
    "ConfigurationError",
    "FluidType",
    "RigPowerSource",
    # Calculator
    "CalculationResults",
    "EmissionsBreakdown",
    "calculate",
    "current_bhp",
    "is_maasp_breached",
    "equipment_efficiency",
    # Events
    "EventFactory",
    "EventLog",
    "EventType",
    "HistoryEvent",
    "PressureSample",
    "PressureTrend",
    "Severity",
    # State
    "SimStatus",
    "SimulationMode",
    "SimulationState",
    "Valve",
    "ValveState",
    "WinchDirection",
    "initial_state",
    # Actions
    "Action",
    "BleedPressure",
    "EmergencySequence",
    "LogEvent",
    "SetChokePosition",
    "SetCircRate",
    "SetMillSpeed",
    "SetMode",
    "SetSpeed",
    "SetStatus",
    "SetWinchDirection",
    "SetWinchSpeed",
    "Tick",
    "ToggleDrawworks",
    "ToggleRotation",
    "ToggleValve",
    # State machine
    "transition",
    # Validation functions
    "validate_hydraulics",
    "validate_thermodynamics",
    "validate_state_machine",
]


def run_all_validations():
    """
    Run all core validation checks.

    This should be run after any code changes to ensure the kill sheet and
    the transition rules still match the worked examples.
    """
    print("Running Well-Control Core Validation Suite")
    print("=" * 70)

    print("\n1. Hydraulics...")
    validate_hydraulics()

    print("\n2. Thermodynamics...")
    validate_thermodynamics()

    print("\n3. State Machine...")
    validate_state_machine()

    print("\n" + "=" * 70)
    print("ALL VALIDATIONS PASSED ✓")
    print("=" * 70)


if __name__ == "__main__":
    run_all_validations()
