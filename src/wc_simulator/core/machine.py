"""
Simulation State Machine
========================

Pure transition function over SimulationState:

    new_state = transition(state, action)

Every action maps to exactly one transition rule. Transitions never mutate
their input and never raise for a well-typed action; an unknown action
returns the state unchanged.

Events are inserted at the front of the history and the log is bounded to
the 100 most recent entries.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Type

from . import actions as act
from .events import EventFactory, EventType, Severity, default_factory
from .hydraulics import initial_bottom_hole_pressure
from .physics import tick
from .state import (
    NOMINAL_MILL_SPEED,
    STRIPPING_START_DEPTH,
    SimStatus,
    SimulationMode,
    SimulationState,
    Valve,
    WinchDirection,
    initial_state,
)

logger = logging.getLogger(__name__)


def _log(
    state: SimulationState,
    factory: EventFactory,
    event_type: EventType,
    message: str,
    severity: Severity = Severity.INFO,
) -> SimulationState:
    return replace(
        state, history=state.history.push(factory.create(event_type, message, severity))
    )


def _set_status(state, action: act.SetStatus, factory):
    severity = Severity.SUCCESS if action.status is SimStatus.RUNNING else Severity.WARNING
    logger.info(f"Simulation status: {state.status.value} -> {action.status.value}")
    return _log(
        replace(state, status=action.status),
        factory,
        EventType.SYSTEM,
        f"Simulation {action.status.value.lower()}.",
        severity,
    )


def _set_mode(state, action: act.SetMode, factory):
    config = action.config
    mode = action.mode
    pressurised = mode in (SimulationMode.GAS_MIGRATION, SimulationMode.STRIPPING)

    fresh = replace(
        initial_state(factory),
        mode=mode,
        status=SimStatus.READY,
        initial_bhp=initial_bottom_hole_pressure(config),
        surface_pressure=config.sidpp if pressurised else 0.0,
        gas_depth=config.tvd if mode is SimulationMode.GAS_MIGRATION else 0.0,
        tool_depth=STRIPPING_START_DEPTH if mode is SimulationMode.STRIPPING else 0.0,
    )
    logger.info(f"Mode set to {mode.value}, initial BHP {fresh.initial_bhp:.0f} psi")
    return _log(
        fresh,
        factory,
        EventType.SYSTEM,
        f"Wellbore profile updated: {mode.label} method engaged.",
    )


def _set_speed(state, action: act.SetSpeed, factory):
    return replace(state, speed=action.value)


def _set_winch_speed(state, action: act.SetWinchSpeed, factory):
    return replace(state, winch_speed=action.value)


def _set_choke_position(state, action: act.SetChokePosition, factory):
    return replace(state, choke_position=min(100.0, max(0.0, action.value)))


def _set_winch_direction(state, action: act.SetWinchDirection, factory):
    return replace(
        state,
        winch_direction=action.direction,
        rig_floor=state.rig_floor.with_winch(action.direction),
    )


def _set_mill_speed(state, action: act.SetMillSpeed, factory):
    return replace(
        state,
        mill_speed=action.value,
        rig_floor=state.rig_floor.with_mill(action.value),
    )


def _set_circ_rate(state, action: act.SetCircRate, factory):
    return replace(state, circ_rate=action.value)


def _toggle_valve(state, action: act.ToggleValve, factory):
    valves = state.valves.toggled(action.valve)
    new_state = valves.state_of(action.valve)
    return _log(
        replace(state, valves=valves),
        factory,
        EventType.OPS,
        f"{action.valve.value} valve state change: {new_state.value}",
    )


def _toggle_drawworks(state, action: act.ToggleDrawworks, factory):
    direction = (
        WinchDirection.NONE
        if state.winch_direction is WinchDirection.IN
        else WinchDirection.IN
    )
    return replace(
        state,
        winch_direction=direction,
        rig_floor=state.rig_floor.with_winch(direction),
    )


def _toggle_rotation(state, action: act.ToggleRotation, factory):
    mill_speed = 0.0 if state.mill_speed > 0 else NOMINAL_MILL_SPEED
    return replace(
        state,
        mill_speed=mill_speed,
        rig_floor=state.rig_floor.with_mill(mill_speed),
    )


def _bleed_pressure(state, action: act.BleedPressure, factory):
    return _log(
        replace(state, surface_pressure=max(0.0, state.surface_pressure - action.amount)),
        factory,
        EventType.VOLUMETRIC,
        f"Pressure bleed successful: {action.amount:g} PSI reduction verified.",
    )


def _emergency_sequence(state, action: act.EmergencySequence, factory):
    pipe_present = state.string_in_hole
    ram = Valve.PIPE_RAM if pipe_present else Valve.BLIND_RAM
    verified = "Pipe Rams verified closed." if pipe_present else "Blind Rams verified closed."

    logger.warning(f"Emergency shut-down: annular and {ram.value} closed")
    return _log(
        replace(
            state,
            status=SimStatus.PAUSED,
            valves=state.valves.closed(Valve.ANNULAR, ram),
        ),
        factory,
        EventType.EMERGENCY,
        f"ESD TRIGGERED: Wellbore secured. {verified}",
        Severity.DANGER,
    )


def _tick(state, action: act.Tick, factory):
    return tick(state, action.results, action.config, factory)


def _log_event(state, action: act.LogEvent, factory):
    return _log(state, factory, action.event_type, action.message, action.severity)


_HANDLERS: Dict[Type, Callable] = {
    act.SetStatus: _set_status,
    act.SetMode: _set_mode,
    act.SetSpeed: _set_speed,
    act.SetWinchSpeed: _set_winch_speed,
    act.SetChokePosition: _set_choke_position,
    act.SetWinchDirection: _set_winch_direction,
    act.SetMillSpeed: _set_mill_speed,
    act.SetCircRate: _set_circ_rate,
    act.ToggleValve: _toggle_valve,
    act.ToggleDrawworks: _toggle_drawworks,
    act.ToggleRotation: _toggle_rotation,
    act.BleedPressure: _bleed_pressure,
    act.EmergencySequence: _emergency_sequence,
    act.Tick: _tick,
    act.LogEvent: _log_event,
}


def transition(
    state: SimulationState,
    action: "act.Action",
    factory: EventFactory = default_factory,
) -> SimulationState:
    """
    Apply one action to a state.

    Args:
        state: Current state (not modified)
        action: Command to apply
        factory: Event/sample factory (clock and identifiers)

    Returns:
        New state; the same object for no-op transitions
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.warning(f"Ignoring unknown action: {type(action).__name__}")
        return state
    return handler(state, action, factory)


def validate_state_machine() -> None:
    """
    Validate core transition rules on the default well.

    Tests:
    1. SetMode full reset (gas migration starts at TVD under SIDPP)
    2. Ticks are dropped unless RUNNING
    3. Closed-choke migration builds pressure until the MAASP interlock trips
    4. Emergency sequence secures the well and pauses
    """
    from .config import WellConfiguration
    from .hydraulics import calculate

    config = WellConfiguration()
    results = calculate(config)

    # Test 1: Mode reset
    state = transition(initial_state(), act.SetMode(SimulationMode.GAS_MIGRATION, config))
    if state.gas_depth != config.tvd or state.surface_pressure != config.sidpp:
        raise AssertionError("Gas migration profile not initialised")

    # Test 2: Suspended ticks
    if transition(state, act.Tick(results, config)) is not state:
        raise AssertionError("Tick must be a no-op while READY")

    # Test 3: Interlock
    state = transition(state, act.SetStatus(SimStatus.RUNNING))
    for _ in range(10000):
        state = transition(state, act.Tick(results, config))
        if state.status is not SimStatus.RUNNING:
            break
    if state.status is not SimStatus.PAUSED:
        raise AssertionError("MAASP interlock never engaged")
    if state.history.newest.type is not EventType.ALARM:
        raise AssertionError("MAASP alarm not recorded")

    # Test 4: ESD
    state = transition(state, act.EmergencySequence())
    if not (state.valves.is_closed(Valve.ANNULAR) and state.valves.is_closed(Valve.BLIND_RAM)):
        raise AssertionError("ESD did not secure the wellbore")

    print("✓ All state machine validations passed")
