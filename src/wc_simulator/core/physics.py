"""
Physics Tick Engine
===================

Per-tick numerical update of the well-control simulator.

The tick is explicit, fixed-step integration driven by an external timer
(nominal 100 ms). It executes only while the simulation is RUNNING; ticks
that arrive in READY or PAUSED are dropped, not queued.

ORDER WITHIN ONE TICK
=====================

1. Equipment efficiency derate from ambient temperature
2. MAASP interlock (pre-tick surface pressure vs. MAASP)
3. Winch depth integration, clamped to [0, TVD]
4. Pump stroke accumulation (standard kill)
5. Stripping force balance (stripping)
6. Gas migration thermodynamics (gas migration, while gas is below surface)
7. Pressure trend sample

INTERLOCK
=========

A MAASP breach sets status to PAUSED and records an ALARM event. The
breach does not abort the tick that detects it: movement computed in the
same tick still applies. Subsequent ticks are suppressed because the
status is no longer RUNNING. The interlock is never auto-cleared.

STRIPPING FORCE BALANCE
=======================

   F_down = D_tool * w_pipe * BF         (buoyed string weight)
   F_up   = P_surface * A_pipe           (well pressure on the pipe end)
   W_ind  = F_down - F_up -/+ F_friction (running in / pulling out)

GAS MIGRATION
=============

The bubble rises at a fixed base rate scaled by the speed multiplier.

- Choke closed: the gas cannot expand; surface pressure builds by the
  hydrostatic of the column the bubble has risen through.
- Choke open: pressure is bled through the choke and the bubble expands
  by the combined gas law using absolute pressure and temperature.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import logging
from dataclasses import replace

import numpy as np

from .config import WellConfiguration
from .events import EventFactory, EventType, Severity, default_factory
from .hydraulics import CalculationResults, buoyancy_factor, pressure_gradient
from .state import SimStatus, SimulationMode, SimulationState, Valve, WinchDirection
from .thermodynamics import (
    absolute_pressure_at_depth,
    combined_gas_law,
    equipment_efficiency,
    fahrenheit_to_rankine,
    temperature_at_depth,
)

logger = logging.getLogger(__name__)


# Stripping operation constants
PIPE_AREA_SQIN = 15.9  # [in²] Closed-end pipe cross-section
PIPE_WEIGHT_LBF_FT = 16.6  # [lbf/ft] Nominal drill pipe weight
STRIPPING_FRICTION_LBF = 7500.0  # [lbf] Annular element drag

# Gas migration constants
GAS_MIGRATION_BASE_SPEED = 1.25  # [ft/tick] at speed 1.0
CHOKE_BLEED_RATE_PSI = 150.0  # [psi/tick] at 100 % choke, speed 1.0

# Pump
STROKES_PER_TICK = 10.0  # at speed 1.0

MAASP_ALARM_MESSAGE = "MAASP BREACH DETECTED. AUTO-LOCK ENGAGED."


def integrate_depth(
    state: SimulationState, config: WellConfiguration, efficiency: float
) -> float:
    """
    Advance tool depth by one tick of winch travel.

    velocity = (winch_speed / 60) * speed * efficiency  [ft/tick]

    Returns:
        New tool depth [ft], clamped to [0, TVD]
    """
    if state.winch_direction is WinchDirection.NONE:
        return state.tool_depth

    velocity = (state.winch_speed / 60.0) * state.speed * efficiency
    if state.winch_direction is WinchDirection.OUT:
        velocity = -velocity

    return float(np.clip(state.tool_depth + velocity, 0.0, config.tvd))


def stripping_forces(
    tool_depth: float,
    surface_pressure: float,
    winch_direction: WinchDirection,
    mud_weight: float,
):
    """
    Hook-load force balance while stripping through a closed annular.

    Args:
        tool_depth: String depth [ft]
        surface_pressure: Wellhead pressure [psi]
        winch_direction: Direction of travel
        mud_weight: Current mud weight [ppg]

    Returns:
        Tuple (indicated_weight, upward_force, downward_force) [lbf]
    """
    downward = tool_depth * PIPE_WEIGHT_LBF_FT * buoyancy_factor(mud_weight)
    upward = surface_pressure * PIPE_AREA_SQIN
    friction = STRIPPING_FRICTION_LBF if winch_direction is not WinchDirection.NONE else 0.0

    resultant = downward - upward
    if winch_direction is WinchDirection.IN:
        indicated = resultant - friction
    elif winch_direction is WinchDirection.OUT:
        indicated = resultant + friction
    else:
        indicated = resultant

    return indicated, upward, downward


def migrate_gas(
    state: SimulationState, config: WellConfiguration, efficiency: float
):
    """
    Advance the gas bubble by one tick.

    Args:
        state: Pre-tick state
        config: Well configuration
        efficiency: Equipment derate for this tick

    Returns:
        Tuple (gas_depth, gas_volume, surface_pressure) after the tick
    """
    mud_gradient = pressure_gradient(config.current_mud_weight)
    migration_rate = GAS_MIGRATION_BASE_SPEED * state.speed

    prev_depth = state.gas_depth
    next_depth = max(0.0, prev_depth - migration_rate)

    # Thermal gradient at the bubble before and after the step
    prev_temp = temperature_at_depth(prev_depth, config)
    next_temp = temperature_at_depth(next_depth, config)

    p1_abs = absolute_pressure_at_depth(
        state.surface_pressure, config.current_mud_weight, prev_depth, config.atm_pressure
    )

    gas_volume = state.gas_volume
    surface_pressure = state.surface_pressure

    if state.valves.is_closed(Valve.CHOKE):
        # Trapped gas: no expansion path, pressure builds at surface
        surface_pressure += migration_rate * mud_gradient
    else:
        bleed = (state.choke_position / 100.0) * CHOKE_BLEED_RATE_PSI * state.speed * efficiency
        target_surface = max(0.0, state.surface_pressure - bleed)
        p2_abs = absolute_pressure_at_depth(
            target_surface, config.current_mud_weight, next_depth, config.atm_pressure
        )

        new_volume = combined_gas_law(
            state.gas_volume,
            p1_abs,
            p2_abs,
            fahrenheit_to_rankine(prev_temp),
            fahrenheit_to_rankine(next_temp),
        )
        if new_volume is not None:
            gas_volume = new_volume
            surface_pressure = target_surface
        else:
            logger.debug(
                f"Gas law skipped: P1={p1_abs:.1f} psia, P2={p2_abs:.1f} psia"
            )

    return next_depth, gas_volume, surface_pressure


def tick(
    state: SimulationState,
    results: CalculationResults,
    config: WellConfiguration,
    factory: EventFactory = default_factory,
) -> SimulationState:
    """
    Apply one physics tick.

    Args:
        state: Current simulation state
        results: Hydraulic benchmarks for the current configuration
        config: Current well configuration
        factory: Event/sample factory (clock and identifiers)

    Returns:
        New state, or the same object when status is not RUNNING
    """
    if state.status is not SimStatus.RUNNING:
        return state

    # 1. Equipment derate
    efficiency = equipment_efficiency(config.ambient_temp)

    # 2. MAASP interlock
    status = state.status
    history = state.history
    if state.surface_pressure > results.maasp:
        status = SimStatus.PAUSED
        history = history.push(
            factory.create(EventType.ALARM, MAASP_ALARM_MESSAGE, Severity.DANGER)
        )
        logger.warning(
            f"MAASP breach: surface {state.surface_pressure:.0f} psi > "
            f"MAASP {results.maasp:.0f} psi, simulation paused"
        )

    # 3. Winch travel
    tool_depth = integrate_depth(state, config, efficiency)

    # 4. Pump strokes
    strokes = state.current_strokes
    if state.mode is SimulationMode.STANDARD_KILL:
        strokes += STROKES_PER_TICK * state.speed * efficiency

    # 5. Stripping
    indicated_weight = state.indicated_weight
    upward_force = state.upward_force
    downward_force = state.downward_force
    if state.mode is SimulationMode.STRIPPING:
        indicated_weight, upward_force, downward_force = stripping_forces(
            tool_depth,
            state.surface_pressure,
            state.winch_direction,
            config.current_mud_weight,
        )

    # 6. Gas migration
    gas_depth = state.gas_depth
    gas_volume = state.gas_volume
    surface_pressure = state.surface_pressure
    if state.mode is SimulationMode.GAS_MIGRATION and state.gas_depth > 0:
        gas_depth, gas_volume, surface_pressure = migrate_gas(state, config, efficiency)

    # 7. Trend sample
    pressure_history = state.pressure_history.append(
        factory.sample(surface_pressure, state.target_pressure)
    )

    return replace(
        state,
        status=status,
        tool_depth=tool_depth,
        current_strokes=strokes,
        indicated_weight=indicated_weight,
        upward_force=upward_force,
        downward_force=downward_force,
        gas_depth=gas_depth,
        gas_volume=gas_volume,
        surface_pressure=surface_pressure,
        history=history,
        pressure_history=pressure_history,
    )
