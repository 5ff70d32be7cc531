"""
Hydraulic Calculator
====================

Steady-state well-control benchmarks derived from static well data.

This module is stateless: every result is a pure function of the
WellConfiguration and is recomputed whenever the configuration changes.

THEORETICAL FOUNDATION
=====================

1. Hydrostatic pressure (oilfield units):
   P_h = 0.052 * MW * TVD

   Where:
   - P_h: Hydrostatic pressure [psi]
   - MW: Mud weight [ppg]
   - TVD: True vertical depth [ft]
   - 0.052: Conversion constant [psi/(ppg·ft)]

2. Kill mud weight (balances formation pressure):
   KMW = MW + SIDPP / (0.052 * TVD)

3. Circulating pressures (Wait & Weight method):
   ICP = SIDPP + SCR
   FCP = SCR * (KMW / MW)

4. Maximum Allowable Annular Surface Pressure:
   MAASP = (LOT_MW - MW) * 0.052 * Shoe_TVD

5. Drill-pipe pressure schedule:
   Linear step-down from ICP at surface to FCP when kill mud reaches the bit.

EMISSIONS ESTIMATE
==================

CO2e = power + fluid + weighting agent, with:
- power = duration * factor(rig power source)      [kg/h]
- fluid = total volume * factor(fluid type)         [kg/bbl]
- weight = total volume * max(0, MW - 8.33) * 0.15  [kg/(ppg·bbl)]

8.33 ppg is fresh water: only the density above water needs barite.

PRECONDITIONS
=============

No error handling happens here. Zero mud weight or TVD makes KMW and FCP
undefined; callers must run WellConfiguration.validate() first.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import math
from dataclasses import dataclass
from typing import Dict, Tuple

from .config import WellConfiguration, FluidType, RigPowerSource


# Oilfield constants
PRESSURE_GRADIENT_CONSTANT = 0.052  # [psi/(ppg·ft)]
STEEL_DENSITY_PPG = 65.5  # [ppg] Used for buoyancy factor
FRESH_WATER_PPG = 8.33  # [ppg]
PUMP_OUTPUT = 0.119  # [bbl/stroke] Triplex pump output
GREASE_INJECTION_MARGIN_PSI = 500.0  # [psi] Above wellhead pressure
SCHEDULE_STEPS = 10  # Intervals in the drill-pipe pressure schedule

# Emission factors [kg CO2e]
POWER_EMISSION_FACTORS: Dict[RigPowerSource, float] = {
    RigPowerSource.DIESEL: 35.5,  # [kg/h]
    RigPowerSource.HYBRID: 22.0,  # [kg/h]
    RigPowerSource.GRID: 5.5,  # [kg/h] Average grid carbon intensity
}
FLUID_EMISSION_FACTORS: Dict[FluidType, float] = {
    FluidType.WBM: 0.8,  # [kg/bbl] Embodied carbon, water-based mud
    FluidType.OBM: 4.5,  # [kg/bbl] Embodied carbon, oil-based mud
}
WEIGHTING_AGENT_FACTOR = 0.15  # [kg/(ppg·bbl)] Barite intensity


@dataclass(frozen=True)
class EmissionsBreakdown:
    """CO2-equivalent estimate split by source [kg]."""

    power: float
    fluid: float
    weight: float

    @property
    def total(self) -> float:
        return self.power + self.fluid + self.weight


@dataclass(frozen=True)
class CalculationResults:
    """
    Kill-sheet benchmarks for one configuration.

    Pure function of WellConfiguration - no hidden state.
    """

    kill_mud_weight: float  # [ppg]
    icp: float  # [psi] Initial circulating pressure
    fcp: float  # [psi] Final circulating pressure
    maasp: float  # [psi]
    drill_string_volume: float  # [bbl]
    annulus_volume: float  # [bbl]
    total_volume: float  # [bbl]
    strokes_to_bit: int
    pressure_schedule: Tuple[Tuple[float, float], ...]  # (strokes, psi)
    co2e_total: float  # [kg]
    co2e_breakdown: EmissionsBreakdown


def _round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def pressure_gradient(mud_weight: float) -> float:
    """Mud pressure gradient [psi/ft]."""
    return PRESSURE_GRADIENT_CONSTANT * mud_weight


def hydrostatic_pressure(mud_weight: float, tvd: float) -> float:
    """Hydrostatic pressure of a mud column [psi]."""
    return pressure_gradient(mud_weight) * tvd


def buoyancy_factor(mud_weight: float) -> float:
    """
    Buoyancy factor for steel tubulars immersed in mud.

    BF = 1 - MW / 65.5
    """
    return 1.0 - mud_weight / STEEL_DENSITY_PPG


def kill_mud_weight(config: WellConfiguration) -> float:
    """Mud weight required to balance formation pressure [ppg]."""
    return config.current_mud_weight + config.sidpp / (
        PRESSURE_GRADIENT_CONSTANT * config.tvd
    )


def maasp(config: WellConfiguration) -> float:
    """
    Maximum Allowable Annular Surface Pressure [psi].

    Depends only on leak-off test mud weight, current mud weight and shoe TVD.
    """
    return (
        (config.leak_off_test_mw - config.current_mud_weight)
        * PRESSURE_GRADIENT_CONSTANT
        * config.shoe_tvd
    )


def formation_pressure(config: WellConfiguration) -> float:
    """Formation pressure at TVD: drill-pipe hydrostatic plus SIDPP [psi]."""
    return hydrostatic_pressure(config.current_mud_weight, config.tvd) + config.sidpp


def initial_bottom_hole_pressure(config: WellConfiguration) -> float:
    """Bottom-hole pressure snapshot taken when a mode is initialised [psi]."""
    return formation_pressure(config)


def equivalent_mud_weight(config: WellConfiguration) -> float:
    """Equivalent mud weight at the shoe under shut-in casing pressure [ppg]."""
    return config.current_mud_weight + config.sicp / (
        PRESSURE_GRADIENT_CONSTANT * config.shoe_tvd
    )


def grease_injection_margin(wellhead_pressure: float) -> float:
    """Minimum grease injection pressure for wireline/slickline seals [psi]."""
    return wellhead_pressure + GREASE_INJECTION_MARGIN_PSI


def snubbing_balance_point(
    wellhead_pressure: float, pipe_area_sqin: float, tool_weight_lbs: float
) -> float:
    """
    Snubbing balance ratio: pressure force over string weight.

    Values above 1.0 mean the well pushes the string out (pipe-light).
    """
    if tool_weight_lbs <= 0:
        return math.inf
    return wellhead_pressure * pipe_area_sqin / tool_weight_lbs


def pressure_schedule(
    icp: float, fcp: float, strokes_to_bit: int, steps: int = SCHEDULE_STEPS
) -> Tuple[Tuple[float, float], ...]:
    """
    Drill-pipe pressure step-down schedule from ICP to FCP.

    Args:
        icp: Initial circulating pressure [psi]
        fcp: Final circulating pressure [psi]
        strokes_to_bit: Pump strokes for kill mud to reach the bit
        steps: Number of intervals (steps + 1 points)

    Returns:
        Tuple of (strokes, pressure) points, strokes ascending
    """
    if steps < 1:
        raise ValueError(f"Schedule needs at least one step, got {steps}")

    points = []
    for i in range(steps + 1):
        fraction = i / steps
        points.append((strokes_to_bit * fraction, icp + (fcp - icp) * fraction))
    return tuple(points)


def emissions(config: WellConfiguration, total_volume: float) -> EmissionsBreakdown:
    """CO2e estimate for the operation [kg]."""
    power = config.expected_duration * POWER_EMISSION_FACTORS[config.rig_power_source]
    fluid = total_volume * FLUID_EMISSION_FACTORS[config.fluid_type]
    weight = (
        total_volume
        * max(0.0, config.current_mud_weight - FRESH_WATER_PPG)
        * WEIGHTING_AGENT_FACTOR
    )
    return EmissionsBreakdown(power=power, fluid=fluid, weight=weight)


def calculate(config: WellConfiguration) -> CalculationResults:
    """
    Compute all kill-sheet benchmarks for a configuration.

    Args:
        config: Validated well configuration

    Returns:
        CalculationResults

    Example:
        >>> results = calculate(WellConfiguration())
        >>> results.icp
        1000.0
        >>> round(results.maasp, 1)
        962.0
    """
    kmw = kill_mud_weight(config)
    icp = config.sidpp + config.scr_pressure
    fcp = config.scr_pressure * (kmw / config.current_mud_weight)

    drill_string_volume = config.drill_string_capacity * config.drill_string_length
    annulus_volume = config.annulus_capacity * config.measured_depth
    total_volume = drill_string_volume + annulus_volume
    strokes_to_bit = _round_half_up(drill_string_volume / PUMP_OUTPUT)

    breakdown = emissions(config, total_volume)

    return CalculationResults(
        kill_mud_weight=kmw,
        icp=icp,
        fcp=fcp,
        maasp=maasp(config),
        drill_string_volume=drill_string_volume,
        annulus_volume=annulus_volume,
        total_volume=total_volume,
        strokes_to_bit=strokes_to_bit,
        pressure_schedule=pressure_schedule(icp, fcp, strokes_to_bit),
        co2e_total=breakdown.total,
        co2e_breakdown=breakdown,
    )


def current_bhp(state, config: WellConfiguration) -> float:
    """
    Live bottom-hole pressure estimate [psi].

    Initial BHP shifted by the change in surface pressure since shut-in.
    """
    return state.initial_bhp + (state.surface_pressure - config.sidpp)


def is_maasp_breached(state, results: CalculationResults) -> bool:
    """True when surface pressure exceeds MAASP."""
    return state.surface_pressure > results.maasp


def validate_hydraulics() -> None:
    """
    Validate calculator against worked kill-sheet examples.

    Tests:
    1. MAASP example (LOT 14.2, MW 10.5, shoe 5000 ft -> 962 psi)
    2. KMW / ICP / FCP example (SIDPP 550, SCR 450, TVD 8500)
    3. KMW monotonic in SIDPP
    4. Schedule endpoints equal ICP and FCP
    5. Emissions breakdown sums to total
    """
    config = WellConfiguration()
    results = calculate(config)

    # Test 1: MAASP
    if abs(results.maasp - 962.0) > 1e-6:
        raise AssertionError(f"MAASP mismatch: {results.maasp}")

    # Test 2: Kill sheet
    if abs(results.kill_mud_weight - 11.7443438914) > 1e-6:
        raise AssertionError(f"KMW mismatch: {results.kill_mud_weight}")
    if results.icp != 1000.0:
        raise AssertionError(f"ICP mismatch: {results.icp}")
    if abs(results.fcp - 503.33) > 0.01:
        raise AssertionError(f"FCP mismatch: {results.fcp}")

    # Test 3: Monotonicity
    kmw_values = [
        kill_mud_weight(config.replace(sidpp=sidpp)) for sidpp in (0, 100, 550, 1000)
    ]
    if not all(a <= b for a, b in zip(kmw_values, kmw_values[1:])):
        raise AssertionError("KMW should increase with SIDPP")
    if kmw_values[0] != config.current_mud_weight:
        raise AssertionError("KMW should equal MW when SIDPP is zero")

    # Test 4: Schedule endpoints
    first, last = results.pressure_schedule[0], results.pressure_schedule[-1]
    if first != (0.0, results.icp) or abs(last[1] - results.fcp) > 1e-9:
        raise AssertionError(f"Schedule endpoints wrong: {first}, {last}")

    # Test 5: Emissions
    if abs(results.co2e_total - results.co2e_breakdown.total) > 1e-9:
        raise AssertionError("Emissions breakdown does not sum to total")

    print("✓ All hydraulic validations passed")
