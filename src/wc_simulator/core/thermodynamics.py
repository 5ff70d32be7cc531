"""
Wellbore Thermodynamics
=======================

Gas-column thermodynamics and environmental derating used by the tick engine.

THEORETICAL FOUNDATION
=====================

1. Combined gas law (Boyle + Charles) for a migrating influx:
   P1 * V1 / T1 = P2 * V2 / T2
   =>  V2 = V1 * (P1 / P2) * (T2 / T1)

   Where:
   - P: Absolute pressure at the top of the bubble [psia]
   - V: Bubble volume [bbl]
   - T: Absolute temperature [°R]

2. Absolute pressure at bubble top:
   P_abs = P_surface + 0.052 * MW * D_gas + P_atm

3. Geothermal gradient (linear between wellhead and bottom hole):
   T(D) = T_surface + (T_bottom - T_surface) * D / TVD

4. Absolute temperature:
   T[°R] = T[°F] + 460

EQUIPMENT DERATING
==================

Hydraulic and mechanical response slows at ambient extremes. The
multiplier applied to all speed-dependent quantities is piecewise:

   ambient < 20 °F    -> 0.60
   ambient < 40 °F    -> 0.80
   ambient > 115 °F   -> 0.75
   otherwise          -> 1.00

The thresholds are strict inequalities; 40 °F and 115 °F both map to 1.0.

NUMERICAL GUARD
===============

The gas law is undefined for non-positive absolute pressure or temperature.
combined_gas_law() returns None in that case and the caller carries the
previous volume forward. It never produces NaN or infinity.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import numpy as np
from typing import Optional

from .config import WellConfiguration
from .hydraulics import pressure_gradient


RANKINE_OFFSET = 460.0  # [°R - °F]

# Derating thresholds [°F] and multipliers
SEVERE_COLD_LIMIT_F = 20.0
COLD_LIMIT_F = 40.0
HEAT_LIMIT_F = 115.0
SEVERE_COLD_EFFICIENCY = 0.60
COLD_EFFICIENCY = 0.80
HEAT_EFFICIENCY = 0.75


def fahrenheit_to_rankine(temp_f: float) -> float:
    """Convert °F to °R."""
    return temp_f + RANKINE_OFFSET


def equipment_efficiency(ambient_temp_f: float) -> float:
    """
    Equipment efficiency multiplier for the given rig-site temperature.

    Args:
        ambient_temp_f: Air temperature at the rig site [°F]

    Returns:
        Multiplier in (0, 1]

    Example:
        >>> equipment_efficiency(10.0)
        0.6
        >>> equipment_efficiency(115.0)
        1.0
    """
    if ambient_temp_f < SEVERE_COLD_LIMIT_F:
        return SEVERE_COLD_EFFICIENCY
    if ambient_temp_f < COLD_LIMIT_F:
        return COLD_EFFICIENCY
    if ambient_temp_f > HEAT_LIMIT_F:
        return HEAT_EFFICIENCY
    return 1.0


def temperature_at_depth(depth_ft: float, config: WellConfiguration) -> float:
    """
    Formation temperature at a vertical depth from a linear gradient.

    Args:
        depth_ft: Vertical depth [ft], clamped to [0, TVD]
        config: Well configuration (surface/bottom-hole temperatures, TVD)

    Returns:
        Temperature [°F]
    """
    return float(
        np.interp(
            depth_ft,
            [0.0, config.tvd],
            [config.surface_temp, config.bottom_hole_temp],
        )
    )


def absolute_pressure_at_depth(
    surface_pressure: float,
    mud_weight: float,
    depth_ft: float,
    atm_pressure: float,
) -> float:
    """
    Absolute pressure at a depth below a mud column [psia].

    Args:
        surface_pressure: Gauge pressure at surface [psi]
        mud_weight: Mud weight above the point [ppg]
        depth_ft: Vertical depth [ft]
        atm_pressure: Atmospheric baseline [psi]
    """
    return surface_pressure + pressure_gradient(mud_weight) * depth_ft + atm_pressure


def combined_gas_law(
    volume: float,
    p1_abs: float,
    p2_abs: float,
    t1_abs: float,
    t2_abs: float,
) -> Optional[float]:
    """
    New gas volume after a pressure and temperature change.

    V2 = V1 * (P1 / P2) * (T2 / T1)

    Args:
        volume: Initial volume [bbl]
        p1_abs, p2_abs: Initial/final absolute pressure [psia]
        t1_abs, t2_abs: Initial/final absolute temperature [°R]

    Returns:
        New volume [bbl], or None when the law is undefined
        (non-positive pressure or temperature, non-finite result)
    """
    if p1_abs <= 0 or p2_abs <= 0 or t1_abs <= 0:
        return None

    expansion_factor = (p1_abs / p2_abs) * (t2_abs / t1_abs)
    new_volume = volume * expansion_factor

    if not np.isfinite(new_volume):
        return None
    return float(new_volume)


def validate_thermodynamics() -> None:
    """
    Validate gas-law and derating helpers.

    Tests:
    1. Isothermal, isobaric step leaves volume unchanged
    2. Halving pressure doubles volume (Boyle)
    3. Guard rejects non-positive pressure
    4. Derating table thresholds
    5. Thermal gradient endpoints
    """
    # Test 1: Identity
    v = combined_gas_law(10.0, 4000.0, 4000.0, 600.0, 600.0)
    if v is None or abs(v - 10.0) > 1e-12:
        raise AssertionError(f"Identity step changed volume: {v}")

    # Test 2: Boyle
    v = combined_gas_law(10.0, 4000.0, 2000.0, 600.0, 600.0)
    if v is None or abs(v - 20.0) > 1e-12:
        raise AssertionError(f"Boyle expansion wrong: {v}")

    # Test 3: Guard
    if combined_gas_law(10.0, 0.0, 2000.0, 600.0, 600.0) is not None:
        raise AssertionError("Guard should reject zero pressure")

    # Test 4: Derating
    expected = {10.0: 0.60, 20.0: 0.80, 39.9: 0.80, 40.0: 1.0, 115.0: 1.0, 120.0: 0.75}
    for temp, factor in expected.items():
        if equipment_efficiency(temp) != factor:
            raise AssertionError(f"Derate at {temp}°F: {equipment_efficiency(temp)}")

    # Test 5: Thermal gradient
    config = WellConfiguration()
    if temperature_at_depth(0.0, config) != config.surface_temp:
        raise AssertionError("Surface temperature mismatch")
    if temperature_at_depth(config.tvd, config) != config.bottom_hole_temp:
        raise AssertionError("Bottom-hole temperature mismatch")

    print("✓ All thermodynamic validations passed")
