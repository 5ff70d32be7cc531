"""
Well Configuration
==================

Static well data consumed by the hydraulic calculator and the tick engine.

The configuration is supplied by an external editor and is treated as
read-mostly input: the simulation core never mutates it, and edits only
take effect on the next tick.

CANONICAL UNITS
===============

All values are stored in imperial oilfield units regardless of how they
are displayed:

- Mud weights: ppg
- Pressures: psi
- Depths and lengths: ft
- Capacities: bbl/ft
- Temperatures: °F
- Expected duration: hours

VALIDATION CONTRACT
===================

The calculator divides by current mud weight and TVD. A configuration with
either at zero (or negative) is a caller-side error and must be rejected by
validate() before the calculator or the tick engine is invoked.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import math
from dataclasses import dataclass, asdict, fields, replace as dc_replace
from enum import Enum
from typing import Any, Dict, Mapping


class ConfigurationError(ValueError):
    """Raised when well configuration violates the calculator's preconditions."""


class FluidType(Enum):
    """Base fluid of the drilling mud."""

    WBM = "WBM"  # Water-based mud
    OBM = "OBM"  # Oil-based mud


class RigPowerSource(Enum):
    """Primary power source of the rig."""

    DIESEL = "Diesel"
    HYBRID = "Hybrid"
    GRID = "Grid"


# camelCase console field names mapped to Python attribute names
_CAMEL_CASE_KEYS = {
    "currentMudWeight": "current_mud_weight",
    "scrPressure": "scr_pressure",
    "sidpp": "sidpp",
    "sicp": "sicp",
    "tvd": "tvd",
    "measuredDepth": "measured_depth",
    "shoeTVD": "shoe_tvd",
    "leakOffTestMW": "leak_off_test_mw",
    "drillStringCapacity": "drill_string_capacity",
    "drillStringLength": "drill_string_length",
    "annulusCapacity": "annulus_capacity",
    "surfaceTemp": "surface_temp",
    "bottomHoleTemp": "bottom_hole_temp",
    "ambientTemp": "ambient_temp",
    "ambientTemperature": "ambient_temp",
    "atmPressure": "atm_pressure",
    "surfacePressureBaseline": "atm_pressure",
    "expectedDuration": "expected_duration",
    "fluidType": "fluid_type",
    "rigPowerSource": "rig_power_source",
}

# Fields that must be non-negative (depths, lengths, capacities)
_NON_NEGATIVE_FIELDS = (
    "tvd",
    "measured_depth",
    "shoe_tvd",
    "drill_string_capacity",
    "drill_string_length",
    "annulus_capacity",
    "expected_duration",
)


def _coerce_enum(enum_cls, value):
    """Accept an enum member, its value or its name."""
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value or (
            isinstance(value, str) and value.upper() == member.name
        ):
            return member
    raise ConfigurationError(f"Unknown {enum_cls.__name__}: {value!r}")


@dataclass(frozen=True)
class WellConfiguration:
    """
    Static well and rig data for one kill-sheet scenario.

    Defaults reproduce the training well used by the console: a 10.5 ppg
    kick at 8,500 ft TVD with the casing shoe at 5,000 ft.
    """

    # Mud and shut-in pressures
    current_mud_weight: float = 10.5  # [ppg]
    scr_pressure: float = 450.0  # [psi] Slow circulating rate pressure
    sidpp: float = 550.0  # [psi] Shut-in drill pipe pressure
    sicp: float = 720.0  # [psi] Shut-in casing pressure

    # Well geometry
    tvd: float = 8500.0  # [ft] True vertical depth
    measured_depth: float = 9200.0  # [ft]
    shoe_tvd: float = 5000.0  # [ft] Casing shoe true vertical depth
    leak_off_test_mw: float = 14.2  # [ppg] Equivalent leak-off mud weight

    # String and annulus
    drill_string_capacity: float = 0.01776  # [bbl/ft]
    drill_string_length: float = 9200.0  # [ft]
    annulus_capacity: float = 0.0459  # [bbl/ft]

    # Environment
    surface_temp: float = 65.0  # [°F] Wellhead temperature
    bottom_hole_temp: float = 195.0  # [°F]
    ambient_temp: float = 60.0  # [°F] Air temperature at the rig site
    atm_pressure: float = 14.7  # [psi] Atmospheric baseline

    # Operation
    expected_duration: float = 24.0  # [hours]
    fluid_type: FluidType = FluidType.WBM
    rig_power_source: RigPowerSource = RigPowerSource.DIESEL

    def validate(self) -> None:
        """
        Validate configuration against the calculator's preconditions.

        Raises:
            ConfigurationError: If any field is non-finite, a depth or
                capacity is negative, or mud weight / TVD is not positive.
        """
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                continue
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigurationError(
                    f"{f.name} must be numeric, got {type(value).__name__}"
                )
            if not math.isfinite(value):
                raise ConfigurationError(f"{f.name} must be finite, got {value}")

        if self.current_mud_weight <= 0:
            raise ConfigurationError(
                f"Mud weight must be positive: current_mud_weight={self.current_mud_weight}"
            )
        if self.tvd <= 0:
            raise ConfigurationError(f"TVD must be positive: tvd={self.tvd}")

        for name in _NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")

        if not isinstance(self.fluid_type, FluidType):
            raise ConfigurationError(f"Unknown fluid type: {self.fluid_type!r}")
        if not isinstance(self.rig_power_source, RigPowerSource):
            raise ConfigurationError(
                f"Unknown rig power source: {self.rig_power_source!r}"
            )

    def replace(self, **changes) -> "WellConfiguration":
        """Return a copy with the given fields changed."""
        return dc_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Dump to a JSON-friendly mapping (enums by value)."""
        data = asdict(self)
        data["fluid_type"] = self.fluid_type.value
        data["rig_power_source"] = self.rig_power_source.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WellConfiguration":
        """
        Build a configuration from a mapping.

        Accepts snake_case attribute names as well as the camelCase keys used
        by the web console. Missing keys keep their defaults.

        Raises:
            ConfigurationError: On unknown keys or unknown enum values.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ConfigurationError(f"Unknown configuration key: {key}")
            kwargs[name] = value

        if "fluid_type" in kwargs:
            kwargs["fluid_type"] = _coerce_enum(FluidType, kwargs["fluid_type"])
        if "rig_power_source" in kwargs:
            kwargs["rig_power_source"] = _coerce_enum(
                RigPowerSource, kwargs["rig_power_source"]
            )

        return cls(**kwargs)
