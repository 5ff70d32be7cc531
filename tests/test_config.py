"""Tests for well configuration validation and mapping."""

import math

import pytest

from wc_simulator.core.config import (
    ConfigurationError,
    FluidType,
    RigPowerSource,
    WellConfiguration,
)


class TestDefaults:
    def test_training_well(self):
        config = WellConfiguration()
        assert config.current_mud_weight == 10.5
        assert config.tvd == 8500.0
        assert config.shoe_tvd == 5000.0
        assert config.fluid_type is FluidType.WBM
        assert config.rig_power_source is RigPowerSource.DIESEL

    def test_defaults_validate(self):
        WellConfiguration().validate()


class TestValidate:
    @pytest.mark.parametrize("mud_weight", [0.0, -1.0])
    def test_non_positive_mud_weight(self, mud_weight):
        with pytest.raises(ConfigurationError):
            WellConfiguration(current_mud_weight=mud_weight).validate()

    def test_zero_tvd(self):
        with pytest.raises(ConfigurationError):
            WellConfiguration(tvd=0.0).validate()

    @pytest.mark.parametrize(
        "field", ["shoe_tvd", "measured_depth", "annulus_capacity", "expected_duration"]
    )
    def test_negative_geometry(self, field):
        with pytest.raises(ConfigurationError, match=field):
            WellConfiguration().replace(**{field: -1.0}).validate()

    def test_non_finite(self):
        with pytest.raises(ConfigurationError, match="finite"):
            WellConfiguration(sidpp=math.nan).validate()

    def test_non_numeric(self):
        with pytest.raises(ConfigurationError, match="numeric"):
            WellConfiguration(sidpp="550").validate()

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            WellConfiguration(tvd=-5.0).validate()


class TestMapping:
    def test_camel_case_keys(self):
        config = WellConfiguration.from_dict(
            {"currentMudWeight": 12.0, "shoeTVD": 6000, "rigPowerSource": "Hybrid"}
        )
        assert config.current_mud_weight == 12.0
        assert config.shoe_tvd == 6000
        assert config.rig_power_source is RigPowerSource.HYBRID

    def test_console_preset_keys(self):
        preset = {
            "currentMudWeight": 10.5,
            "scrPressure": 450,
            "sidpp": 550,
            "sicp": 720,
            "tvd": 8500,
            "measuredDepth": 9200,
            "shoeTVD": 5000,
            "leakOffTestMW": 14.2,
            "drillStringCapacity": 0.01776,
            "drillStringLength": 9200,
            "annulusCapacity": 0.0459,
            "surfaceTemp": 65,
            "bottomHoleTemp": 195,
            "ambientTemperature": 72,
            "surfacePressureBaseline": 14.2,
            "expectedDuration": 24,
            "fluidType": "WBM",
            "rigPowerSource": "Diesel",
        }
        config = WellConfiguration.from_dict(preset)
        config.validate()
        assert config.ambient_temp == 72
        assert config.atm_pressure == 14.2

    def test_enum_by_name(self):
        config = WellConfiguration.from_dict({"fluid_type": "obm", "rig_power_source": "GRID"})
        assert config.fluid_type is FluidType.OBM
        assert config.rig_power_source is RigPowerSource.GRID

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown configuration key"):
            WellConfiguration.from_dict({"mudWeight": 10.0})

    def test_unknown_enum(self):
        with pytest.raises(ConfigurationError):
            WellConfiguration.from_dict({"fluidType": "SBM"})

    def test_to_dict_round_trip(self):
        config = WellConfiguration(sidpp=600.0, fluid_type=FluidType.OBM)
        data = config.to_dict()
        assert data["fluid_type"] == "OBM"
        assert data["rig_power_source"] == "Diesel"
        assert WellConfiguration.from_dict(data) == config

    def test_replace_is_functional(self):
        config = WellConfiguration()
        changed = config.replace(sidpp=700.0)
        assert changed.sidpp == 700.0
        assert config.sidpp == 550.0
