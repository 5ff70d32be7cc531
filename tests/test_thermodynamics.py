"""Tests for thermal gradient, gas law and equipment derating."""

import pytest

from wc_simulator.core import thermodynamics
from wc_simulator.core.config import WellConfiguration
from wc_simulator.core.thermodynamics import (
    absolute_pressure_at_depth,
    combined_gas_law,
    equipment_efficiency,
    fahrenheit_to_rankine,
    temperature_at_depth,
)


class TestEquipmentEfficiency:
    @pytest.mark.parametrize(
        "ambient, expected",
        [
            (-10.0, 0.60),
            (19.9, 0.60),
            (20.0, 0.80),
            (39.9, 0.80),
            (40.0, 1.0),
            (60.0, 1.0),
            (115.0, 1.0),
            (115.1, 0.75),
        ],
    )
    def test_thresholds(self, ambient, expected):
        assert equipment_efficiency(ambient) == expected


class TestThermalGradient:
    def test_endpoints(self):
        config = WellConfiguration()
        assert temperature_at_depth(0.0, config) == 65.0
        assert temperature_at_depth(8500.0, config) == 195.0

    def test_midpoint(self):
        config = WellConfiguration()
        assert temperature_at_depth(4250.0, config) == pytest.approx(130.0)

    def test_clamped_beyond_tvd(self):
        config = WellConfiguration()
        assert temperature_at_depth(9000.0, config) == 195.0

    def test_rankine(self):
        assert fahrenheit_to_rankine(140.0) == 600.0


class TestGasLaw:
    def test_absolute_pressure(self):
        assert absolute_pressure_at_depth(550.0, 10.5, 1000.0, 14.7) == pytest.approx(
            550.0 + 546.0 + 14.7
        )

    def test_boyle(self):
        assert combined_gas_law(10.0, 3000.0, 1500.0, 600.0, 600.0) == pytest.approx(20.0)

    def test_charles(self):
        assert combined_gas_law(10.0, 3000.0, 3000.0, 600.0, 660.0) == pytest.approx(11.0)

    @pytest.mark.parametrize(
        "p1, p2, t1", [(0.0, 100.0, 600.0), (100.0, 0.0, 600.0), (100.0, -5.0, 600.0), (100.0, 100.0, 0.0)]
    )
    def test_guard(self, p1, p2, t1):
        assert combined_gas_law(10.0, p1, p2, t1, 600.0) is None


def test_validate_thermodynamics(capsys):
    thermodynamics.validate_thermodynamics()
    assert "passed" in capsys.readouterr().out
