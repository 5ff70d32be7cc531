"""Tests for the kill-sheet calculator."""

import math

import pytest

from wc_simulator.core import hydraulics
from wc_simulator.core.config import FluidType, RigPowerSource, WellConfiguration
from wc_simulator.core.hydraulics import (
    buoyancy_factor,
    calculate,
    current_bhp,
    equivalent_mud_weight,
    formation_pressure,
    grease_injection_margin,
    is_maasp_breached,
    kill_mud_weight,
    pressure_schedule,
    snubbing_balance_point,
)
from wc_simulator.core.state import SimulationState


@pytest.fixture
def config():
    return WellConfiguration()


@pytest.fixture
def results(config):
    return calculate(config)


class TestKillSheet:
    def test_maasp_worked_example(self, results):
        assert results.maasp == pytest.approx(962.0)

    def test_maasp_ignores_shut_in_pressures(self, config):
        base = calculate(config).maasp
        assert calculate(config.replace(sidpp=0.0, sicp=2000.0)).maasp == pytest.approx(base)

    def test_kill_mud_weight(self, results):
        assert results.kill_mud_weight == pytest.approx(10.5 + 550 / (0.052 * 8500))
        assert results.kill_mud_weight == pytest.approx(11.7443, abs=1e-4)

    def test_icp_fcp(self, results):
        assert results.icp == 1000.0
        assert results.fcp == pytest.approx(503.33, abs=0.01)

    @pytest.mark.parametrize("sidpp", [0.0, 10.0, 550.0, 5000.0])
    def test_kill_mud_weight_not_below_current(self, config, sidpp):
        assert kill_mud_weight(config.replace(sidpp=sidpp)) >= config.current_mud_weight

    def test_kill_mud_weight_monotonic(self, config):
        values = [kill_mud_weight(config.replace(sidpp=s)) for s in range(0, 2001, 250)]
        assert values == sorted(values)


class TestVolumes:
    def test_volumes(self, results):
        assert results.drill_string_volume == pytest.approx(163.392)
        assert results.annulus_volume == pytest.approx(422.28)
        assert results.total_volume == pytest.approx(585.672)

    def test_strokes_to_bit(self, results):
        assert results.strokes_to_bit == 1373

    def test_round_half_up(self):
        assert hydraulics._round_half_up(2.5) == 3
        assert hydraulics._round_half_up(3.5) == 4
        assert hydraulics._round_half_up(1373.04) == 1373


class TestEmissions:
    def test_breakdown(self, results):
        breakdown = results.co2e_breakdown
        assert breakdown.power == pytest.approx(24 * 35.5)
        assert breakdown.fluid == pytest.approx(585.672 * 0.8)
        assert breakdown.weight == pytest.approx(585.672 * (10.5 - 8.33) * 0.15)
        assert results.co2e_total == pytest.approx(breakdown.total)

    def test_light_mud_has_no_weighting_term(self, config):
        results = calculate(config.replace(current_mud_weight=8.0))
        assert results.co2e_breakdown.weight == 0.0

    def test_obm_grid(self, config):
        cfg = config.replace(fluid_type=FluidType.OBM, rig_power_source=RigPowerSource.GRID)
        breakdown = calculate(cfg).co2e_breakdown
        assert breakdown.power == pytest.approx(24 * 5.5)
        assert breakdown.fluid == pytest.approx(585.672 * 4.5)


class TestSchedule:
    def test_endpoints(self, results):
        schedule = results.pressure_schedule
        assert len(schedule) == hydraulics.SCHEDULE_STEPS + 1
        assert schedule[0] == (0.0, results.icp)
        assert schedule[-1][0] == pytest.approx(results.strokes_to_bit)
        assert schedule[-1][1] == pytest.approx(results.fcp)

    def test_pressure_decreases(self, results):
        pressures = [p for _, p in results.pressure_schedule]
        assert all(a >= b for a, b in zip(pressures, pressures[1:]))

    def test_rejects_zero_steps(self):
        with pytest.raises(ValueError):
            pressure_schedule(1000.0, 500.0, 1000, steps=0)


class TestHelpers:
    def test_formation_pressure(self, config):
        assert formation_pressure(config) == pytest.approx(0.052 * 10.5 * 8500 + 550)

    def test_equivalent_mud_weight(self, config):
        assert equivalent_mud_weight(config) == pytest.approx(10.5 + 720 / (0.052 * 5000))

    def test_buoyancy_factor(self):
        assert buoyancy_factor(10.5) == pytest.approx(1 - 10.5 / 65.5)

    def test_grease_margin(self):
        assert grease_injection_margin(1200.0) == 1700.0

    def test_snubbing_balance(self):
        assert snubbing_balance_point(1000.0, 15.9, 15900.0) == pytest.approx(1.0)
        assert math.isinf(snubbing_balance_point(1000.0, 15.9, 0.0))

    def test_current_bhp(self, config):
        state = SimulationState(initial_bhp=5191.0, surface_pressure=650.0)
        assert current_bhp(state, config) == pytest.approx(5291.0)

    def test_maasp_breach_is_strict(self, results):
        assert not is_maasp_breached(SimulationState(surface_pressure=results.maasp), results)
        assert is_maasp_breached(SimulationState(surface_pressure=results.maasp + 0.1), results)


def test_validate_hydraulics(capsys):
    hydraulics.validate_hydraulics()
    assert "passed" in capsys.readouterr().out
