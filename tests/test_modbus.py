"""Tests for the Modbus register map, codec and simulator bridge."""

from dataclasses import replace

import pytest

from wc_simulator.__main__ import (
    BLEED_STEP_PSI,
    poll_operator_commands,
    publish_snapshot,
    seed_setpoints,
    validate_setpoint,
)
from wc_simulator.core import actions as act
from wc_simulator.core.config import WellConfiguration
from wc_simulator.core.hydraulics import calculate
from wc_simulator.core.state import SimStatus, SimulationMode, Valve, initial_state
from wc_simulator.modbus import (
    MODE_CODES,
    STATUS_CODES,
    ModbusDecoder,
    ModbusEncoder,
    ModbusRegisterMap,
    ModbusSlave,
    RegisterDefinition,
    RegisterType,
    validate_encoding,
)


@pytest.fixture(scope="module")
def register_map():
    return ModbusRegisterMap()


@pytest.fixture
def slave(register_map):
    return ModbusSlave(register_map)


class TestRegisterMap:
    def test_every_valve_has_bits(self, register_map):
        for valve in Valve:
            assert register_map.get_register_by_name(f"{valve.value}_closed") is not None
            assert register_map.get_register_by_name(f"toggle_{valve.value}") is not None

    def test_float_registers_use_two_words(self, register_map):
        reg = register_map.get_register_by_name("gas_volume")
        assert reg.size_words == 2
        assert register_map.get_register_by_address(reg.address + 1, RegisterType.INPUT_REGISTER) is reg

    def test_unknown_register(self, register_map):
        assert register_map.get_register_by_name("pH_inlet") is None

    def test_holding_registers_writable(self, register_map):
        assert all(not reg.read_only for reg in register_map.holding_registers)
        assert all(reg.read_only for reg in register_map.input_registers)

    def test_definition_validation(self):
        with pytest.raises(ValueError):
            RegisterDefinition(
                address=0,
                name="bad",
                register_type=RegisterType.COIL,
                data_type="float32",
                units="",
                description="",
                read_only=False,
            ).validate()

    def test_enum_codes(self):
        assert STATUS_CODES[SimStatus.READY] == 0
        assert STATUS_CODES[SimStatus.PAUSED] == 2
        assert len(set(MODE_CODES.values())) == len(SimulationMode)


class TestCodec:
    def test_float32(self):
        words = ModbusEncoder.float32_to_registers(962.0)
        assert ModbusDecoder.registers_to_float32(*words) == 962.0

    def test_negative_int16(self):
        assert ModbusDecoder.register_to_int16(ModbusEncoder.int16_to_register(-7500)) == -7500

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError):
            ModbusEncoder.float32_to_registers(float("nan"))

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            ModbusEncoder.encode(1, "float64")

    def test_validate_encoding(self, capsys):
        validate_encoding()
        assert "passed" in capsys.readouterr().out


class TestSlaveAccess:
    def test_input_register(self, slave):
        slave.update_input_register("surface_pressure", 550.0)
        assert slave.read_input_register("surface_pressure") == pytest.approx(550.0)

    def test_status_code(self, slave):
        slave.update_input_register("sim_status", 1)
        assert slave.read_input_register("sim_status") == 1

    def test_wrong_register_type(self, slave):
        with pytest.raises(ValueError, match="Invalid register reference"):
            slave.update_input_register("choke_position", 10.0)

    def test_coils(self, slave):
        assert slave.read_coil("esd_command") is False
        slave.write_coil("esd_command", True)
        assert slave.get_all_coils()["esd_command"] is True

    def test_not_running_until_started(self, slave):
        assert not slave.is_running
        slave.stop()


class TestBridge:
    def test_validate_setpoint(self):
        assert validate_setpoint(150.0, (0.0, 100.0), 5.0) == 100.0
        assert validate_setpoint(-1.0, (0.0, 100.0), 5.0) == 0.0
        assert validate_setpoint(float("nan"), (0.0, 100.0), 5.0) == 5.0

    def test_publish_snapshot(self, slave):
        config = WellConfiguration()
        results = calculate(config)
        state = replace(
            initial_state(),
            surface_pressure=1000.0,
            initial_bhp=5191.0,
            valves=initial_state().valves.closed(Valve.ANNULAR),
        )
        publish_snapshot(slave, state, results, config)

        assert slave.read_input_register("surface_pressure") == pytest.approx(1000.0)
        assert slave.read_input_register("bottom_hole_pressure") == pytest.approx(5641.0)
        assert slave.read_input_register("maasp") == pytest.approx(962.0)
        assert slave.read_input_register("sim_mode") == MODE_CODES[SimulationMode.STANDARD_KILL]
        assert slave.read_discrete_input("annular_closed") is True
        assert slave.read_discrete_input("blind_ram_closed") is False
        assert slave.read_discrete_input("maasp_breach") is True

    def test_seeded_setpoints_yield_no_actions(self, slave):
        state = initial_state()
        seed_setpoints(slave, state)
        assert poll_operator_commands(slave, state) == []

    def test_setpoint_change_is_clamped(self, slave):
        state = initial_state()
        seed_setpoints(slave, state)
        slave.write_holding_register("choke_position", 250.0)
        slave.write_holding_register("sim_speed", 0.0)

        actions = poll_operator_commands(slave, state)
        assert act.SetChokePosition(100.0) in actions
        assert act.SetSpeed(0.5) in actions

    def test_command_coils_fire_once(self, slave):
        state = initial_state()
        seed_setpoints(slave, state)
        slave.write_coil("start_command", True)
        slave.write_coil("bleed_command", True)
        slave.write_coil("toggle_choke", True)

        actions = poll_operator_commands(slave, state)
        assert actions == [
            act.SetStatus(SimStatus.RUNNING),
            act.BleedPressure(BLEED_STEP_PSI),
            act.ToggleValve(Valve.CHOKE),
        ]
        assert poll_operator_commands(slave, state) == []

    def test_esd_first(self, slave):
        state = initial_state()
        seed_setpoints(slave, state)
        slave.write_coil("start_command", True)
        slave.write_coil("esd_command", True)
        actions = poll_operator_commands(slave, state)
        assert actions[0] == act.EmergencySequence()
