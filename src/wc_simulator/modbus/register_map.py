"""
Modbus Register Map
===================

Address layout of the well-control telemetry exposed over Modbus/TCP.

This module contains ONLY the register layout. It does not read the
simulation state, apply operator commands or enforce limits.

Register Types:
- Input Registers (FC 04): Simulation readings (pressures, depths, forces)
- Discrete Inputs (FC 02): Valve positions and alarm bits
- Holding Registers (FC 03/06/16): Operator setpoints
- Coils (FC 01/05/15): Edge-triggered operator commands

Register Encoding:
- Floats use IEEE 754 single precision, two consecutive 16-bit registers
- Byte order: Big-endian (network byte order)
- Enumerations are exposed as uint16 codes (see STATUS_CODES, MODE_CODES)

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional

from ..core.state import SimStatus, SimulationMode, Valve


class RegisterType(IntEnum):
    """Modbus register types."""

    COIL = 0  # Discrete output (read/write)
    DISCRETE_INPUT = 1  # Discrete input (read-only)
    INPUT_REGISTER = 3  # Analog input (read-only)
    HOLDING_REGISTER = 4  # Analog output (read/write)


DATA_TYPES = ("float32", "int16", "uint16", "bool")

# Enumeration codes, in declaration order
STATUS_CODES: Dict[SimStatus, int] = {s: i for i, s in enumerate(SimStatus)}
MODE_CODES: Dict[SimulationMode, int] = {m: i for i, m in enumerate(SimulationMode)}


@dataclass
class RegisterDefinition:
    """
    Definition of a single Modbus register (or register pair for floats).

    Attributes:
        address: Starting register address (0-based)
        name: Identifier used by the bridge
        register_type: Coil, discrete input, input register, or holding register
        data_type: 'float32', 'int16', 'uint16', 'bool'
        units: Engineering units (e.g. 'psi', 'ft', 'lbf')
        description: What this register represents
        read_only: Whether a Modbus master may write it
    """

    address: int
    name: str
    register_type: RegisterType
    data_type: str
    units: str
    description: str
    read_only: bool = True

    def validate(self):
        """Validate register definition."""
        if not 0 <= self.address <= 65535:
            raise ValueError(f"Register address {self.address} out of range [0, 65535]")

        if self.data_type not in DATA_TYPES:
            raise ValueError(f"Unknown data type: {self.data_type}")

        is_bit = self.register_type in (RegisterType.COIL, RegisterType.DISCRETE_INPUT)
        if is_bit != (self.data_type == "bool"):
            raise ValueError(
                f"{self.name}: data type {self.data_type} does not fit "
                f"{self.register_type.name}"
            )

        writable_types = (RegisterType.HOLDING_REGISTER, RegisterType.COIL)
        if self.register_type in writable_types and self.read_only:
            raise ValueError(f"{self.register_type.name} {self.name} marked as read-only")
        if self.register_type not in writable_types and not self.read_only:
            raise ValueError(f"{self.register_type.name} {self.name} marked as writable")

    @property
    def size_words(self) -> int:
        """Number of 16-bit words (or bits) this register occupies."""
        return 2 if self.data_type == "float32" else 1


def _float_inputs(rows) -> List[RegisterDefinition]:
    return [
        RegisterDefinition(
            address=2 * i,
            name=name,
            register_type=RegisterType.INPUT_REGISTER,
            data_type="float32",
            units=units,
            description=description,
        )
        for i, (name, units, description) in enumerate(rows)
    ]


def _bits(rows, register_type: RegisterType, start: int = 0) -> List[RegisterDefinition]:
    return [
        RegisterDefinition(
            address=start + i,
            name=name,
            register_type=register_type,
            data_type="bool",
            units="",
            description=description,
            read_only=register_type is RegisterType.DISCRETE_INPUT,
        )
        for i, (name, description) in enumerate(rows)
    ]


class ModbusRegisterMap:
    """
    Complete Modbus register map for the well-control simulator.

    It only defines WHERE data goes in the Modbus address space; the
    caller decides what to publish and how to act on operator writes.
    """

    # Input register block for enumerations, after the float block
    ENUM_BASE_ADDRESS = 100

    def __init__(self):
        """Initialize register map with standard layout."""
        self.input_registers: List[RegisterDefinition] = []
        self.holding_registers: List[RegisterDefinition] = []
        self.coils: List[RegisterDefinition] = []
        self.discrete_inputs: List[RegisterDefinition] = []

        self._define_input_registers()
        self._define_holding_registers()
        self._define_coils()
        self._define_discrete_inputs()

        self._validate_all()
        self._by_name = {reg.name: reg for reg in self.all_registers}

    def _define_input_registers(self):
        """
        Define input registers (read-only simulation values).

        Address range: 30001+ (Modbus convention), 0-based internally.
        """
        self.input_registers.extend(
            _float_inputs(
                [
                    ("surface_pressure", "psi", "Wellhead (surface) pressure"),
                    ("bottom_hole_pressure", "psi", "Live bottom-hole pressure estimate"),
                    ("gas_depth", "ft", "Depth of the top of the gas bubble"),
                    ("gas_volume", "bbl", "Gas influx volume"),
                    ("tool_depth", "ft", "Depth of the workstring/tool"),
                    ("indicated_weight", "lbf", "Hook load on the weight indicator"),
                    ("upward_force", "lbf", "Pressure force on the pipe end"),
                    ("downward_force", "lbf", "Buoyed string weight"),
                    ("pump_strokes", "stk", "Cumulative pump strokes"),
                    ("maasp", "psi", "Maximum allowable annular surface pressure"),
                    ("kill_mud_weight", "ppg", "Kill mud weight"),
                    ("icp", "psi", "Initial circulating pressure"),
                    ("fcp", "psi", "Final circulating pressure"),
                    ("target_pressure", "psi", "Operator target pressure"),
                ]
            )
        )

        self.input_registers.extend(
            [
                RegisterDefinition(
                    address=self.ENUM_BASE_ADDRESS,
                    name="sim_status",
                    register_type=RegisterType.INPUT_REGISTER,
                    data_type="uint16",
                    units="code",
                    description="Simulation status (0=READY, 1=RUNNING, 2=PAUSED)",
                ),
                RegisterDefinition(
                    address=self.ENUM_BASE_ADDRESS + 1,
                    name="sim_mode",
                    register_type=RegisterType.INPUT_REGISTER,
                    data_type="uint16",
                    units="code",
                    description="Simulation mode (declaration order)",
                ),
            ]
        )

    def _define_holding_registers(self):
        """
        Define holding registers (operator setpoints).

        Address range: 40001+ (Modbus convention).
        """
        rows = [
            ("choke_position", "%", "Choke opening (0 = shut, 100 = fully open)"),
            ("sim_speed", "x", "Simulation speed multiplier"),
            ("winch_speed", "ft/min", "Winch line speed"),
            ("mill_speed", "rpm", "Mill rotation speed"),
            ("circ_rate", "bbl/min", "Circulation rate"),
        ]
        self.holding_registers.extend(
            RegisterDefinition(
                address=2 * i,
                name=name,
                register_type=RegisterType.HOLDING_REGISTER,
                data_type="float32",
                units=units,
                description=description,
                read_only=False,
            )
            for i, (name, units, description) in enumerate(rows)
        )

    def _define_coils(self):
        """
        Define coils (edge-triggered operator commands).

        A master sets a coil to 1; the bridge acts once and clears it.
        """
        self.coils.extend(
            _bits(
                [
                    ("start_command", "Start/resume simulation"),
                    ("pause_command", "Pause simulation"),
                    ("esd_command", "Emergency shut-down sequence"),
                    ("bleed_command", "Bleed surface pressure by one step"),
                ],
                RegisterType.COIL,
            )
        )
        self.coils.extend(
            _bits(
                [(f"toggle_{v.value}", f"Toggle {v.value} valve") for v in Valve],
                RegisterType.COIL,
                start=10,
            )
        )

    def _define_discrete_inputs(self):
        """Define discrete inputs (valve positions and alarm bits)."""
        self.discrete_inputs.extend(
            _bits(
                [(f"{v.value}_closed", f"{v.value} valve closed") for v in Valve],
                RegisterType.DISCRETE_INPUT,
            )
        )
        self.discrete_inputs.extend(
            _bits(
                [
                    ("maasp_breach", "Surface pressure above MAASP"),
                    ("drawworks_engaged", "Drawworks engaged"),
                    ("top_drive_active", "Top drive rotating"),
                ],
                RegisterType.DISCRETE_INPUT,
                start=10,
            )
        )

    @property
    def all_registers(self) -> List[RegisterDefinition]:
        return (
            self.input_registers
            + self.holding_registers
            + self.coils
            + self.discrete_inputs
        )

    def _validate_all(self):
        """Validate all register definitions and check for conflicts."""
        names = set()
        for reg in self.all_registers:
            reg.validate()
            if reg.name in names:
                raise ValueError(f"Duplicate register name: {reg.name}")
            names.add(reg.name)

        self._check_address_conflicts(self.input_registers, "Input registers")
        self._check_address_conflicts(self.holding_registers, "Holding registers")
        self._check_address_conflicts(self.coils, "Coils")
        self._check_address_conflicts(self.discrete_inputs, "Discrete inputs")

    @staticmethod
    def _check_address_conflicts(registers: List[RegisterDefinition], type_name: str):
        """Check for overlapping register addresses."""
        ranges = sorted(
            (reg.address, reg.address + reg.size_words - 1, reg.name) for reg in registers
        )
        for (start, end, name), (next_start, next_end, next_name) in zip(
            ranges, ranges[1:]
        ):
            if end >= next_start:
                raise ValueError(
                    f"{type_name} address conflict: {name} [{start}-{end}] "
                    f"overlaps with {next_name} [{next_start}-{next_end}]"
                )

    def get_register_by_name(self, name: str) -> Optional[RegisterDefinition]:
        """
        Find register definition by name.

        Returns:
            RegisterDefinition if found, None otherwise
        """
        return self._by_name.get(name)

    def get_register_by_address(
        self, address: int, register_type: RegisterType
    ) -> Optional[RegisterDefinition]:
        """Find the register covering an address of the given type."""
        registers = {
            RegisterType.INPUT_REGISTER: self.input_registers,
            RegisterType.HOLDING_REGISTER: self.holding_registers,
            RegisterType.COIL: self.coils,
            RegisterType.DISCRETE_INPUT: self.discrete_inputs,
        }.get(register_type, [])

        for reg in registers:
            if reg.address <= address < reg.address + reg.size_words:
                return reg
        return None

    def print_register_map(self):
        """Print complete register map for documentation."""
        sections = [
            ("INPUT REGISTERS (Simulation Readings)", self.input_registers, 30001),
            ("HOLDING REGISTERS (Operator Setpoints)", self.holding_registers, 40001),
            ("COILS (Operator Commands)", self.coils, 1),
            ("DISCRETE INPUTS (Status Bits)", self.discrete_inputs, 10001),
        ]

        print("=" * 80)
        print("MODBUS REGISTER MAP")
        print("=" * 80)

        for title, registers, offset in sections:
            print(f"\n{title}")
            print("-" * 80)
            print(f"{'Address':<12} {'Name':<24} {'Type':<8} {'Units':<8} Description")
            print("-" * 80)
            for reg in registers:
                modbus_addr = offset + reg.address
                if reg.size_words == 2:
                    addr_str = f"{modbus_addr}-{modbus_addr + 1}"
                else:
                    addr_str = str(modbus_addr)
                print(
                    f"{addr_str:<12} {reg.name:<24} {reg.data_type:<8} "
                    f"{reg.units:<8} {reg.description}"
                )

        print("\n" + "=" * 80)


if __name__ == "__main__":
    ModbusRegisterMap().print_register_map()
