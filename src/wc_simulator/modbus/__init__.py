"""
Modbus Interface Package
========================

Modbus/TCP protocol adapter for the well-control simulator.

This package is a pure protocol layer:
- slave.py: Modbus TCP server
- register_map.py: Address space definition
- protocols.py: Data encoding/decoding

It does NOT run physics, validate operator commands or enforce safety
limits; the simulation loop does that (see wc_simulator.__main__).

Usage Example:
>>> from wc_simulator.modbus import ModbusSlave, ModbusRegisterMap
>>> slave = ModbusSlave(ModbusRegisterMap())
>>> slave.start(blocking=False)
>>> slave.update_input_register("surface_pressure", 550.0)
>>> choke = slave.read_holding_register("choke_position")

Architecture:

┌─────────────────┐
│  Choke Panel /  │  Operator HMI or SCADA
│     SCADA       │
└────────┬────────┘
         │ Modbus/TCP
┌────────▼────────┐
│  ModbusSlave    │  Protocol adapter (this package)
└────────┬────────┘
         │
┌────────▼────────┐
│ SimulationSession│  Kill sheet + tick engine
└─────────────────┘

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

from .protocols import ModbusDecoder, ModbusEncoder, validate_encoding
from .register_map import (
    MODE_CODES,
    STATUS_CODES,
    ModbusRegisterMap,
    RegisterDefinition,
    RegisterType,
)
from .slave import ModbusServerConfig, ModbusSlave

__all__ = [
    "ModbusSlave",
    "ModbusServerConfig",
    "ModbusRegisterMap",
    "RegisterDefinition",
    "RegisterType",
    "STATUS_CODES",
    "MODE_CODES",
    "ModbusEncoder",
    "ModbusDecoder",
    "validate_encoding",
]
