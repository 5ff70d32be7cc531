"""
Modbus Protocol Encoding/Decoding
=================================

Data conversion between Python values and 16-bit Modbus registers:
- float ↔ register pair (IEEE 754 single precision, big-endian)
- int ↔ single register (int16 / uint16)
- bool ↔ coil / discrete input bit

No protocol logic and no validation beyond data type and range.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import struct
from typing import List

import numpy as np


class ModbusEncoder:
    """Python values to Modbus register words."""

    @staticmethod
    def float32_to_registers(value: float) -> List[int]:
        """
        Encode a float as two 16-bit registers (high word first).

        Raises:
            ValueError: If the value is not finite or overflows float32
        """
        if not np.isfinite(value):
            raise ValueError(f"Cannot encode non-finite value: {value}")
        if abs(value) > np.finfo(np.float32).max:
            raise ValueError(f"Value {value} overflows float32")

        high, low = struct.unpack(">HH", struct.pack(">f", value))
        return [high, low]

    @staticmethod
    def int16_to_register(value: int) -> int:
        if not -32768 <= value <= 32767:
            raise ValueError(f"int16 value {value} out of range [-32768, 32767]")
        (result,) = struct.unpack(">H", struct.pack(">h", value))
        return result

    @staticmethod
    def uint16_to_register(value: int) -> int:
        if not 0 <= value <= 65535:
            raise ValueError(f"uint16 value {value} out of range [0, 65535]")
        return value

    @staticmethod
    def bool_to_coil(value: bool) -> int:
        return 1 if value else 0

    @classmethod
    def encode(cls, value, data_type: str) -> List[int]:
        """Encode a value according to a register data type."""
        if data_type == "float32":
            return cls.float32_to_registers(float(value))
        if data_type == "int16":
            return [cls.int16_to_register(int(value))]
        if data_type == "uint16":
            return [cls.uint16_to_register(int(value))]
        if data_type == "bool":
            return [cls.bool_to_coil(value)]
        raise ValueError(f"Unknown data type: {data_type}")


class ModbusDecoder:
    """Modbus register words to Python values (inverse of ModbusEncoder)."""

    @staticmethod
    def registers_to_float32(high: int, low: int) -> float:
        (result,) = struct.unpack(">f", struct.pack(">HH", high, low))
        return result

    @staticmethod
    def register_to_int16(value: int) -> int:
        (result,) = struct.unpack(">h", struct.pack(">H", value))
        return result

    @staticmethod
    def register_to_uint16(value: int) -> int:
        return value

    @staticmethod
    def coil_to_bool(value: int) -> bool:
        return bool(value)

    @classmethod
    def decode(cls, words: List[int], data_type: str):
        """Decode register words according to a register data type."""
        if data_type == "float32":
            return cls.registers_to_float32(words[0], words[1])
        if data_type == "int16":
            return cls.register_to_int16(words[0])
        if data_type == "uint16":
            return cls.register_to_uint16(words[0])
        if data_type == "bool":
            return cls.coil_to_bool(words[0])
        raise ValueError(f"Unknown data type: {data_type}")


def validate_encoding():
    """Validate encode/decode round-trip on representative well values."""
    encoder = ModbusEncoder()
    decoder = ModbusDecoder()

    # Test 1: float32 (pressures, depths)
    for value in (0.0, 550.0, 962.0, 8500.0, -7500.0, 11.744):
        words = encoder.float32_to_registers(value)
        decoded = decoder.registers_to_float32(*words)
        if abs(decoded - value) > abs(value) * 1e-6 + 1e-6:
            raise AssertionError(f"float32 round-trip failed: {value} -> {decoded}")

    # Test 2: int16 sign handling
    for value in (-32768, -1, 0, 32767):
        if decoder.register_to_int16(encoder.int16_to_register(value)) != value:
            raise AssertionError(f"int16 round-trip failed: {value}")

    # Test 3: Range rejection
    try:
        encoder.uint16_to_register(70000)
    except ValueError:
        pass
    else:
        raise AssertionError("uint16 overflow not rejected")

    print("✓ All encoding validations passed")


if __name__ == "__main__":
    validate_encoding()
