"""
Modbus TCP Slave Server
=======================

Modbus/TCP server exposing the well-control telemetry.

The server runs its own asyncio event loop in a background thread; the
simulation loop updates readings and polls operator registers through the
thread-safe typed accessors below.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import asyncio
import logging
import threading
from contextlib import suppress
from dataclasses import dataclass
from typing import Dict, Optional

from pymodbus import ModbusDeviceIdentification
from pymodbus.datastore import (
    ModbusDeviceContext,
    ModbusSequentialDataBlock,
    ModbusServerContext,
)
from pymodbus.server import ServerAsyncStop, StartAsyncTcpServer

from .protocols import ModbusDecoder, ModbusEncoder
from .register_map import ModbusRegisterMap, RegisterDefinition, RegisterType

logger = logging.getLogger(__name__)

# The device context shifts protocol addresses by one before reaching a block
_BLOCK_OFFSET = 1


@dataclass
class ModbusServerConfig:
    """Configuration for Modbus TCP server."""

    host: str = "0.0.0.0"
    port: int = 5020
    unit_id: int = 1

    # Server identification
    vendor_name: str = "Well Control Simulator"
    product_code: str = "WCS-100"
    product_name: str = "Kill Sheet Trainer"
    model_name: str = "Virtual Choke Panel v1.0"
    version: str = "1.0.0"

    # Timeouts
    startup_timeout_sec: float = 5.0
    shutdown_timeout_sec: float = 3.0


class ModbusSlave:
    """
    Modbus TCP slave server for the well-control simulator.

    The server is created inside its own event loop (pymodbus 3.x requires
    StartAsyncTcpServer to run in an async context).
    """

    def __init__(
        self,
        register_map: Optional[ModbusRegisterMap] = None,
        config: Optional[ModbusServerConfig] = None,
    ):
        self.register_map = register_map or ModbusRegisterMap()
        self.config = config or ModbusServerConfig()

        self.encoder = ModbusEncoder()
        self.decoder = ModbusDecoder()

        self._create_data_blocks()

        device = ModbusDeviceContext(
            di=self.di_block, co=self.co_block, hr=self.hr_block, ir=self.ir_block
        )
        self.context = ModbusServerContext(
            devices={self.config.unit_id: device}, single=False
        )

        self.identity = ModbusDeviceIdentification()
        self.identity.VendorName = self.config.vendor_name
        self.identity.ProductCode = self.config.product_code
        self.identity.ProductName = self.config.product_name
        self.identity.ModelName = self.config.model_name
        self.identity.MajorMinorRevision = self.config.version

        # Lifecycle management
        self.server_thread: Optional[threading.Thread] = None
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None

        # Synchronization
        self._lock = threading.RLock()
        self._running = threading.Event()
        self._server_ready = threading.Event()
        self._shutdown_requested = threading.Event()

        logger.info(
            f"Modbus slave initialized: {self.config.host}:{self.config.port}, "
            f"unit_id={self.config.unit_id}"
        )

    def _create_data_blocks(self):
        """Create fixed-size data blocks covering the register map."""

        def extent(registers, minimum):
            end = max((r.address + r.size_words for r in registers), default=0)
            return max(end + _BLOCK_OFFSET + 10, minimum)

        reg_map = self.register_map
        self.ir_block = ModbusSequentialDataBlock(0, [0] * extent(reg_map.input_registers, 200))
        self.hr_block = ModbusSequentialDataBlock(0, [0] * extent(reg_map.holding_registers, 100))
        self.co_block = ModbusSequentialDataBlock(0, [0] * extent(reg_map.coils, 100))
        self.di_block = ModbusSequentialDataBlock(0, [0] * extent(reg_map.discrete_inputs, 100))

        self._blocks = {
            RegisterType.INPUT_REGISTER: self.ir_block,
            RegisterType.HOLDING_REGISTER: self.hr_block,
            RegisterType.COIL: self.co_block,
            RegisterType.DISCRETE_INPUT: self.di_block,
        }

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------

    def _lookup(self, name: str, register_type: RegisterType) -> RegisterDefinition:
        reg = self.register_map.get_register_by_name(name)
        if reg is None or reg.register_type != register_type:
            raise ValueError(f"Invalid register reference: {name}")
        return reg

    def _write(self, name: str, register_type: RegisterType, value):
        reg = self._lookup(name, register_type)
        words = self.encoder.encode(value, reg.data_type)
        with self._lock:
            self._blocks[register_type].setValues(reg.address + _BLOCK_OFFSET, words)

    def _read(self, name: str, register_type: RegisterType):
        reg = self._lookup(name, register_type)
        with self._lock:
            words = self._blocks[register_type].getValues(
                reg.address + _BLOCK_OFFSET, reg.size_words
            )
        return self.decoder.decode(list(words), reg.data_type)

    def update_input_register(self, name: str, value: float):
        """Publish a reading (thread-safe)."""
        self._write(name, RegisterType.INPUT_REGISTER, value)

    def read_input_register(self, name: str) -> float:
        return self._read(name, RegisterType.INPUT_REGISTER)

    def update_discrete_input(self, name: str, value: bool):
        """Publish a status bit (thread-safe)."""
        self._write(name, RegisterType.DISCRETE_INPUT, value)

    def read_discrete_input(self, name: str) -> bool:
        return self._read(name, RegisterType.DISCRETE_INPUT)

    def write_holding_register(self, name: str, value: float):
        """Seed or overwrite an operator setpoint (thread-safe)."""
        self._write(name, RegisterType.HOLDING_REGISTER, value)

    def read_holding_register(self, name: str) -> float:
        return self._read(name, RegisterType.HOLDING_REGISTER)

    def write_coil(self, name: str, value: bool):
        self._write(name, RegisterType.COIL, value)

    def read_coil(self, name: str) -> bool:
        return self._read(name, RegisterType.COIL)

    def get_all_holding_registers(self) -> Dict[str, float]:
        return {
            reg.name: self.read_holding_register(reg.name)
            for reg in self.register_map.holding_registers
        }

    def get_all_coils(self) -> Dict[str, bool]:
        return {reg.name: self.read_coil(reg.name) for reg in self.register_map.coils}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, blocking: bool = True):
        """
        Start Modbus server.

        Args:
            blocking: If True, block until the server stops;
                      if False, run in a background thread

        Raises:
            RuntimeError: If the background server does not come up in time
        """
        if self._running.is_set():
            logger.warning("Modbus server already running")
            return

        self._running.set()
        self._server_ready.clear()
        self._shutdown_requested.clear()

        if blocking:
            self._run_server()
            return

        self.server_thread = threading.Thread(
            target=self._run_server, daemon=True, name="ModbusTCPServer"
        )
        self.server_thread.start()

        if not self._server_ready.wait(timeout=self.config.startup_timeout_sec):
            self._running.clear()
            raise RuntimeError("Server startup timeout")
        if not self._running.is_set():
            raise RuntimeError("Server failed to start")

        logger.info(f"Modbus server started on {self.config.host}:{self.config.port}")

    def _run_server(self):
        loop = None
        try:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self._event_loop = loop
            loop.run_until_complete(self._async_run_server())

        except Exception as e:
            logger.error(f"Modbus server error: {type(e).__name__}: {e}")
            self._running.clear()

        finally:
            # Unblock start() even on error
            self._server_ready.set()

            if loop and not loop.is_closed():
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                with suppress(Exception):
                    loop.run_until_complete(
                        asyncio.gather(*pending, return_exceptions=True)
                    )
                loop.close()

            self._event_loop = None

    async def _async_run_server(self):
        server_task = asyncio.create_task(
            StartAsyncTcpServer(
                context=self.context,
                identity=self.identity,
                address=(self.config.host, self.config.port),
            )
        )
        try:
            # Give the listener a moment to bind before reporting ready
            await asyncio.sleep(0.1)
            if server_task.done():
                server_task.result()
            self._server_ready.set()

            while not self._shutdown_requested.is_set():
                if server_task.done():
                    server_task.result()
                    break
                await asyncio.sleep(0.1)
        finally:
            with suppress(Exception):
                await ServerAsyncStop()
            server_task.cancel()
            with suppress(asyncio.CancelledError, Exception):
                await server_task

    def stop(self):
        """Stop Modbus server (graceful shutdown)."""
        if not self._running.is_set():
            return

        self._shutdown_requested.set()
        self._running.clear()

        if self.server_thread and self.server_thread.is_alive():
            self.server_thread.join(timeout=self.config.shutdown_timeout_sec)
            if self.server_thread.is_alive():
                logger.warning("Server thread did not terminate cleanly")

        logger.info("Modbus server stopped")

    @property
    def is_running(self) -> bool:
        return self._running.is_set()
