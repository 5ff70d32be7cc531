"""
Main Simulation Orchestrator
============================

Command-line entry point for the well-control simulator.

    python -m wc_simulator --mode GAS_MIGRATION --duration 120

Validates the well configuration, logs the kill sheet, runs a session in
the requested mode and bridges it to a Modbus/TCP operator panel.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

import argparse
import json
import logging
import signal
import sys
import threading
import time
from contextlib import suppress
from typing import List, Optional

import numpy as np

from .core import (
    BleedPressure,
    CalculationResults,
    ConfigurationError,
    EmergencySequence,
    SetChokePosition,
    SetCircRate,
    SetMillSpeed,
    SetMode,
    SetSpeed,
    SetStatus,
    SetWinchDirection,
    SetWinchSpeed,
    SimStatus,
    SimulationMode,
    SimulationState,
    ToggleValve,
    Valve,
    WellConfiguration,
    WinchDirection,
    current_bhp,
    is_maasp_breached,
)
from .core.hydraulics import (
    equivalent_mud_weight,
    grease_injection_margin,
    snubbing_balance_point,
)
from .core.physics import PIPE_AREA_SQIN
from .core.state import Drawworks, TopDrive
from .modbus import ModbusRegisterMap, ModbusServerConfig, ModbusSlave
from .modbus.register_map import MODE_CODES, STATUS_CODES
from .session import SessionConfig, SimulationSession

logger = logging.getLogger(__name__)

# Operator setpoint bounds (zero-trust clamping at the Modbus boundary)
CHOKE_LIMITS = (0.0, 100.0)  # [%]
SPEED_LIMITS = (0.5, 5.0)  # [x]
WINCH_SPEED_LIMITS = (0.0, 500.0)  # [ft/min]
MILL_SPEED_LIMITS = (0.0, 300.0)  # [rpm]
CIRC_RATE_LIMITS = (0.0, 20.0)  # [bbl/min]

BLEED_STEP_PSI = 50.0  # [psi] Pressure removed per bleed command
BRIDGE_INTERVAL_S = 0.2  # [s] Modbus publish/poll period
LOG_INTERVAL_S = 5.0  # [s] Progress log period

shutdown_requested = threading.Event()


def signal_handler(sig, frame):
    """Handle Ctrl+C / SIGTERM for clean shutdown."""
    logger.info("Shutdown signal received. Stopping simulation...")
    shutdown_requested.set()


def validate_setpoint(value: float, limits, default: float) -> float:
    """Clamp an operator setpoint into its bounds; NaN/inf fall back to default."""
    if not isinstance(value, (int, float)) or not np.isfinite(value):
        return default
    low, high = limits
    return float(np.clip(value, low, high))


def publish_snapshot(
    slave: ModbusSlave,
    state: SimulationState,
    results: CalculationResults,
    config: WellConfiguration,
):
    """Write one state snapshot to the input registers and status bits."""
    readings = {
        "surface_pressure": state.surface_pressure,
        "bottom_hole_pressure": current_bhp(state, config),
        "gas_depth": state.gas_depth,
        "gas_volume": state.gas_volume,
        "tool_depth": state.tool_depth,
        "indicated_weight": state.indicated_weight,
        "upward_force": state.upward_force,
        "downward_force": state.downward_force,
        "pump_strokes": state.current_strokes,
        "maasp": results.maasp,
        "kill_mud_weight": results.kill_mud_weight,
        "icp": results.icp,
        "fcp": results.fcp,
        "target_pressure": state.target_pressure,
        "sim_status": STATUS_CODES[state.status],
        "sim_mode": MODE_CODES[state.mode],
    }
    for name, value in readings.items():
        slave.update_input_register(name, value)

    for valve in Valve:
        slave.update_discrete_input(f"{valve.value}_closed", state.valves.is_closed(valve))
    slave.update_discrete_input("maasp_breach", is_maasp_breached(state, results))
    slave.update_discrete_input(
        "drawworks_engaged", state.rig_floor.drawworks is Drawworks.ENGAGED
    )
    slave.update_discrete_input(
        "top_drive_active", state.rig_floor.top_drive is TopDrive.ACTIVE
    )


def seed_setpoints(slave: ModbusSlave, state: SimulationState):
    """Initialise holding registers from the current state."""
    slave.write_holding_register("choke_position", state.choke_position)
    slave.write_holding_register("sim_speed", state.speed)
    slave.write_holding_register("winch_speed", state.winch_speed)
    slave.write_holding_register("mill_speed", state.mill_speed)
    slave.write_holding_register("circ_rate", state.circ_rate)


def poll_operator_commands(slave: ModbusSlave, state: SimulationState) -> List:
    """
    Translate operator writes into actions (zero-trust).

    Setpoints produce an action only when the clamped value differs from
    the state. Command coils are edge-triggered: each set coil yields one
    action and is cleared.

    Returns:
        Actions to dispatch, in order
    """
    actions = []

    setpoints = [
        ("choke_position", CHOKE_LIMITS, state.choke_position, SetChokePosition),
        ("sim_speed", SPEED_LIMITS, state.speed, SetSpeed),
        ("winch_speed", WINCH_SPEED_LIMITS, state.winch_speed, SetWinchSpeed),
        ("mill_speed", MILL_SPEED_LIMITS, state.mill_speed, SetMillSpeed),
        ("circ_rate", CIRC_RATE_LIMITS, state.circ_rate, SetCircRate),
    ]
    for name, limits, current, action_cls in setpoints:
        value = validate_setpoint(slave.read_holding_register(name), limits, current)
        if not np.isclose(value, current, rtol=0.0, atol=1e-4):
            actions.append(action_cls(value))

    commands = [
        ("esd_command", EmergencySequence),
        ("pause_command", lambda: SetStatus(SimStatus.PAUSED)),
        ("start_command", lambda: SetStatus(SimStatus.RUNNING)),
        ("bleed_command", lambda: BleedPressure(BLEED_STEP_PSI)),
    ]
    commands.extend(
        (f"toggle_{valve.value}", lambda valve=valve: ToggleValve(valve))
        for valve in Valve
    )
    for coil, make_action in commands:
        if slave.read_coil(coil):
            slave.write_coil(coil, False)
            actions.append(make_action())

    return actions


def load_configuration(path: Optional[str]) -> WellConfiguration:
    """Load and validate the well configuration (defaults when no file)."""
    if path is None:
        config = WellConfiguration()
    else:
        with open(path, "r", encoding="utf-8") as fh:
            config = WellConfiguration.from_dict(json.load(fh))
    config.validate()
    return config


def log_kill_sheet(config: WellConfiguration, results: CalculationResults):
    logger.info("KILL SHEET")
    logger.info(
        f"  MW={config.current_mud_weight:.2f} ppg | KMW={results.kill_mud_weight:.2f} ppg"
    )
    logger.info(
        f"  ICP={results.icp:.0f} psi | FCP={results.fcp:.0f} psi | "
        f"MAASP={results.maasp:.0f} psi"
    )
    logger.info(
        f"  Volume={results.total_volume:.1f} bbl | Strokes to bit={results.strokes_to_bit}"
    )
    logger.info(
        f"  EMW at shoe={equivalent_mud_weight(config):.2f} ppg | "
        f"Grease injection={grease_injection_margin(config.sicp):.0f} psi"
    )
    logger.info(
        f"  CO2e={results.co2e_total:.0f} kg "
        f"(power {results.co2e_breakdown.power:.0f}, "
        f"fluid {results.co2e_breakdown.fluid:.0f}, "
        f"weighting {results.co2e_breakdown.weight:.0f})"
    )


def log_progress(elapsed: float, state: SimulationState, config: WellConfiguration):
    logger.info(
        f"t={elapsed:.0f}s | {state.status.value} | "
        f"SP={state.surface_pressure:.0f} psi | "
        f"BHP={current_bhp(state, config):.0f} psi | "
        f"Gas={state.gas_depth:.0f} ft/{state.gas_volume:.2f} bbl | "
        f"Tool={state.tool_depth:.0f} ft | Strokes={state.current_strokes:.0f}"
    )
    if state.mode is SimulationMode.STRIPPING:
        balance = snubbing_balance_point(
            state.surface_pressure, PIPE_AREA_SQIN, state.downward_force
        )
        if balance > 1.0:
            logger.warning(f"Pipe-light: snubbing balance ratio {balance:.2f}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Well-Control Kill Sheet Simulator")
    parser.add_argument("--config", type=str, default=None, help="Well configuration JSON")
    parser.add_argument(
        "--mode",
        choices=[m.name for m in SimulationMode],
        default=SimulationMode.STANDARD_KILL.name,
        help="Operational scenario",
    )
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier")
    parser.add_argument(
        "--choke-position", type=float, default=0.0, help="Choke opening [%%]"
    )
    parser.add_argument(
        "--open-choke", action="store_true", help="Open the choke valve at start"
    )
    parser.add_argument(
        "--winch", choices=["IN", "OUT"], default=None, help="Winch direction"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=float("inf"),
        help="Wall-clock run time [seconds]",
    )
    parser.add_argument("--tick", type=float, default=0.1, help="Tick interval [seconds]")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Modbus bind address")
    parser.add_argument("--port", type=int, default=5020, help="Modbus TCP port")
    parser.add_argument(
        "--no-modbus", action="store_true", help="Run without Modbus server"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger.info("=" * 70)
    logger.info("WELL-CONTROL SIMULATOR")
    logger.info("=" * 70)

    # ========================================================================
    # PHASE 1: Configuration and kill sheet
    # ========================================================================
    try:
        config = load_configuration(args.config)
    except (ConfigurationError, OSError, json.JSONDecodeError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    try:
        session = SimulationSession(config, SessionConfig(tick_interval_s=args.tick))
    except ValueError as e:
        logger.error(f"Invalid session settings: {e}")
        return 1

    log_kill_sheet(session.config, session.results)

    # ========================================================================
    # PHASE 2: Modbus operator link
    # ========================================================================
    slave = None
    if not args.no_modbus:
        try:
            slave = ModbusSlave(
                ModbusRegisterMap(), ModbusServerConfig(host=args.host, port=args.port)
            )
            slave.start(blocking=False)
        except RuntimeError as e:
            logger.error(f"Modbus server startup failed: {e}")
            logger.warning("Continuing in no-Modbus mode")
            slave = None

    # ========================================================================
    # PHASE 3: Scenario setup and run loop
    # ========================================================================
    exit_code = 0
    previous_handlers = {
        sig: signal.signal(sig, signal_handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    shutdown_requested.clear()
    try:
        mode = SimulationMode[args.mode]
        session.dispatch(SetMode(mode, config))
        session.dispatch(SetSpeed(validate_setpoint(args.speed, SPEED_LIMITS, 1.0)))
        session.dispatch(SetChokePosition(args.choke_position))
        if args.open_choke and session.state.valves.is_closed(Valve.CHOKE):
            session.dispatch(ToggleValve(Valve.CHOKE))
        if args.winch:
            session.dispatch(SetWinchDirection(WinchDirection(args.winch)))

        if slave:
            seed_setpoints(slave, session.state)

        session.dispatch(SetStatus(SimStatus.RUNNING))
        logger.info(f"Running {mode.label} - press Ctrl+C to stop")

        start = time.monotonic()
        next_log = start

        while not shutdown_requested.is_set():
            now = time.monotonic()
            elapsed = now - start
            if elapsed >= args.duration:
                logger.info("Duration reached")
                break

            state = session.state
            if slave:
                publish_snapshot(slave, state, session.results, session.config)
                for action in poll_operator_commands(slave, state):
                    state = session.dispatch(action)
            elif state.status is SimStatus.PAUSED:
                logger.info("Simulation paused with no operator link; stopping")
                break

            if now >= next_log:
                log_progress(elapsed, state, session.config)
                next_log = now + LOG_INTERVAL_S

            shutdown_requested.wait(BRIDGE_INTERVAL_S)

    except Exception:
        logger.exception("Simulation error")
        exit_code = 1

    finally:
        logger.info("Shutting down...")
        final = session.state
        session.close()

        if slave:
            with suppress(Exception):
                slave.stop()

        for event in list(final.history)[:5]:
            logger.info(f"  [{event.type.value}] {event.message}")
        logger.info("Simulation stopped cleanly")

        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
