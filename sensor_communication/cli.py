"""
Command-line interface for the Smart EC Logger.

Commands
--------
run       Discover the sensor, optionally calibrate it, then log readings.
scan      Discover the sensor and print the port it answers on.
diagnose  Print the diagnostic and calibration registers.
ports     List the candidate ports discovery would probe.

Examples
--------
Log with calibration mode 2 on an auto-discovered port:
```bash
$ smart-ec-logger run --mode 2
```

Try everything against the built-in simulator:
```bash
$ smart-ec-logger run --simulate --mode 0 --cycles 5
```
"""

import logging
import time
from functools import partial
from pathlib import Path
from typing import Optional

import click

from sensor_communication.calibration import CALIBRATION_PROCEDURES, CalibrationMode, CalibrationSequencer
from sensor_communication.communicator import Connection, TransportLocator, VerifiedWriter
from sensor_communication.communicator.serial_manager import configure_sensor_serial
from sensor_communication.config import (
    DEFAULT_CSV_PATH,
    DEFAULT_REFERENCE_STANDARD,
    DEFAULT_SLAVE_ID,
    DEFAULT_TOLERANCE,
    SAMPLE_INTERVAL,
    SESSION_TIMEOUT,
    candidate_ports,
    create_app_directories,
    setup_logging,
)
from sensor_communication.csv_logger import CsvLogger
from sensor_communication.dashboard import ConsoleDashboard
from sensor_communication.device_simulator import SimulatedBus, SimulatedSensor
from sensor_communication.diagnostics import format_diagnostics, read_diagnostics
from sensor_communication.errors import SensorNotFoundError, TransportError
from sensor_communication.models import DeviceEndpoint
from sensor_communication.sampling import SamplingLoop, Session

SIMULATED_PORT = "SIM0"

logger = logging.getLogger(__name__)


def _serial_factory(simulate: bool, rs485: bool):
    """
    Returns (serial_factory, candidate ports override) for the chosen transport.
    """
    if simulate:
        sensor = SimulatedSensor(config={"noise_level": 0.01})
        return SimulatedBus({SIMULATED_PORT: sensor}), [SIMULATED_PORT]
    if rs485:
        return partial(configure_sensor_serial, use_rs485=True), None
    return None, None


def _resolve_endpoint(port: Optional[str], slave_id: int, serial_factory, candidates,
                      system_ports: bool) -> DeviceEndpoint:
    if port:
        return DeviceEndpoint(port=port, slave_id=slave_id)
    locator = TransportLocator(serial_factory=serial_factory)
    try:
        return locator.discover(candidates or candidate_ports(include_system=system_ports), slave_id)
    except SensorNotFoundError as e:
        raise click.ClickException(
            f"Sensor not found! {e}. Check: USB connection, Slave ID (must be {slave_id}), Baud Rate (9600)"
        )


def _mode_menu() -> str:
    lines = ["", "SELECT CALIBRATION MODE"]
    for mode, procedure in CALIBRATION_PROCEDURES.items():
        lines.append(f"  [{mode.value}] {procedure.description}")
    return "\n".join(lines)


def connection_options(func):
    """
    Options shared by every command that talks to the sensor.
    """
    func = click.option("--port", default=None,
                        help="Use this port instead of scanning candidates.")(func)
    func = click.option("--slave-id", type=click.IntRange(1, 247), default=DEFAULT_SLAVE_ID,
                        show_default=True, help="Device address on the bus.")(func)
    func = click.option("--simulate", is_flag=True,
                        help="Talk to the built-in simulated sensor instead of hardware.")(func)
    func = click.option("--rs485", is_flag=True,
                        help="Drive RTS for half-duplex RS485 adapters.")(func)
    func = click.option("--system-ports", is_flag=True,
                        help="Also probe ports reported by the operating system.")(func)
    return func


@click.group()
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default="INFO", show_default=True)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Also write the log to this file.")
@click.option("--log-to-file", is_flag=True,
              help="Write the log to the application log directory.")
def cli(log_level: str, log_file: Optional[Path], log_to_file: bool):
    """
    Smart EC Logger - Modbus RTU conductivity sensor logger with dynamic
    temperature compensation.
    """
    if log_file is None and log_to_file:
        _, log_dir = create_app_directories()
        log_file = log_dir / "smart_ec_logger.log"
    setup_logging("sensor_communication", getattr(logging, log_level.upper()), log_file)


@cli.command()
@connection_options
@click.option("--mode", type=click.IntRange(0, 3), default=None,
              help="Calibration mode (0 skips). Prompted for when omitted.")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False, path_type=Path),
              default=DEFAULT_CSV_PATH, show_default=True)
@click.option("--reference", type=float, default=DEFAULT_REFERENCE_STANDARD, show_default=True,
              help="Reference standard (mS/cm) the dashboard scores against.")
@click.option("--tolerance", type=float, default=DEFAULT_TOLERANCE, show_default=True,
              help="Pass/fail tolerance (mS/cm) around the reference.")
@click.option("--interval", type=click.FloatRange(min=0), default=SAMPLE_INTERVAL, show_default=True,
              help="Seconds between sampling cycles.")
@click.option("--cycles", type=click.IntRange(min=1), default=None,
              help="Stop after this many cycles (default: run until Ctrl+C).")
@click.option("--max-failures", type=click.IntRange(min=0), default=0, show_default=True,
              help="Abort after this many failed cycles in a row (0 retries forever).")
@click.option("--dashboard/--no-dashboard", default=True, show_default=True)
@click.option("--diagnostics/--no-diagnostics", default=True, show_default=True,
              help="Show the diagnostic registers before calibration.")
def run(port, slave_id, simulate, rs485, system_ports, mode, csv_path, reference, tolerance,
        interval, cycles, max_failures, dashboard, diagnostics):
    """
    Discover the sensor, optionally calibrate it, then log readings.
    """
    serial_factory, candidates = _serial_factory(simulate, rs485)
    endpoint = _resolve_endpoint(port, slave_id, serial_factory, candidates, system_ports)

    try:
        with Connection(endpoint, timeout=SESSION_TIMEOUT, serial_factory=serial_factory) as connection:
            logger.info(f"Connected to sensor on {endpoint.port}")

            if diagnostics:
                click.echo(f"SENSOR DIAGNOSTIC REGISTERS - {endpoint.port}")
                click.echo(format_diagnostics(read_diagnostics(connection.channel)))

            if mode is None:
                click.echo(_mode_menu())
                mode = click.prompt("Enter mode", type=click.IntRange(0, 3), default=0)
            sequencer = CalibrationSequencer(VerifiedWriter(connection.channel))
            report = sequencer.execute(CalibrationMode.from_value(mode))
            if not report.success:
                logger.warning("Calibration failed! Continuing with sensor defaults.")

            session = Session(connection)
            with CsvLogger(csv_path) as csv_logger:
                sinks = [csv_logger]
                if dashboard:
                    sinks.append(ConsoleDashboard(endpoint.port, reference, tolerance))
                loop = SamplingLoop(session, sinks, interval=interval,
                                    max_consecutive_failures=max_failures or None)
                try:
                    emitted = loop.run(max_cycles=cycles)
                except KeyboardInterrupt:
                    loop.stop()
                    emitted = None
                    logger.info("Stopped by user")
    except TransportError as e:
        raise click.ClickException(str(e))

    if emitted is not None:
        click.echo(f"Logged {emitted} record(s) in {session.cycle_count} cycle(s) to {csv_path}")


@cli.command()
@connection_options
def scan(port, slave_id, simulate, rs485, system_ports):
    """
    Discover the sensor and print the port it answers on.
    """
    serial_factory, candidates = _serial_factory(simulate, rs485)
    if port:
        candidates = [port]
    endpoint = _resolve_endpoint(None, slave_id, serial_factory, candidates, system_ports)
    click.echo(endpoint.port)


@cli.command()
@connection_options
@click.option("--watch", type=click.IntRange(min=1), default=1, show_default=True,
              help="Number of snapshots to take.")
@click.option("--interval", type=click.FloatRange(min=0), default=SAMPLE_INTERVAL, show_default=True)
def diagnose(port, slave_id, simulate, rs485, system_ports, watch, interval):
    """
    Print the diagnostic and calibration registers.
    """
    serial_factory, candidates = _serial_factory(simulate, rs485)
    endpoint = _resolve_endpoint(port, slave_id, serial_factory, candidates, system_ports)
    try:
        with Connection(endpoint, timeout=SESSION_TIMEOUT, serial_factory=serial_factory) as connection:
            for snapshot in range(1, watch + 1):
                click.echo(f"SENSOR DIAGNOSTIC REGISTERS - {endpoint.port} - update {snapshot}")
                click.echo(format_diagnostics(read_diagnostics(connection.channel)))
                if snapshot < watch:
                    time.sleep(interval)
    except TransportError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option("--system-ports", is_flag=True, help="Include ports reported by the operating system.")
def ports(system_ports: bool):
    """
    List the candidate ports discovery would probe, in order.
    """
    for name in candidate_ports(include_system=system_ports):
        click.echo(name)
