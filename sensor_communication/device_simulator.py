#!/usr/bin/env python3
"""
device_simulator.py

Emulates the EC sensor at the serial-port level so the whole stack (framing, CRC,
register codec, discovery, calibration, sampling) can run without hardware.

Classes:
  - SimulatedSensor: a Modbus RTU slave with a holding-register bank. It answers
    0x03 / 0x06 / 0x10 requests addressed to its slave ID, stays silent for other IDs
    and corrupt frames, and records every request it receives. Fault hooks let tests
    make reads or writes at given registers fail, or make written registers read back
    something else.
  - SimulatedSerialPort: implements the subset of serial.Serial the communicator uses
    (write, read, flush, reset_input_buffer, close, is_open, in_waiting).
  - SimulatedBus: a serial factory mapping port names to sensors. Unknown ports raise
    serial.SerialException like a missing device node; ports mapped to None open but
    never answer. Open/close events are recorded in order.

Usage Example:
    sensor = SimulatedSensor(config={"temperature": 18.0, "raw_ec": 11.2})
    bus = SimulatedBus({"/dev/ttyUSB0": sensor})
    with Connection(DeviceEndpoint("/dev/ttyUSB0"), serial_factory=bus) as connection:
        print(connection.channel.read_float(60).value)
"""

import logging
import random
import time
from typing import Any, Dict, List, Optional, Set, Tuple

import serial

from sensor_communication.compensation import REFERENCE_TEMPERATURE, SENSOR_FIXED_K
from sensor_communication.config import DEFAULT_SLAVE_ID
from sensor_communication.errors import ProtocolError
from sensor_communication.protocols.float_codec import decode_float, encode_float
from sensor_communication.protocols.modbus_rtu_protocol import (
    READ_HOLDING_REGISTERS,
    WRITE_MULTIPLE_REGISTERS,
    WRITE_SINGLE_REGISTER,
    ModbusRequest,
    ModbusRTUProtocol,
)
from sensor_communication.registers import (
    CALIBRATION_COEFFICIENT_REGISTER,
    CALIBRATION_MODE_REGISTER,
    RAW_EC_REGISTER,
    SENSOR_EC_REGISTER,
    TEMPERATURE_REGISTER,
    TEST_COEFFICIENT_REGISTER,
)

ILLEGAL_DATA_ADDRESS = 0x02
SLAVE_DEVICE_FAILURE = 0x04
SLAVE_DEVICE_BUSY = 0x06

DEFAULT_SENSOR_CONFIG: Dict[str, Any] = {
    "temperature": 22.5,        # °C
    "raw_ec": 12.3,             # mS/cm
    "noise_level": 0.0,         # relative noise applied on every measurement read
    "response_delay": 0.0,      # seconds
    "error_probability": 0.0,   # chance of a "device busy" exception reply
}


class SimulatedSensor:
    """
    Simulated Modbus RTU slave with the EC sensor's register map.
    """

    def __init__(self, slave_id: int = DEFAULT_SLAVE_ID, config: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        self.slave_id = slave_id
        self.config = dict(DEFAULT_SENSOR_CONFIG)
        self.config.update(config or {})
        self.logger = logger or logging.getLogger("DeviceSimulator")
        self.protocol = ModbusRTUProtocol(slave_id=slave_id, logger=self.logger)
        self.registers: Dict[int, int] = {}
        self.requests: List[ModbusRequest] = []
        self.fail_reads_at: Set[int] = set()
        self.fail_writes_at: Set[int] = set()
        self.write_overrides: Dict[int, List[int]] = {}
        self.silent = False

        self.registers[1] = slave_id
        self.registers[2] = 3
        self.registers[TEST_COEFFICIENT_REGISTER] = 200
        self.registers[CALIBRATION_MODE_REGISTER] = 0
        self.set_float(CALIBRATION_COEFFICIENT_REGISTER, 0.0)
        self.set_measurements(self.config["temperature"], self.config["raw_ec"])

    # ------------------------------------------------------------------
    # Register bank
    # ------------------------------------------------------------------

    def set_float(self, address: int, value: float) -> None:
        self.registers[address], self.registers[address + 1] = encode_float(value)

    def get_float(self, address: int) -> float:
        return decode_float(self.registers.get(address, 0), self.registers.get(address + 1, 0))

    def set_measurements(self, temperature: float, raw_ec: float) -> None:
        """
        Stores temperature and raw EC, and the sensor's own fixed-k compensated EC.
        """
        self.set_float(TEMPERATURE_REGISTER, temperature)
        self.set_float(RAW_EC_REGISTER, raw_ec)
        denominator = 1.0 + SENSOR_FIXED_K * (temperature - REFERENCE_TEMPERATURE)
        self.set_float(SENSOR_EC_REGISTER, raw_ec / denominator if denominator > 0 else 0.0)

    def writes(self) -> List[Tuple[int, List[int]]]:
        """
        Every write request received, in order, as (address, words).
        """
        return [(r.address, list(r.words)) for r in self.requests
                if r.function in (WRITE_SINGLE_REGISTER, WRITE_MULTIPLE_REGISTERS)]

    # ------------------------------------------------------------------
    # Modbus server
    # ------------------------------------------------------------------

    def handle_frame(self, frame: bytes) -> bytes:
        """
        Processes one request frame and returns the reply bytes (empty for no reply).
        """
        if self.silent:
            return b""
        try:
            request = self.protocol.parse_request(frame)
        except ProtocolError as e:
            self.logger.debug(f"Simulator ignored frame {frame.hex(' ')}: {str(e)}")
            return b""
        if request.slave_id != self.slave_id:
            return b""

        self.requests.append(request)
        delay = self.config.get("response_delay", 0.0)
        if delay:
            time.sleep(delay)
        if random.random() < self.config.get("error_probability", 0.0):
            return self.protocol.create_exception_response(request.function, SLAVE_DEVICE_BUSY)

        span = set(range(request.address, request.address + request.count))
        if request.function == READ_HOLDING_REGISTERS:
            if span & self.fail_reads_at:
                return self.protocol.create_exception_response(request.function, SLAVE_DEVICE_FAILURE)
            self._refresh_measurements(span)
            words = [self.registers.get(a, 0) for a in range(request.address, request.address + request.count)]
            return self.protocol.create_read_response(words)

        if span & self.fail_writes_at:
            return self.protocol.create_exception_response(request.function, ILLEGAL_DATA_ADDRESS)
        stored = self.write_overrides.get(request.address, request.words)
        for offset, word in enumerate(stored):
            self.registers[request.address + offset] = word
        self.logger.debug(f"Simulator stored {stored} at register {request.address}")
        return self.protocol.create_write_response(request)

    def _refresh_measurements(self, span: Set[int]) -> None:
        noise = self.config.get("noise_level", 0.0)
        if not noise or not span & {TEMPERATURE_REGISTER, RAW_EC_REGISTER}:
            return
        temperature = self.config["temperature"] * (1 + random.uniform(-noise, noise))
        raw_ec = self.config["raw_ec"] * (1 + random.uniform(-noise, noise))
        self.set_measurements(temperature, raw_ec)


class SimulatedSerialPort:
    """
    Stand-in for serial.Serial connected to at most one SimulatedSensor.
    """

    def __init__(self, port: str, sensor: Optional[SimulatedSensor] = None, bus: "Optional[SimulatedBus]" = None,
                 baudrate: int = 9600, timeout: float = 1.0, **settings):
        self.port = port
        self.sensor = sensor
        self.bus = bus
        self.baudrate = baudrate
        self.timeout = timeout
        self.settings = settings
        self.is_open = True
        self._rx = bytearray()

    @property
    def in_waiting(self) -> int:
        return len(self._rx)

    def write(self, data: bytes) -> int:
        if not self.is_open:
            raise serial.SerialException("Attempting to use a port that is not open")
        if self.sensor is not None:
            self._rx.extend(self.sensor.handle_frame(bytes(data)))
        return len(data)

    def read(self, size: int = 1) -> bytes:
        if not self.is_open:
            raise serial.SerialException("Attempting to use a port that is not open")
        chunk = bytes(self._rx[:size])
        del self._rx[:size]
        return chunk

    def flush(self) -> None:
        pass

    def reset_input_buffer(self) -> None:
        self._rx.clear()

    def reset_output_buffer(self) -> None:
        pass

    def close(self) -> None:
        if self.is_open:
            self.is_open = False
            if self.bus is not None:
                self.bus._closed(self)


class SimulatedBus:
    """
    Serial factory over a fixed set of simulated ports.
    """

    def __init__(self, devices: Dict[str, Optional[SimulatedSensor]]):
        self.devices = devices
        self.events: List[Tuple[str, str]] = []
        self.open_ports: List[str] = []
        self.max_open = 0

    def __call__(self, port: str, **settings) -> SimulatedSerialPort:
        if port not in self.devices:
            self.events.append(("missing", port))
            raise serial.SerialException(f"could not open port {port}: No such file or directory")
        self.events.append(("open", port))
        self.open_ports.append(port)
        self.max_open = max(self.max_open, len(self.open_ports))
        return SimulatedSerialPort(port, self.devices[port], bus=self, **settings)

    def _closed(self, ser: SimulatedSerialPort) -> None:
        self.events.append(("close", ser.port))
        self.open_ports.remove(ser.port)
