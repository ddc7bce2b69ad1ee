"""
register_channel.py

Implements the RegisterChannel class: primitive Modbus register reads and writes
over an open serial port, plus float helpers built on the big-endian-word codec.

Every operation blocks until the reply arrives or the port's read timeout elapses.
Failures are raised, never returned: TransportError when the exchange did not
complete, ProtocolError when a reply arrived but is unusable.
"""

import logging
import time
from typing import List, Optional, Sequence, Union

import serial

from sensor_communication.config import DEFAULT_SLAVE_ID
from sensor_communication.errors import ProtocolError, TransportError
from sensor_communication.models import FloatRegisterPair
from sensor_communication.param_types import ParamType
from sensor_communication.protocols.float_codec import encode_float
from sensor_communication.protocols.modbus_rtu_protocol import (
    EXCEPTION_FLAG,
    EXCEPTION_RESPONSE_LENGTH,
    ModbusRTUProtocol,
)


class RegisterChannel:
    """
    Reads and writes holding registers of one slave over a serial-like port.
    """

    def __init__(self, ser, slave_id: int = DEFAULT_SLAVE_ID, logger: Optional[logging.Logger] = None):
        """
        Initializes the channel.

        Args:
            ser: An open serial.Serial (or an object with the same read/write interface).
            slave_id: The device address on the bus.
            logger: Optional logger instance.
        """
        self.ser = ser
        self.logger = logger or logging.getLogger(__name__)
        self.protocol = ModbusRTUProtocol(slave_id=slave_id, logger=self.logger)
        self._last_transaction = 0.0

    @property
    def slave_id(self) -> int:
        return self.protocol.slave_id

    def read_registers(self, address: int, count: int) -> List[int]:
        """
        Reads `count` consecutive holding registers starting at `address`.

        Returns:
            The register values, in address order.
        """
        request = self.protocol.create_read_request(address, count)
        response = self._transact(request)
        return self.protocol.parse_read_response(response, count)

    def write_register(self, address: int, value: int) -> None:
        """
        Writes one register with function 0x06.
        """
        request = self.protocol.create_write_single_request(address, value)
        response = self._transact(request)
        self.protocol.parse_write_response(response, request)

    def write_registers(self, address: int, words: Sequence[int]) -> None:
        """
        Writes consecutive registers with function 0x10.
        """
        request = self.protocol.create_write_multiple_request(address, list(words))
        response = self._transact(request)
        self.protocol.parse_write_response(response, request)

    def read_float(self, address: int) -> FloatRegisterPair:
        """
        Reads the float stored at `address` and `address + 1`.
        """
        word0, word1 = self.read_registers(address, 2)
        return FloatRegisterPair(address, word0, word1)

    def write_float(self, address: int, value: float) -> FloatRegisterPair:
        """
        Writes a float to `address` and `address + 1`, high word first.

        Returns:
            The register pair that was sent.
        """
        word0, word1 = encode_float(value)
        self.logger.debug(f"Float {value} -> registers {address}-{address + 1} (0x{word0:04X} 0x{word1:04X})")
        self.write_registers(address, [word0, word1])
        return FloatRegisterPair(address, word0, word1)

    def read_value(self, address: int, kind: ParamType) -> Union[int, float]:
        """
        Reads a register value of the given kind.
        """
        if kind is ParamType.FLOAT32:
            return self.read_float(address).value
        return self.read_registers(address, kind.width)[0]

    def write_value(self, address: int, value: Union[int, float], kind: ParamType) -> None:
        """
        Writes a register value of the given kind.
        """
        if kind is ParamType.FLOAT32:
            self.write_float(address, value)
        else:
            self.write_register(address, int(value))

    def _transact(self, request: bytes) -> bytes:
        """
        Sends one request frame and returns the complete reply frame.
        """
        if not self.ser or not self.ser.is_open:
            raise TransportError("Not connected")
        self._wait_silent_interval()
        try:
            self.ser.reset_input_buffer()
            self.logger.debug(f"Sending request: {request.hex(' ')}")
            self.ser.write(request)
            self.ser.flush()
            response = self._read_frame(request)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Serial I/O failed on {self.ser.port}: {e}") from e
        finally:
            self._last_transaction = time.monotonic()
        self.logger.debug(f"Received response: {response.hex(' ')}")
        return response

    def _read_frame(self, request: bytes) -> bytes:
        """
        Reads a reply: the first three bytes tell a normal reply from an exception reply,
        the request tells how long a normal reply is.
        """
        header = self.ser.read(3)
        if not header:
            raise TransportError(f"No response from slave {self.slave_id} (timeout)")
        if len(header) < 3:
            raise ProtocolError(f"Truncated response: {header.hex(' ')}")
        if header[1] & EXCEPTION_FLAG:
            remaining = EXCEPTION_RESPONSE_LENGTH - 3
        else:
            remaining = self.protocol.expected_response_length(request) - 3
        body = self.ser.read(remaining)
        response = bytes(header) + bytes(body)
        if len(body) < remaining:
            raise ProtocolError(f"Truncated response: {response.hex(' ')}")
        return response

    def _wait_silent_interval(self) -> None:
        """
        Keeps the 3.5 character bus silence required between RTU frames.
        """
        baudrate = getattr(self.ser, "baudrate", 9600) or 9600
        interval = 3.5 * 11 / baudrate if baudrate <= 19200 else 0.00175
        elapsed = time.monotonic() - self._last_transaction
        if elapsed < interval:
            time.sleep(interval - elapsed)
