#!/usr/bin/env python3
"""
modbus_rtu_protocol.py

Implements Modbus RTU framing for the holding-register functions the EC sensor
understands:
  - 0x03 Read Holding Registers
  - 0x06 Write Single Register
  - 0x10 Write Multiple Registers

Every frame is [slave id][function][payload...][CRC16 low][CRC16 high]. The CRC is
CRC-16/MODBUS (reflected polynomial 0xA001, initial value 0xFFFF).

Both sides of the exchange are provided: the client side builds requests and
validates responses, the server side (used by the device simulator) parses requests
and builds responses.

Usage Example:
    protocol = ModbusRTUProtocol(slave_id=4)
    request = protocol.create_read_request(60, 2)
    words = protocol.parse_read_response(received_bytes, count=2)
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sensor_communication.config import DEFAULT_SLAVE_ID
from sensor_communication.errors import ProtocolError

READ_HOLDING_REGISTERS = 0x03
WRITE_SINGLE_REGISTER = 0x06
WRITE_MULTIPLE_REGISTERS = 0x10
EXCEPTION_FLAG = 0x80

MAX_READ_COUNT = 125
MAX_WRITE_COUNT = 123

# Length of an exception reply: slave, function | 0x80, code, CRC (2)
EXCEPTION_RESPONSE_LENGTH = 5

EXCEPTION_CODES = {
    0x01: "Illegal function",
    0x02: "Illegal data address",
    0x03: "Illegal data value",
    0x04: "Slave device failure",
    0x05: "Acknowledge",
    0x06: "Slave device busy",
}


@dataclass
class ModbusRequest:
    """
    A decoded request frame, as seen by a server.
    """
    slave_id: int
    function: int
    address: int
    count: int = 1
    words: List[int] = field(default_factory=list)


class ModbusRTUProtocol:
    """
    Builds and parses Modbus RTU frames for one slave ID.
    """

    def __init__(self, slave_id: int = DEFAULT_SLAVE_ID, logger: Optional[logging.Logger] = None):
        """
        Initializes the protocol.

        Args:
            slave_id (int): The device address on the bus (1-247).
            logger (Optional[logging.Logger]): A logger instance for debugging.
        """
        if not 0 <= slave_id <= 247:
            raise ValueError(f"Invalid slave ID: {slave_id}")
        self.slave_id = slave_id
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Client side
    # ------------------------------------------------------------------

    def create_read_request(self, address: int, count: int) -> bytes:
        """
        Builds a Read Holding Registers (0x03) request frame.
        """
        self._check_address(address)
        if not 1 <= count <= MAX_READ_COUNT:
            raise ValueError(f"Invalid register count: {count}")
        return self._frame(struct.pack('>BHH', READ_HOLDING_REGISTERS, address, count))

    def create_write_single_request(self, address: int, value: int) -> bytes:
        """
        Builds a Write Single Register (0x06) request frame.
        """
        self._check_address(address)
        self._check_word(value)
        return self._frame(struct.pack('>BHH', WRITE_SINGLE_REGISTER, address, value))

    def create_write_multiple_request(self, address: int, words: Sequence[int]) -> bytes:
        """
        Builds a Write Multiple Registers (0x10) request frame.
        """
        self._check_address(address)
        if not 1 <= len(words) <= MAX_WRITE_COUNT:
            raise ValueError(f"Invalid register count: {len(words)}")
        for word in words:
            self._check_word(word)
        pdu = struct.pack('>BHHB', WRITE_MULTIPLE_REGISTERS, address, len(words), 2 * len(words))
        pdu += struct.pack(f'>{len(words)}H', *words)
        return self._frame(pdu)

    @staticmethod
    def expected_response_length(request: bytes) -> int:
        """
        Returns the length of a normal (non-exception) reply to the given request.
        """
        function = request[1]
        if function == READ_HOLDING_REGISTERS:
            count = (request[4] << 8) | request[5]
            return 5 + 2 * count
        if function in (WRITE_SINGLE_REGISTER, WRITE_MULTIPLE_REGISTERS):
            return 8
        raise ValueError(f"Unsupported function code: 0x{function:02X}")

    def parse_read_response(self, response: bytes, count: int) -> List[int]:
        """
        Validates a 0x03 reply and returns its register values.

        Raises:
            ProtocolError: If the reply is short, corrupt, from another slave, or an exception reply.
        """
        self._check_response(response, READ_HOLDING_REGISTERS)
        byte_count = response[2]
        if byte_count != 2 * count or len(response) != 5 + byte_count:
            raise ProtocolError(
                f"Unexpected byte count {byte_count} for {count} register(s) "
                f"(frame length {len(response)})"
            )
        return list(struct.unpack(f'>{count}H', response[3:3 + byte_count]))

    def parse_write_response(self, response: bytes, request: bytes) -> None:
        """
        Validates a 0x06 / 0x10 reply against the request that produced it.

        A write reply echoes the address and either the value (0x06) or the
        register count (0x10).
        """
        function = request[1]
        self._check_response(response, function)
        if len(response) != 8 or response[:6] != request[:6]:
            raise ProtocolError(
                f"Write echo mismatch: sent {request[:6].hex(' ')}, got {response.hex(' ')}"
            )

    # ------------------------------------------------------------------
    # Server side
    # ------------------------------------------------------------------

    def parse_request(self, frame: bytes) -> ModbusRequest:
        """
        Decodes a request frame. The slave ID is returned, not checked, so a
        server can decide to stay silent for other addresses.

        Raises:
            ProtocolError: If the frame is truncated, fails its CRC or uses an unsupported function.
        """
        if len(frame) < 8:
            raise ProtocolError("Request too short")
        self._check_crc(frame)
        slave_id, function, address = frame[0], frame[1], (frame[2] << 8) | frame[3]
        if function == READ_HOLDING_REGISTERS:
            count = (frame[4] << 8) | frame[5]
            return ModbusRequest(slave_id, function, address, count)
        if function == WRITE_SINGLE_REGISTER:
            value = (frame[4] << 8) | frame[5]
            return ModbusRequest(slave_id, function, address, 1, [value])
        if function == WRITE_MULTIPLE_REGISTERS:
            count, byte_count = (frame[4] << 8) | frame[5], frame[6]
            if byte_count != 2 * count or len(frame) != 9 + byte_count:
                raise ProtocolError("Invalid write length")
            words = list(struct.unpack(f'>{count}H', frame[7:7 + byte_count]))
            return ModbusRequest(slave_id, function, address, count, words)
        raise ProtocolError(f"Unsupported function code: 0x{function:02X}", exception_code=0x01)

    def create_read_response(self, words: Sequence[int]) -> bytes:
        pdu = struct.pack('>BB', READ_HOLDING_REGISTERS, 2 * len(words))
        pdu += struct.pack(f'>{len(words)}H', *words)
        return self._frame(pdu)

    def create_write_response(self, request: ModbusRequest) -> bytes:
        if request.function == WRITE_SINGLE_REGISTER:
            return self._frame(struct.pack('>BHH', WRITE_SINGLE_REGISTER, request.address, request.words[0]))
        return self._frame(struct.pack('>BHH', WRITE_MULTIPLE_REGISTERS, request.address, request.count))

    def create_exception_response(self, function: int, code: int) -> bytes:
        return self._frame(bytes([function | EXCEPTION_FLAG, code]))

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_crc16(data: bytes) -> int:
        """
        Calculates a CRC-16/MODBUS checksum for the provided data.

        Args:
            data (bytes): The input data.

        Returns:
            int: The 16-bit CRC. It is transmitted low byte first.
        """
        crc = 0xFFFF
        for byte in data:
            crc ^= byte
            for _ in range(8):
                if crc & 0x0001:
                    crc = (crc >> 1) ^ 0xA001
                else:
                    crc >>= 1
        return crc

    def _frame(self, pdu: bytes) -> bytes:
        msg = bytearray([self.slave_id])
        msg.extend(pdu)
        crc = self.calculate_crc16(msg)
        msg.extend([crc & 0xFF, (crc >> 8) & 0xFF])
        return bytes(msg)

    def _check_crc(self, frame: bytes) -> None:
        received_crc = (frame[-1] << 8) | frame[-2]
        calculated_crc = self.calculate_crc16(frame[:-2])
        if received_crc != calculated_crc:
            raise ProtocolError(
                f"CRC mismatch (received 0x{received_crc:04X}, calculated 0x{calculated_crc:04X})"
            )

    def _check_response(self, response: bytes, function: int) -> None:
        if not response or len(response) < EXCEPTION_RESPONSE_LENGTH:
            raise ProtocolError("Response too short")
        self._check_crc(response)
        if response[0] != self.slave_id:
            raise ProtocolError(f"Response from slave {response[0]}, expected {self.slave_id}")
        if response[1] == function | EXCEPTION_FLAG:
            code = response[2]
            reason = EXCEPTION_CODES.get(code, "Unknown exception")
            raise ProtocolError(f"Modbus exception 0x{code:02X}: {reason}", exception_code=code)
        if response[1] != function:
            raise ProtocolError(f"Unexpected function code 0x{response[1]:02X}")

    @staticmethod
    def _check_address(address: int) -> None:
        if not 0 <= address <= 0xFFFF:
            raise ValueError(f"Invalid register address: {address}")

    @staticmethod
    def _check_word(value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"Register value out of range: {value}")
