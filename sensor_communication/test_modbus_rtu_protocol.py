import pytest

from sensor_communication.errors import ProtocolError, TransportError
from sensor_communication.protocols.modbus_rtu_protocol import (
    READ_HOLDING_REGISTERS,
    WRITE_MULTIPLE_REGISTERS,
    WRITE_SINGLE_REGISTER,
    ModbusRTUProtocol,
)


@pytest.fixture
def protocol():
    return ModbusRTUProtocol(slave_id=4)


def test_crc_of_reference_frame():
    frame = ModbusRTUProtocol(slave_id=1).create_read_request(0, 1)
    assert frame == bytes.fromhex("010300000001840A")


def test_crc_is_appended_low_byte_first(protocol):
    frame = protocol.create_read_request(60, 2)
    crc = protocol.calculate_crc16(frame[:-2])
    assert frame[-2] == crc & 0xFF
    assert frame[-1] == crc >> 8


def test_read_request_layout(protocol):
    frame = protocol.create_read_request(60, 2)
    assert frame[:6] == bytes([4, READ_HOLDING_REGISTERS, 0x00, 0x3C, 0x00, 0x02])
    assert protocol.expected_response_length(frame) == 9


def test_write_multiple_request_layout(protocol):
    frame = protocol.create_write_multiple_request(28, [0x4649, 0x4000])
    assert frame[:11] == bytes([4, WRITE_MULTIPLE_REGISTERS, 0x00, 0x1C, 0x00, 0x02, 0x04,
                                0x46, 0x49, 0x40, 0x00])
    assert len(frame) == 13
    assert protocol.expected_response_length(frame) == 8


def test_invalid_arguments(protocol):
    with pytest.raises(ValueError):
        protocol.create_read_request(0, 0)
    with pytest.raises(ValueError):
        protocol.create_write_single_request(13, 0x10000)
    with pytest.raises(ValueError):
        ModbusRTUProtocol(slave_id=300)


def test_parse_read_response(protocol):
    response = protocol.create_read_response([0x4135, 0x1A86])
    assert protocol.parse_read_response(response, 2) == [0x4135, 0x1A86]


def test_corrupt_crc_is_rejected(protocol):
    response = bytearray(protocol.create_read_response([1, 2]))
    response[3] ^= 0xFF
    with pytest.raises(ProtocolError, match="CRC"):
        protocol.parse_read_response(bytes(response), 2)


def test_reply_from_other_slave_is_rejected(protocol):
    response = ModbusRTUProtocol(slave_id=5).create_read_response([1])
    with pytest.raises(ProtocolError, match="slave 5"):
        protocol.parse_read_response(response, 1)


def test_wrong_byte_count_is_rejected(protocol):
    response = protocol.create_read_response([1])
    with pytest.raises(ProtocolError):
        protocol.parse_read_response(response, 2)


def test_exception_reply_carries_code(protocol):
    response = protocol.create_exception_response(READ_HOLDING_REGISTERS, 0x02)
    with pytest.raises(ProtocolError) as excinfo:
        protocol.parse_read_response(response, 1)
    assert excinfo.value.exception_code == 0x02
    assert "Illegal data address" in str(excinfo.value)
    assert isinstance(excinfo.value, TransportError)


def test_write_echo_must_match(protocol):
    request = protocol.create_write_single_request(13, 2)
    protocol.parse_write_response(request, request)

    other = protocol.create_write_single_request(13, 3)
    with pytest.raises(ProtocolError, match="echo"):
        protocol.parse_write_response(other, request)


def test_server_side_parses_requests(protocol):
    request = protocol.parse_request(protocol.create_write_multiple_request(28, [1, 2]))
    assert (request.slave_id, request.function, request.address, request.count, request.words) == \
        (4, WRITE_MULTIPLE_REGISTERS, 28, 2, [1, 2])

    request = protocol.parse_request(protocol.create_write_single_request(16, 190))
    assert (request.function, request.address, request.words) == (WRITE_SINGLE_REGISTER, 16, [190])

    with pytest.raises(ProtocolError):
        protocol.parse_request(b"\x04\x03\x00")
