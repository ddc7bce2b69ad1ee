"""
__init__.py

Wire-level codecs: Modbus RTU framing and the big-endian-word float codec.
"""

from sensor_communication.protocols.float_codec import decode_float, encode_float, words_to_hex
from sensor_communication.protocols.modbus_rtu_protocol import ModbusRequest, ModbusRTUProtocol

__all__ = [
    'ModbusRequest',
    'ModbusRTUProtocol',
    'decode_float',
    'encode_float',
    'words_to_hex',
]
