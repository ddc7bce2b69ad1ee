"""
float_codec.py

Packs and unpacks 32-bit IEEE-754 floats into pairs of 16-bit Modbus registers
using big-endian word order (ABCD): the first register holds the high word.

Both directions reinterpret the bit pattern; neither is a numeric cast.
Example: registers 0x4135, 0x1A86 -> bit pattern 0x41351A86 -> 11.3190...
"""

import struct
from typing import Tuple

from sensor_communication.errors import DomainError


def encode_float(value: float) -> Tuple[int, int]:
    """
    Splits a float into (high word, low word).

    Args:
        value: The value to encode. It is rounded to float32 first.

    Returns:
        A tuple (word0, word1) where word0 carries the sign, exponent and top mantissa bits.

    Raises:
        DomainError: If the value is finite but outside the float32 range.
    """
    try:
        packed = struct.pack('>f', float(value))
    except OverflowError:
        raise DomainError(f"{value!r} is out of float32 range")
    bits = struct.unpack('>I', packed)[0]
    return (bits >> 16) & 0xFFFF, bits & 0xFFFF


def decode_float(word0: int, word1: int) -> float:
    """
    Reassembles (word0 << 16) | word1 and reinterprets the bits as a float32.
    """
    bits = ((word0 & 0xFFFF) << 16) | (word1 & 0xFFFF)
    return struct.unpack('>f', struct.pack('>I', bits))[0]


def words_to_hex(word0: int, word1: int) -> str:
    """
    Formats two registers as an 8-character uppercase hex string, high word first.
    """
    return f"{word0 & 0xFFFF:04X}{word1 & 0xFFFF:04X}"


def float_to_hex(value: float) -> str:
    """
    Returns the hex bit pattern a float is written to the device as.
    """
    return words_to_hex(*encode_float(value))
