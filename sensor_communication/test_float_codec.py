import math
import random

import pytest

from sensor_communication.errors import DomainError
from sensor_communication.protocols.float_codec import decode_float, encode_float, float_to_hex, words_to_hex


def test_decode_known_register_pair():
    assert decode_float(0x4135, 0x1A86) == pytest.approx(11.319, abs=1e-3)


@pytest.mark.parametrize("value, words", [
    (1.0, (0x3F80, 0x0000)),
    (-2.0, (0xC000, 0x0000)),
    (12880.0, (0x4649, 0x4000)),
    (0.0, (0x0000, 0x0000)),
])
def test_encode_is_high_word_first(value, words):
    assert encode_float(value) == words


def test_decode_reinterprets_bits_not_value():
    # 0x0001 0x0000 is a denormal, not 65536
    assert decode_float(0x0001, 0x0000) < 1e-38


def test_encode_rounds_to_float32():
    word0, word1 = encode_float(0.1)
    assert decode_float(word0, word1) == pytest.approx(0.1, abs=1e-8)
    assert decode_float(word0, word1) != 0.1


def test_special_values():
    assert math.isinf(decode_float(*encode_float(float("inf"))))
    assert math.isnan(decode_float(*encode_float(float("nan"))))


def test_out_of_range_value_raises_domain_error():
    with pytest.raises(DomainError):
        encode_float(1e39)


def test_hex_formatting():
    assert words_to_hex(0x4135, 0x1A86) == "41351A86"
    assert words_to_hex(0x00AB, 0x0001) == "00AB0001"
    assert float_to_hex(12880.0) == "46494000"


EDGE_PATTERNS = [
    0x00000000,  # +0
    0x80000000,  # -0
    0x00000001,  # smallest denormal
    0x807FFFFF,  # largest negative denormal
    0x00800000,  # min normal
    0x7F7FFFFF,  # float32 max
    0xFF7FFFFF,  # float32 lowest
    0x3F800000,
    0x41351A86,
]


def _finite_patterns(count, seed=1234):
    rng = random.Random(seed)
    patterns = list(EDGE_PATTERNS)
    while len(patterns) < count:
        bits = rng.getrandbits(32)
        if (bits >> 23) & 0xFF != 0xFF:
            patterns.append(bits)
    return patterns


def test_decode_then_encode_preserves_bits():
    for bits in _finite_patterns(20000):
        words = (bits >> 16, bits & 0xFFFF)
        assert encode_float(decode_float(*words)) == words, f"0x{bits:08X}"
