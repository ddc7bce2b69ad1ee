import pytest

from sensor_communication.diagnostics import DIAGNOSTIC_REGISTERS, format_diagnostics, read_diagnostics
from sensor_communication.param_types import ParamType


def test_snapshot_values(channel, sensor):
    sensor.set_float(28, 12880.0)
    entries = read_diagnostics(channel)

    assert [e.register for e in entries] == [1, 2, 16, 13, 28]
    values = {e.register: e.value for e in entries}
    assert values[1] == 4
    assert values[16] == 200
    assert values[13] == 0
    assert values[28] == pytest.approx(12880.0)
    assert entries[-1].kind is ParamType.FLOAT32
    assert entries[-1].hex == "46494000"
    assert entries[2].hex == "00C8"


def test_snapshot_uses_register_map():
    assert [(d.name, d.param_type) for d in DIAGNOSTIC_REGISTERS][-2:] == [
        ("calibration_mode", ParamType.UINT16),
        ("calibration_coefficient", ParamType.FLOAT32),
    ]


def test_float_hex_shows_words_as_read(channel, sensor):
    # signalling NaN: the bit pattern must survive even though the value is NaN
    sensor.registers[28], sensor.registers[29] = 0x7F80, 0x0001
    entry = read_diagnostics(channel)[-1]
    assert entry.hex == "7F800001"
    assert "(Hex: 7F800001)" in format_diagnostics([entry])


def test_failed_register_does_not_stop_snapshot(channel, sensor):
    sensor.fail_reads_at = {2}
    entries = read_diagnostics(channel)
    assert entries[1].error is not None
    assert all(e.error is None for e in entries if e.register != 2)

    text = format_diagnostics(entries)
    assert "Register  2 = [READ ERROR]  <- Diagnostic 2" in text
    assert "Register 13 =     0  (0x0000)  <- Calibration Mode" in text
    assert "(Hex: 00000000)  <- Calibration Coefficient" in text
