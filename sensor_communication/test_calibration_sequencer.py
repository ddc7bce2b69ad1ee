import logging

import pytest

from sensor_communication.calibration import (
    CALIBRATION_PROCEDURES,
    CalibrationMode,
    CalibrationSequencer,
)
from sensor_communication.protocols.float_codec import encode_float


@pytest.fixture
def sequencer(writer):
    return CalibrationSequencer(writer, settle_delay=0)


def test_mode_from_value():
    assert CalibrationMode.from_value("2") is CalibrationMode.MODE_2
    with pytest.raises(ValueError, match="Invalid calibration mode"):
        CalibrationMode.from_value(4)


def test_procedures_cover_every_mode():
    assert set(CALIBRATION_PROCEDURES) == set(CalibrationMode)
    steps = CALIBRATION_PROCEDURES[CalibrationMode.MODE_2].steps
    assert [(s.register, s.value) for s in steps] == [(28, 12880.0), (13, 3)]


def test_none_writes_nothing(sequencer, sensor):
    report = sequencer.execute(CalibrationMode.NONE)
    assert report.success
    assert report.results == []
    assert sensor.requests == []


def test_mode_1(sequencer, sensor):
    report = sequencer.execute(CalibrationMode.MODE_1)
    assert report.success
    assert sensor.writes() == [(13, [2])]
    assert sensor.registers[13] == 2


def test_mode_2_writes_coefficient_then_mode(sequencer, sensor):
    report = sequencer.execute(CalibrationMode.MODE_2)
    assert report.success
    assert sensor.writes() == [(28, list(encode_float(12880.0))), (13, [3])]
    assert sensor.get_float(28) == 12880.0
    assert sensor.registers[13] == 3


def test_mode_2_stops_after_coefficient_failure(sequencer, sensor):
    sensor.fail_writes_at = {28, 29}
    report = sequencer.execute(CalibrationMode.MODE_2)
    assert not report.success
    assert len(report.results) == 1
    assert sensor.writes() == [(28, list(encode_float(12880.0)))]
    assert sensor.registers[13] == 0


def test_mode_2_keeps_coefficient_when_mode_write_fails(sequencer, sensor):
    sensor.fail_writes_at = {13}
    report = sequencer.execute(CalibrationMode.MODE_2)
    assert not report.success
    assert sensor.writes() == [(28, list(encode_float(12880.0))), (13, [3])]
    assert sensor.get_float(28) == 12880.0
    assert sensor.registers[13] == 0


def test_mismatch_does_not_fail_calibration(sequencer, sensor):
    sensor.write_overrides[13] = [7]
    report = sequencer.execute(CalibrationMode.MODE_1)
    assert report.success
    assert [r.address for r in report.mismatches] == [13]


def test_mode_3_writes_scaled_coefficient(sequencer, sensor):
    report = sequencer.execute(CalibrationMode.MODE_3_TEST)
    assert report.success
    assert sensor.writes() == [(16, [190])]


def test_mode_3_failure_logs_hint(sequencer, sensor, caplog):
    caplog.set_level(logging.INFO, logger="sensor_communication")
    sensor.fail_writes_at = {16}
    report = sequencer.execute(CalibrationMode.MODE_3_TEST)
    assert not report
    assert "value=19" in caplog.text
