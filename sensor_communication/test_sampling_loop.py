from datetime import datetime

import pytest

from sensor_communication.errors import TransportError
from sensor_communication.sampling import SamplingLoop, Session

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def records():
    return []


@pytest.fixture
def loop(connection, records):
    return SamplingLoop(Session(connection), [lambda reading, result: records.append((reading, result))],
                        interval=0, clock=lambda: FIXED_TIME)


def test_cycle_reads_three_registers(loop, sensor, records):
    reading, result = loop.run_cycle()
    assert [(r.address, r.count) for r in sensor.requests] == [(60, 2), (45, 2), (41, 2)]
    assert reading.temperature == pytest.approx(22.5)
    assert reading.raw_ec == pytest.approx(12.3, abs=1e-5)
    assert reading.sensor_ec == pytest.approx(12.3 / 0.95, abs=1e-4)
    assert reading.raw_hex_temp == "41B40000"
    assert reading.timestamp == FIXED_TIME
    assert reading.cycle == 1
    assert result.k_used == 0.0190
    assert records == [(reading, result)]


def test_failed_read_emits_nothing(loop, sensor, records):
    sensor.fail_reads_at = {45}
    assert loop.run_cycle() is None
    assert records == []
    assert loop.consecutive_failures == 1
    assert loop.session.cycle_count == 1

    sensor.fail_reads_at = set()
    assert loop.run_cycle() is not None
    assert loop.consecutive_failures == 0
    assert [r.cycle for r, _ in records] == [2]


def test_run_continues_after_failures(loop, sensor, records):
    sensor.fail_reads_at = {41}
    assert loop.run(max_cycles=3) == 0
    sensor.fail_reads_at = set()
    assert loop.run(max_cycles=2) == 2
    assert loop.session.cycle_count == 5
    assert len(records) == 2


def test_circuit_breaker(connection, sensor):
    sensor.silent = True
    loop = SamplingLoop(Session(connection), interval=0, max_consecutive_failures=2)
    with pytest.raises(TransportError, match="3 consecutive failed cycles"):
        loop.run(max_cycles=10)
    assert loop.session.cycle_count == 3


def test_compensation_failure_skips_emission(loop, sensor, records):
    sensor.set_measurements(-100.0, 12.0)
    assert loop.run_cycle() is None
    assert records == []
    assert loop.consecutive_failures == 0


def test_stop_from_sink(connection):
    session = Session(connection)
    loop = SamplingLoop(session, interval=0)
    loop.add_sink(lambda reading, result: loop.stop())
    assert loop.run() == 1
    assert session.cycle_count == 1
