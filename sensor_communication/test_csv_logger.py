import csv
from datetime import datetime

import pytest

from sensor_communication.csv_logger import CSV_HEADERS, CsvLogger
from sensor_communication.models import CompensationResult, SensorReading


def make_record(sensor_ec=12.95):
    reading = SensorReading(
        temperature=22.5,
        raw_ec=12.3,
        sensor_ec=sensor_ec,
        timestamp=datetime(2024, 5, 1, 12, 0, 0),
        raw_hex_temp="41B40000",
        raw_hex_ec="4144CCCD",
        cycle=1,
    )
    return reading, CompensationResult(smart_ec=12.9, k_used=0.0190)


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_header_written_once(tmp_path):
    path = tmp_path / "log.csv"
    with CsvLogger(path) as sink:
        sink(*make_record())
    with CsvLogger(path) as sink:
        sink(*make_record())

    rows = read_rows(path)
    assert rows[0] == CSV_HEADERS
    assert len(rows) == 3
    assert rows.count(CSV_HEADERS) == 1


def test_row_contents(tmp_path):
    path = tmp_path / "nested" / "log.csv"
    with CsvLogger(path) as sink:
        sink(*make_record())

    row = read_rows(path)[1]
    assert row[0] == "2024-05-01 12:00:00"
    assert row[2] == "41B40000"
    assert row[4] == "4144CCCD"
    assert float(row[5]) == 12.95
    assert float(row[6]) == 12.9
    assert float(row[7]) == pytest.approx(0.05)


def test_write_without_context_opens_file(tmp_path):
    path = tmp_path / "log.csv"
    sink = CsvLogger(path)
    sink.write(*make_record())
    sink.close()
    sink.close()
    assert len(read_rows(path)) == 2
