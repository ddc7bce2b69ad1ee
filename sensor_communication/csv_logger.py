"""
csv_logger.py

Appends one CSV row per sampling cycle, including the raw register hex behind the
temperature and raw EC values so the float decoding can be checked independently.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Union

from sensor_communication.models import CompensationResult, SensorReading

CSV_HEADERS = [
    "Timestamp",
    "Temperature",
    "Hex_Temp",
    "Raw_EC",
    "Hex_Raw_EC",
    "Sensor_Default_EC",
    "Smart_Calc_EC",
    "Deviation",
]

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class CsvLogger:
    """
    Record sink writing to an append-only CSV file.

    The header row is written only when the file is new or empty. Every row is
    flushed immediately so an interrupted run loses nothing.
    """

    def __init__(self, path: Union[str, Path], logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)
        self._file = None
        self._writer = None

    def open(self) -> None:
        if self._file is not None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        self._file = self.path.open("a", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        if new_file:
            self._writer.writerow(CSV_HEADERS)
            self._file.flush()
        self.logger.info(f"Logging to CSV: {self.path}")

    def write(self, reading: SensorReading, result: CompensationResult) -> None:
        if self._file is None:
            self.open()
        self._writer.writerow(self.format_row(reading, result))
        self._file.flush()

    @staticmethod
    def format_row(reading: SensorReading, result: CompensationResult) -> list:
        return [
            reading.timestamp.strftime(TIMESTAMP_FORMAT),
            f"{reading.temperature:.6g}",
            reading.raw_hex_temp,
            f"{reading.raw_ec:.6g}",
            reading.raw_hex_ec,
            f"{reading.sensor_ec:.6g}",
            f"{result.smart_ec:.6g}",
            f"{reading.sensor_ec - result.smart_ec:.6g}",
        ]

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

    def __call__(self, reading: SensorReading, result: CompensationResult) -> None:
        self.write(reading, result)

    def __enter__(self) -> "CsvLogger":
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
