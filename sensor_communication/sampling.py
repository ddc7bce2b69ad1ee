"""
sampling.py

Implements the Session and SamplingLoop classes.

The loop reads temperature, raw EC and the sensor's own EC once per cycle, computes
the compensated value and hands the pair (SensorReading, CompensationResult) to every
registered sink. A failed read abandons the whole cycle: nothing is emitted, the loop
waits one interval and tries again.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from sensor_communication.communicator.connection import Connection
from sensor_communication.communicator.register_channel import RegisterChannel
from sensor_communication.compensation import compensate_reading
from sensor_communication.config import SAMPLE_INTERVAL
from sensor_communication.errors import DomainError, TransportError
from sensor_communication.models import CompensationResult, SensorReading
from sensor_communication.registers import RAW_EC_REGISTER, SENSOR_EC_REGISTER, TEMPERATURE_REGISTER

RecordSink = Callable[[SensorReading, CompensationResult], None]


@dataclass
class Session:
    """
    The open session Connection and the cycle counter; the only mutable state of a run.
    """
    connection: Connection
    cycle_count: int = 0

    @property
    def channel(self) -> RegisterChannel:
        return self.connection.channel

    @property
    def port(self) -> str:
        return self.connection.endpoint.port


class SamplingLoop:
    """
    Periodically samples the sensor over an open Session.
    """

    def __init__(self, session: Session, sinks: Iterable[RecordSink] = (),
                 interval: float = SAMPLE_INTERVAL,
                 max_consecutive_failures: Optional[int] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the loop.

        Args:
            session: The open Session to sample through.
            sinks: Callables receiving (SensorReading, CompensationResult) per successful cycle.
            interval: Seconds between cycles, also the retry delay after a failed cycle.
            max_consecutive_failures: Failed cycles in a row tolerated before run() raises;
                None retries forever.
            clock: Source of reading timestamps.
            logger: Optional logger instance.
        """
        self.session = session
        self.sinks: List[RecordSink] = list(sinks)
        self.interval = interval
        self.max_consecutive_failures = max_consecutive_failures
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.consecutive_failures = 0
        self._stop = False

    def add_sink(self, sink: RecordSink) -> None:
        self.sinks.append(sink)

    def read_cycle(self) -> SensorReading:
        """
        Performs the three reads of one cycle.

        Raises:
            TransportError: If any of the reads fails.
        """
        channel = self.session.channel
        try:
            temperature = channel.read_float(TEMPERATURE_REGISTER)
        except TransportError as e:
            raise TransportError(f"Failed to read temperature: {e}") from e
        try:
            raw_ec = channel.read_float(RAW_EC_REGISTER)
        except TransportError as e:
            raise TransportError(f"Failed to read raw EC: {e}") from e
        try:
            sensor_ec = channel.read_float(SENSOR_EC_REGISTER)
        except TransportError as e:
            raise TransportError(f"Failed to read sensor EC: {e}") from e
        return SensorReading(
            temperature=temperature.value,
            raw_ec=raw_ec.value,
            sensor_ec=sensor_ec.value,
            timestamp=self.clock(),
            raw_hex_temp=temperature.hex,
            raw_hex_ec=raw_ec.hex,
            cycle=self.session.cycle_count,
        )

    def run_cycle(self) -> Optional[Tuple[SensorReading, CompensationResult]]:
        """
        Runs one cycle.

        Returns:
            The emitted (reading, result) pair, or None if the cycle was abandoned.
        """
        self.session.cycle_count += 1
        try:
            reading = self.read_cycle()
        except TransportError as e:
            self.consecutive_failures += 1
            self.logger.warning(f"Cycle {self.session.cycle_count} skipped: {str(e)}")
            return None
        self.consecutive_failures = 0

        try:
            result = compensate_reading(reading)
        except DomainError as e:
            self.logger.error(f"Cycle {self.session.cycle_count}: compensation failed: {str(e)}")
            return None

        self.logger.debug(
            f"Cycle {reading.cycle}: T={reading.temperature:.2f} (0x{reading.raw_hex_temp}) "
            f"raw={reading.raw_ec:.3f} (0x{reading.raw_hex_ec}) sensor={reading.sensor_ec:.3f} "
            f"smart={result.smart_ec:.3f} k={result.k_used:.4f}"
        )
        for sink in self.sinks:
            sink(reading, result)
        return reading, result

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Samples until stop() is called or max_cycles cycles have been attempted.

        Returns:
            The number of records emitted.

        Raises:
            TransportError: If max_consecutive_failures is set and exceeded.
        """
        self._stop = False
        attempted = 0
        emitted = 0
        while not self._stop and (max_cycles is None or attempted < max_cycles):
            attempted += 1
            if self.run_cycle() is not None:
                emitted += 1
            elif (self.max_consecutive_failures is not None
                  and self.consecutive_failures > self.max_consecutive_failures):
                raise TransportError(
                    f"{self.consecutive_failures} consecutive failed cycles on {self.session.port}"
                )
            if self._stop or (max_cycles is not None and attempted >= max_cycles):
                break
            time.sleep(self.interval)
        return emitted

    def stop(self) -> None:
        """
        Signals the loop to stop after the current cycle.
        """
        self._stop = True
        self.logger.debug("Stopping sampling loop")
