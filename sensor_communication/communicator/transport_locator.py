"""
transport_locator.py

Provides the TransportLocator class for finding the port the EC sensor answers on.

Candidates are probed one at a time in priority order. A probe opens a short-timeout
Connection, reads the handshake register pair once and closes the port again, whether
the read worked or not. Only one probe port is ever open at a time, so probes never
contend for the bus.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from sensor_communication.communicator.connection import Connection, SerialFactory
from sensor_communication.config import DEFAULT_SLAVE_ID, PROBE_TIMEOUT
from sensor_communication.errors import SensorNotFoundError, TransportError
from sensor_communication.models import DeviceEndpoint
from sensor_communication.registers import HANDSHAKE_REGISTER


class TransportLocator:
    """
    Scans candidate ports for a sensor answering at a given slave ID.
    """

    def __init__(self, serial_factory: Optional[SerialFactory] = None,
                 probe_timeout: float = PROBE_TIMEOUT,
                 handshake_register: int = HANDSHAKE_REGISTER,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the locator.

        Args:
            serial_factory: Callable opening a port; passed through to every probe Connection.
            probe_timeout: Response timeout in seconds for the handshake read.
            handshake_register: First register of the pair read as handshake.
            logger: Optional logger instance.
        """
        self.serial_factory = serial_factory
        self.probe_timeout = probe_timeout
        self.handshake_register = handshake_register
        self.logger = logger or logging.getLogger(__name__)

    def probe(self, endpoint: DeviceEndpoint) -> bool:
        """
        Checks whether a sensor answers on the endpoint.

        The content of the handshake read is ignored; any valid reply from the
        expected slave ID counts.

        Returns:
            True if the handshake read succeeded, False otherwise.
        """
        try:
            with Connection(endpoint, timeout=self.probe_timeout,
                            serial_factory=self.serial_factory, logger=self.logger) as connection:
                words = connection.channel.read_registers(self.handshake_register, 2)
        except TransportError as e:
            self.logger.debug(f"No sensor on {endpoint.port}: {str(e)}")
            return False
        self.logger.debug(f"Handshake on {endpoint.port}: {' '.join(f'{w:04X}' for w in words)}")
        return True

    def discover(self, candidates: Iterable[str], slave_id: int = DEFAULT_SLAVE_ID,
                 link: Optional[DeviceEndpoint] = None) -> DeviceEndpoint:
        """
        Probes candidates in order and returns the first endpoint that answers.

        Args:
            candidates: Ordered transport identifiers (port names).
            slave_id: The device address the sensor must answer at.
            link: Endpoint template carrying the link parameters; its port is replaced
                by each candidate.

        Returns:
            The endpoint of the first responding port.

        Raises:
            SensorNotFoundError: If no candidate answers.
        """
        template = replace(link or DeviceEndpoint(port=""), slave_id=slave_id)
        self.logger.info(f"Scanning ports for sensor at slave ID {slave_id}...")
        tried = 0
        for port in candidates:
            tried += 1
            endpoint = template.with_port(port)
            if self.probe(endpoint):
                self.logger.info(f"Found sensor at {port}")
                return endpoint
        self.logger.error(f"Sensor not found after probing {tried} port(s)")
        raise SensorNotFoundError(tried, slave_id)
