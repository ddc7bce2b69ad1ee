"""
connection.py

Implements the Connection class: the live binding of one DeviceEndpoint and a
response-timeout policy to an open serial port.

A Connection is owned by whoever opened it and is meant to be used as a context
manager so the port is released on every exit path:

    with Connection(endpoint, timeout=0.1) as connection:
        connection.channel.read_registers(60, 2)
"""

import logging
from typing import Callable, Optional

import serial

from sensor_communication.communicator.register_channel import RegisterChannel
from sensor_communication.communicator.serial_manager import configure_sensor_serial
from sensor_communication.config import SESSION_TIMEOUT
from sensor_communication.errors import TransportError
from sensor_communication.models import DeviceEndpoint

SerialFactory = Callable[..., object]


class Connection:
    """
    Opens, owns and closes the serial port for one endpoint.
    """

    def __init__(self, endpoint: DeviceEndpoint, timeout: float = SESSION_TIMEOUT,
                 serial_factory: Optional[SerialFactory] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the connection (the port is not opened yet).

        Args:
            endpoint: Where and how to reach the sensor.
            timeout: Response timeout in seconds for every register operation.
            serial_factory: Callable opening the port; defaults to configure_sensor_serial.
            logger: Optional logger instance.
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.serial_factory = serial_factory or configure_sensor_serial
        self.logger = logger or logging.getLogger(__name__)
        self.ser = None
        self._channel: Optional[RegisterChannel] = None

    @property
    def is_open(self) -> bool:
        return bool(self.ser is not None and self.ser.is_open)

    @property
    def channel(self) -> RegisterChannel:
        """
        The register channel bound to the open port.

        Raises:
            TransportError: If the connection is not open.
        """
        if not self.is_open or self._channel is None:
            raise TransportError(f"Connection to {self.endpoint.port} is not open")
        return self._channel

    def open(self) -> RegisterChannel:
        """
        Opens the serial port using the endpoint's link parameters.

        Returns:
            The RegisterChannel for the open port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        if self.is_open:
            return self.channel
        try:
            self.ser = self.serial_factory(
                port=self.endpoint.port,
                timeout=self.timeout,
                **self.endpoint.serial_settings()
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self.ser = None
            raise TransportError(f"Cannot open {self.endpoint.port}: {e}") from e
        self._channel = RegisterChannel(self.ser, slave_id=self.endpoint.slave_id, logger=self.logger)
        self.logger.debug(f"Opened {self.endpoint.port} (slave {self.endpoint.slave_id}, timeout {self.timeout}s)")
        return self._channel

    def close(self) -> None:
        """
        Closes the serial port. Safe to call more than once.
        """
        ser, self.ser, self._channel = self.ser, None, None
        if ser is None:
            return
        try:
            ser.close()
            self.logger.debug(f"Closed {self.endpoint.port}")
        except (serial.SerialException, OSError) as e:
            self.logger.error(f"Error closing {self.endpoint.port}: {str(e)}")

    def __enter__(self) -> "Connection":
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"Connection({self.endpoint.port!r}, slave={self.endpoint.slave_id}, {state})"
