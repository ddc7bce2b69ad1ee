"""
errors.py

Defines the exception hierarchy used across the sensor communication package.

TransportError covers anything that stops a register operation from completing
(port cannot be opened, write fails, response times out). ProtocolError is a
TransportError whose response arrived but could not be trusted (short frame, CRC
mismatch, Modbus exception reply), so callers handle both the same way.
"""

from typing import Optional


class SensorError(Exception):
    """
    Base class for all sensor communication errors.
    """
    pass


class TransportError(SensorError):
    """
    Raised when a register operation did not complete.
    """
    pass


class ProtocolError(TransportError):
    """
    Raised when a response is malformed, truncated, fails its CRC,
    or is a Modbus exception reply.
    """

    def __init__(self, message: str, exception_code: Optional[int] = None):
        super().__init__(message)
        self.exception_code = exception_code


class DomainError(SensorError, ValueError):
    """
    Raised when a pure computation receives input it cannot handle
    (e.g. a non-positive compensation denominator).
    """
    pass


class SensorNotFoundError(SensorError):
    """
    Raised when discovery has tried every candidate port without a handshake.
    """

    def __init__(self, candidates_tried: int, slave_id: int):
        super().__init__(
            f"No sensor answered at slave ID {slave_id} on {candidates_tried} candidate port(s)"
        )
        self.candidates_tried = candidates_tried
        self.slave_id = slave_id
