"""
verified_writer.py

Implements the VerifiedWriter class: every write is followed by a read-back of the
same address and width, compared with the requested value.

Only a failed raw write is reported as not accepted. A read-back that differs (the
firmware may round, or apply the value later) or that cannot be performed is logged
as a warning and returned as accepted but not matched; it never stops the caller.
"""

import logging
import math
import time
from typing import Optional, Tuple, Union

from sensor_communication.communicator.register_channel import RegisterChannel
from sensor_communication.config import FLOAT_SETTLE_DELAY, FLOAT_VERIFY_TOLERANCE
from sensor_communication.errors import DomainError, TransportError
from sensor_communication.models import WriteResult
from sensor_communication.param_types import ParamType
from sensor_communication.protocols.float_codec import encode_float, float_to_hex


class VerifiedWriter:
    """
    Writes registers and verifies them by reading them back.
    """

    def __init__(self, channel: RegisterChannel, settle_delay: float = FLOAT_SETTLE_DELAY,
                 tolerance: float = FLOAT_VERIFY_TOLERANCE, logger: Optional[logging.Logger] = None):
        """
        Initializes the writer.

        Args:
            channel: The register channel of the open session.
            settle_delay: Seconds to wait between a float write and its read-back.
            tolerance: Absolute tolerance for float comparison.
            logger: Optional logger instance.
        """
        self.channel = channel
        self.settle_delay = settle_delay
        self.tolerance = tolerance
        self.logger = logger or logging.getLogger(__name__)

    def write_and_verify(self, address: int, value: Union[int, float], kind: ParamType) -> WriteResult:
        """
        Writes `value` at `address` and reads it back.

        Args:
            address: Target register (a float also uses address + 1).
            value: The value to write.
            kind: ParamType.UINT16 or ParamType.FLOAT32.

        Returns:
            A WriteResult; accepted is False only if the raw write failed.

        Raises:
            DomainError: If the value cannot be represented in the register kind.
        """
        self._check_value(value, kind)
        self._log_write(address, value, kind)

        try:
            self.channel.write_value(address, value, kind)
        except TransportError as e:
            self.logger.error(f"Failed to write register {address}: {str(e)}")
            return WriteResult(address, kind, value, accepted=False, error_message=str(e))

        if kind is ParamType.FLOAT32 and self.settle_delay > 0:
            time.sleep(self.settle_delay)

        try:
            read_back, read_hex = self._read_back(address, kind)
        except TransportError as e:
            self.logger.warning(f"Could not verify write to register {address} (read-back failed): {str(e)}")
            return WriteResult(address, kind, value, accepted=True, error_message=str(e))

        matched = self._values_match(value, read_back, kind)
        if matched:
            self.logger.info(f"Register {address} verified: {self._describe(read_back, kind)} (read {read_hex})")
        else:
            self.logger.warning(
                f"Read-back value differs at register {address}! "
                f"Expected {self._describe(value, kind)} (hex {self._request_hex(value, kind)}), "
                f"got {self._describe(read_back, kind)} (hex {read_hex})"
            )
        return WriteResult(address, kind, value, accepted=True, read_back=read_back, matched=matched)

    def _read_back(self, address: int, kind: ParamType) -> Tuple[Union[int, float], str]:
        """
        Reads the register back and returns (value, hex of the words as read).
        """
        if kind is ParamType.FLOAT32:
            pair = self.channel.read_float(address)
            return pair.value, pair.hex
        value = self.channel.read_value(address, kind)
        return value, f"{value:04X}"

    def _values_match(self, requested: Union[int, float], read_back: Union[int, float], kind: ParamType) -> bool:
        if kind is ParamType.FLOAT32:
            return abs(read_back - requested) < self.tolerance
        return read_back == int(requested)

    def _check_value(self, value: Union[int, float], kind: ParamType) -> None:
        if kind is ParamType.FLOAT32:
            encode_float(value)
        elif not math.isfinite(value) or int(value) != value or not 0 <= int(value) <= 0xFFFF:
            raise DomainError(f"{value!r} does not fit a 16-bit register")

    def _log_write(self, address: int, value: Union[int, float], kind: ParamType) -> None:
        if kind is ParamType.FLOAT32:
            self.logger.info(
                f"Writing float {value:.3f} to register {address} "
                f"(uses {address}-{address + 1}, hex {float_to_hex(value)})"
            )
        else:
            self.logger.info(f"Writing register {address}: value={int(value)} (0x{int(value):04X})")

    @staticmethod
    def _describe(value: Union[int, float], kind: ParamType) -> str:
        if kind is ParamType.FLOAT32:
            return f"{value:.3f}"
        return f"{int(value)}"

    @staticmethod
    def _request_hex(value: Union[int, float], kind: ParamType) -> str:
        if kind is ParamType.FLOAT32:
            return float_to_hex(value)
        return f"{int(value):04X}"
