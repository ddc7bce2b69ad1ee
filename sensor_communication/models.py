"""
models.py

Defines core data models used throughout the application: endpoints, register
pairs, per-cycle readings and write outcomes.
Utilizes dataclasses to enforce structure and type safety.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Union

from sensor_communication.config import DEFAULT_SLAVE_ID, LINK_PARAMETERS
from sensor_communication.param_types import ParamType
from sensor_communication.protocols.float_codec import decode_float, words_to_hex


@dataclass(frozen=True)
class DeviceEndpoint:
    """
    Immutable description of where and how to reach the sensor.
    """
    port: str                                         # e.g. "/dev/ttyUSB0" or "COM3"
    baudrate: int = LINK_PARAMETERS["baudrate"]
    parity: str = LINK_PARAMETERS["parity"]
    bytesize: int = LINK_PARAMETERS["bytesize"]
    stopbits: float = LINK_PARAMETERS["stopbits"]
    slave_id: int = DEFAULT_SLAVE_ID                  # device address on the bus

    def with_port(self, port: str) -> "DeviceEndpoint":
        """
        Returns a copy of this endpoint bound to another port.
        """
        return replace(self, port=port)

    def serial_settings(self) -> dict:
        return {
            "baudrate": self.baudrate,
            "parity": self.parity,
            "bytesize": self.bytesize,
            "stopbits": self.stopbits,
        }


@dataclass(frozen=True)
class FloatRegisterPair:
    """
    Two consecutive registers holding one float, high word first.
    """
    address: int
    word0: int
    word1: int

    @property
    def value(self) -> float:
        return decode_float(self.word0, self.word1)

    @property
    def hex(self) -> str:
        return words_to_hex(self.word0, self.word1)


@dataclass
class SensorReading:
    """
    One complete sampling cycle's worth of decoded values.
    """
    temperature: float       # °C
    raw_ec: float            # mS/cm, uncompensated
    sensor_ec: float         # mS/cm, compensated by the sensor firmware
    timestamp: datetime
    raw_hex_temp: str        # register words behind temperature
    raw_hex_ec: str          # register words behind raw_ec
    cycle: int = 0


@dataclass(frozen=True)
class CompensationResult:
    """
    Temperature-compensated EC and the coefficient used to compute it.
    """
    smart_ec: float
    k_used: float


@dataclass
class WriteResult:
    """
    Outcome of a verified write.

    accepted is False only when the raw write itself failed. matched is False when
    the read-back differs or could not be performed.
    """
    address: int
    kind: ParamType
    requested: Union[int, float]
    accepted: bool
    read_back: Optional[Union[int, float]] = None
    matched: bool = False
    error_message: Optional[str] = None
