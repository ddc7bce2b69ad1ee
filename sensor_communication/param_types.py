"""
param_types.py

Defines register value types and a data class for register definitions.
This file standardizes how every register in the sensor's map is described.
"""

from enum import Enum
from dataclasses import dataclass


class ParamType(Enum):
    """
    Enumeration of value kinds stored in the sensor's registers.
    """
    UINT16 = "uint16"
    FLOAT32 = "float32"

    @property
    def width(self) -> int:
        """
        Number of 16-bit registers a value of this kind occupies.
        """
        return 2 if self is ParamType.FLOAT32 else 1


@dataclass(frozen=True)
class RegisterDefinition:
    """
    Data class representing one entry of the sensor's register map.

    Attributes:
        address: The first register address (a float also occupies address + 1).
        name: A short name for the register.
        description: A human-readable description of what the register holds.
        param_type: The kind of value stored (UINT16 or FLOAT32).
        write: True if the register may be written.
    """
    address: int
    name: str
    description: str
    param_type: ParamType = ParamType.UINT16
    write: bool = False

    @property
    def width(self) -> int:
        return self.param_type.width
