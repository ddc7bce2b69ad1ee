"""
diagnostics.py

Reads a snapshot of the sensor's diagnostic and calibration registers so the current
device state can be checked before (and after) calibration.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from sensor_communication.communicator.register_channel import RegisterChannel
from sensor_communication.errors import TransportError
from sensor_communication.models import FloatRegisterPair
from sensor_communication.param_types import ParamType, RegisterDefinition
from sensor_communication.registers import get_register

DIAGNOSTIC_REGISTERS = [
    get_register(name)
    for name in ("diagnostic_1", "diagnostic_2", "test_coefficient", "calibration_mode", "calibration_coefficient")
]


@dataclass
class DiagnosticEntry:
    definition: RegisterDefinition
    value: Optional[Union[int, float]] = None
    pair: Optional[FloatRegisterPair] = None  # words as read, for FLOAT32 registers
    error: Optional[str] = None

    @property
    def register(self) -> int:
        return self.definition.address

    @property
    def kind(self) -> ParamType:
        return self.definition.param_type

    @property
    def hex(self) -> str:
        if self.pair is not None:
            return self.pair.hex
        if self.value is None:
            return ""
        return f"{self.value:04X}"


def read_diagnostics(channel: RegisterChannel) -> List[DiagnosticEntry]:
    """
    Reads every diagnostic register. A failed read is recorded in its entry and the
    snapshot continues with the next register.
    """
    entries = []
    for definition in DIAGNOSTIC_REGISTERS:
        entry = DiagnosticEntry(definition)
        try:
            if definition.param_type is ParamType.FLOAT32:
                entry.pair = channel.read_float(definition.address)
                entry.value = entry.pair.value
            else:
                entry.value = channel.read_value(definition.address, definition.param_type)
        except TransportError as e:
            entry.error = str(e)
        entries.append(entry)
    return entries


def format_diagnostics(entries: List[DiagnosticEntry]) -> str:
    lines = []
    for entry in entries:
        suffix = f"  <- {entry.definition.description}"
        if entry.error is not None:
            lines.append(f"  Register {entry.register:2d} = [READ ERROR]{suffix}")
        elif entry.kind is ParamType.FLOAT32:
            lines.append(f"  Register {entry.register:2d} = {entry.value:.3f}  (Hex: {entry.hex}){suffix}")
        else:
            lines.append(f"  Register {entry.register:2d} = {entry.value:5d}  (0x{entry.hex}){suffix}")
    return "\n".join(lines)
