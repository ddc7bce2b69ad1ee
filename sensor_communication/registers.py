"""
registers.py

Register map of the EC sensor. Addresses and value kinds are a bit-exact contract
with the device firmware; float values occupy two consecutive registers with the
high word first.
"""

from typing import Dict

from sensor_communication.param_types import ParamType, RegisterDefinition

CALIBRATION_MODE_REGISTER = 13
CALIBRATION_COEFFICIENT_REGISTER = 28
TEST_COEFFICIENT_REGISTER = 16
TEMPERATURE_REGISTER = 60
RAW_EC_REGISTER = 45
SENSOR_EC_REGISTER = 41

# Register read once per probe to confirm a responding device.
HANDSHAKE_REGISTER = TEMPERATURE_REGISTER

REGISTERS: Dict[str, RegisterDefinition] = {
    "calibration_mode": RegisterDefinition(
        CALIBRATION_MODE_REGISTER, "calibration_mode", "Calibration Mode",
        ParamType.UINT16, write=True),
    "calibration_coefficient": RegisterDefinition(
        CALIBRATION_COEFFICIENT_REGISTER, "calibration_coefficient", "Calibration Coefficient",
        ParamType.FLOAT32, write=True),
    "test_coefficient": RegisterDefinition(
        TEST_COEFFICIENT_REGISTER, "test_coefficient", "Test Coefficient",
        ParamType.UINT16, write=True),
    "temperature": RegisterDefinition(
        TEMPERATURE_REGISTER, "temperature", "Temperature", ParamType.FLOAT32),
    "raw_ec": RegisterDefinition(
        RAW_EC_REGISTER, "raw_ec", "Raw EC", ParamType.FLOAT32),
    "sensor_ec": RegisterDefinition(
        SENSOR_EC_REGISTER, "sensor_ec", "Sensor EC (fixed k)", ParamType.FLOAT32),
    "diagnostic_1": RegisterDefinition(1, "diagnostic_1", "Diagnostic 1"),
    "diagnostic_2": RegisterDefinition(2, "diagnostic_2", "Diagnostic 2"),
}


def get_register(name: str) -> RegisterDefinition:
    """
    Retrieves a register definition by name.

    Raises:
        ValueError: If the register name is unknown.
    """
    if name not in REGISTERS:
        raise ValueError(f"Unknown register: {name}")
    return REGISTERS[name]
