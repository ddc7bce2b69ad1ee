"""
modes.py

Defines the calibration modes and the fixed register-write procedure behind each one.

Each procedure is a chain of CalibrationStep objects: a step's `then` runs only if the
step's own raw write succeeded. Adding a mode means adding an enum member and a
procedure entry, nothing else.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Union

from sensor_communication.config import CALIBRATION_PARAMETERS
from sensor_communication.param_types import ParamType
from sensor_communication.registers import (
    CALIBRATION_COEFFICIENT_REGISTER,
    CALIBRATION_MODE_REGISTER,
    TEST_COEFFICIENT_REGISTER,
    get_register,
)


class CalibrationMode(Enum):
    """
    Calibration procedures the logger can run before sampling.
    """
    NONE = 0
    MODE_1 = 1
    MODE_2 = 2
    MODE_3_TEST = 3

    @classmethod
    def from_value(cls, value: Union[int, str]) -> "CalibrationMode":
        """
        Resolves a mode from its number (as given on the command line).

        Raises:
            ValueError: If the number is not a known mode.
        """
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Invalid calibration mode: {value!r} (expected 0-3)")


@dataclass(frozen=True)
class CalibrationStep:
    """
    One register write of a calibration procedure.

    Attributes:
        register: Target register address.
        kind: Value kind (a FLOAT32 write touches register and register + 1).
        value: The value to write.
        description: Shown in the log when the step runs.
        then: Step to run only if this step's raw write succeeded.
    """
    register: int
    kind: ParamType
    value: Union[int, float]
    description: str = ""
    then: Optional["CalibrationStep"] = None

    def __iter__(self) -> Iterator["CalibrationStep"]:
        step: Optional[CalibrationStep] = self
        while step is not None:
            yield step
            step = step.then


@dataclass(frozen=True)
class CalibrationProcedure:
    """
    The steps behind one calibration mode.

    Attributes:
        mode: The mode this procedure implements.
        description: Human-readable summary.
        first_step: Head of the step chain, None for a no-op procedure.
        informative: True if the outcome only reports on the firmware and should not
            be acted upon.
        failure_hint: Extra advice logged when the procedure fails.
    """
    mode: CalibrationMode
    description: str
    first_step: Optional[CalibrationStep] = None
    informative: bool = False
    failure_hint: str = ""

    @property
    def steps(self) -> list:
        return list(self.first_step) if self.first_step else []


def write_step(name: str, value: Union[int, float], description: str = "",
               then: Optional[CalibrationStep] = None) -> CalibrationStep:
    """
    Builds a step writing `value` to the named register of the register map.

    Raises:
        ValueError: If the register is unknown or read-only.
    """
    definition = get_register(name)
    if not definition.write:
        raise ValueError(f"Register {definition.name} is read-only")
    return CalibrationStep(definition.address, definition.param_type, value,
                           description or definition.description, then)


def scaled_test_coefficient() -> int:
    """
    The K coefficient scaled to an integer register value (0.0190 x 10000 = 190).
    """
    return round(CALIBRATION_PARAMETERS["test_k"] * CALIBRATION_PARAMETERS["test_k_scale"])


CALIBRATION_PROCEDURES: Dict[CalibrationMode, CalibrationProcedure] = {
    CalibrationMode.NONE: CalibrationProcedure(
        CalibrationMode.NONE,
        "Skip calibration (use existing sensor settings)",
    ),
    CalibrationMode.MODE_1: CalibrationProcedure(
        CalibrationMode.MODE_1,
        f"Register {CALIBRATION_MODE_REGISTER} = {CALIBRATION_PARAMETERS['mode_1_value']}",
        write_step("calibration_mode", CALIBRATION_PARAMETERS["mode_1_value"]),
    ),
    CalibrationMode.MODE_2: CalibrationProcedure(
        CalibrationMode.MODE_2,
        f"Register {CALIBRATION_COEFFICIENT_REGISTER} = {CALIBRATION_PARAMETERS['coefficient_value']} (float) "
        f"+ Register {CALIBRATION_MODE_REGISTER} = {CALIBRATION_PARAMETERS['mode_2_value']}",
        write_step(
            "calibration_coefficient", CALIBRATION_PARAMETERS["coefficient_value"],
            then=write_step("calibration_mode", CALIBRATION_PARAMETERS["mode_2_value"]),
        ),
    ),
    CalibrationMode.MODE_3_TEST: CalibrationProcedure(
        CalibrationMode.MODE_3_TEST,
        f"TEST - Write K={scaled_test_coefficient()} to Register {TEST_COEFFICIENT_REGISTER} (x10000 format)",
        write_step(
            "test_coefficient", scaled_test_coefficient(),
            f"K={CALIBRATION_PARAMETERS['test_k']:.4f} scaled x{CALIBRATION_PARAMETERS['test_k_scale']}",
        ),
        informative=True,
        failure_hint="Sensor may not accept the x10000 format; try K x 1000 (value=19) instead.",
    ),
}


def get_procedure(mode: CalibrationMode) -> CalibrationProcedure:
    return CALIBRATION_PROCEDURES[mode]
