"""
__init__.py

Calibration modes, their register-write procedures, and the sequencer that runs them.
"""

from sensor_communication.calibration.modes import (
    CALIBRATION_PROCEDURES,
    CalibrationMode,
    CalibrationProcedure,
    CalibrationStep,
    get_procedure,
)
from sensor_communication.calibration.sequencer import CalibrationReport, CalibrationSequencer

__all__ = [
    'CALIBRATION_PROCEDURES',
    'CalibrationMode',
    'CalibrationProcedure',
    'CalibrationReport',
    'CalibrationSequencer',
    'CalibrationStep',
    'get_procedure',
]
