"""
sequencer.py

Implements the CalibrationSequencer class, which runs the procedure behind a
CalibrationMode through a VerifiedWriter.

A procedure stops at the first raw write that fails; writes already done stay in
place (there is no rollback). Read-back mismatches are warnings and never count as
failure. A failed calibration is reported to the caller, who carries on with
whatever configuration the sensor ended up with.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from sensor_communication.calibration.modes import CalibrationMode, get_procedure
from sensor_communication.communicator.verified_writer import VerifiedWriter
from sensor_communication.config import CALIBRATION_SETTLE_DELAY
from sensor_communication.models import WriteResult


@dataclass
class CalibrationReport:
    """
    Outcome of one calibration run.
    """
    mode: CalibrationMode
    success: bool
    results: List[WriteResult] = field(default_factory=list)

    @property
    def mismatches(self) -> List[WriteResult]:
        return [r for r in self.results if r.accepted and not r.matched]

    def __bool__(self) -> bool:
        return self.success


class CalibrationSequencer:
    """
    Executes calibration procedures step by step.
    """

    def __init__(self, writer: VerifiedWriter, settle_delay: float = CALIBRATION_SETTLE_DELAY,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the sequencer.

        Args:
            writer: VerifiedWriter bound to the open session.
            settle_delay: Seconds to wait after a procedure so the firmware can apply it.
            logger: Optional logger instance.
        """
        self.writer = writer
        self.settle_delay = settle_delay
        self.logger = logger or logging.getLogger(__name__)

    def execute(self, mode: CalibrationMode) -> CalibrationReport:
        """
        Runs the procedure for `mode`.

        Returns:
            A CalibrationReport; success is False if any raw write failed.
        """
        procedure = get_procedure(mode)
        if procedure.first_step is None:
            self.logger.info(f"Calibration skipped (mode {mode.value})")
            return CalibrationReport(mode, success=True)

        self.logger.info(f"Calibration mode {mode.value}: {procedure.description}")
        report = CalibrationReport(mode, success=True)
        for step in procedure.first_step:
            self.logger.info(f"Mode {mode.value}: writing {step.description}...")
            result = self.writer.write_and_verify(step.register, step.value, step.kind)
            report.results.append(result)
            if not result.accepted:
                report.success = False
                break

        if report.success:
            self.logger.info(f"Calibration mode {mode.value} completed successfully")
        else:
            self.logger.error(f"Calibration mode {mode.value} failed! Check sensor connection.")
            if procedure.failure_hint:
                self.logger.info(procedure.failure_hint)
        if procedure.informative:
            self.logger.info("Test mode result is informative only; sampling is unaffected.")
        for mismatch in report.mismatches:
            self.logger.warning(f"Register {mismatch.address} did not read back as written")

        if self.settle_delay > 0:
            time.sleep(self.settle_delay)
        return report
