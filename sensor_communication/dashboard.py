"""
dashboard.py

Console dashboard for live validation of the compensation algorithm.

For every record it shows the decision logic (temperature band and coefficient),
the formula evaluated with the sensor's fixed k and with the dynamic k, and how far
each result is from a reference standard solution. The reference value and tolerance
are deployment parameters supplied by the caller.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import click

from sensor_communication.compensation import REFERENCE_TEMPERATURE, SENSOR_FIXED_K
from sensor_communication.config import DEFAULT_REFERENCE_STANDARD, DEFAULT_TOLERANCE
from sensor_communication.models import CompensationResult, SensorReading

RULE = "-" * 71


@dataclass(frozen=True)
class ValidationMetrics:
    """
    Distance of the sensor's and the compensated EC from a reference standard.
    """
    sensor_error: float
    smart_error: float
    improvement: float
    improvement_pct: float
    sensor_pass: bool
    smart_pass: bool


def validation_metrics(sensor_ec: float, smart_ec: float,
                       reference: float = DEFAULT_REFERENCE_STANDARD,
                       tolerance: float = DEFAULT_TOLERANCE) -> ValidationMetrics:
    sensor_error = abs(sensor_ec - reference)
    smart_error = abs(smart_ec - reference)
    improvement = sensor_error - smart_error
    return ValidationMetrics(
        sensor_error=sensor_error,
        smart_error=smart_error,
        improvement=improvement,
        improvement_pct=(improvement / sensor_error * 100.0) if sensor_error > 0 else 0.0,
        sensor_pass=sensor_error <= tolerance,
        smart_pass=smart_error <= tolerance,
    )


def temperature_band(temperature: float) -> str:
    if temperature <= 5.0:
        return "Very Cold Range (<=5°C)"
    elif temperature <= 10.0:
        return "Cold Range (5-10°C)"
    elif temperature <= 15.0:
        return "Cool Range (10-15°C)"
    elif temperature <= 25.0:
        return "Normal Range (15-25°C)"
    return "Warm Range (>25°C)"


def _verdict(passed: bool) -> str:
    return "PASS" if passed else "FAIL (exceeds tolerance)"


class ConsoleDashboard:
    """
    Record sink rendering a text dashboard to the terminal.
    """

    def __init__(self, port: str, reference: float = DEFAULT_REFERENCE_STANDARD,
                 tolerance: float = DEFAULT_TOLERANCE, clear_screen: bool = True,
                 echo: Optional[Callable[[str], None]] = None):
        self.port = port
        self.reference = reference
        self.tolerance = tolerance
        self.clear_screen = clear_screen
        self.echo = echo or click.echo

    def render(self, reading: SensorReading, result: CompensationResult) -> str:
        t = reading.temperature
        k = result.k_used
        metrics = validation_metrics(reading.sensor_ec, result.smart_ec, self.reference, self.tolerance)
        sensor_denominator = 1.0 + SENSOR_FIXED_K * (t - REFERENCE_TEMPERATURE)
        smart_denominator = 1.0 + k * (t - REFERENCE_TEMPERATURE)

        if metrics.improvement > 0:
            outcome = "Smart algorithm is better"
        elif metrics.improvement < 0:
            outcome = "Sensor default is better"
        else:
            outcome = "No difference"

        lines = [
            "LIVE ALGORITHM VALIDATION",
            RULE,
            f"  Port: {self.port} | Samples: {reading.cycle} | "
            f"Time: {reading.timestamp:%Y-%m-%d %H:%M:%S}",
            "",
            "  Decision logic",
            f"    Temperature = {t:.2f}°C (0x{reading.raw_hex_temp}) -> {temperature_band(t)}",
            f"    Dynamic coefficient k = {k:.4f} ({k * 100:.2f}%)",
            f"    Sensor fixed coefficient k = {SENSOR_FIXED_K:.4f} ({SENSOR_FIXED_K * 100:.2f}%)",
            "",
            "  Formula: C25 = Raw_EC / (1 + k x (Temp - 25))",
            f"    Sensor: {reading.sensor_ec:.2f} = {reading.raw_ec:.2f} / {sensor_denominator:.4f}",
            f"    Smart:  {result.smart_ec:.2f} = {reading.raw_ec:.2f} / {smart_denominator:.4f}",
            "",
            f"  Standard reference: {self.reference:.2f} mS/cm @ 25°C, tolerance ±{self.tolerance:.2f} mS/cm",
            f"    Sensor error: {metrics.sensor_error:8.4f} mS/cm  {_verdict(metrics.sensor_pass)}",
            f"    Smart error:  {metrics.smart_error:8.4f} mS/cm  {_verdict(metrics.smart_pass)}",
            f"    Error reduction: {metrics.improvement:.4f} mS/cm ({metrics.improvement_pct:.1f}%)  {outcome}",
            RULE,
            f"  Temperature: {t:10.2f} °C     [Hex: {reading.raw_hex_temp}]",
            f"  Raw EC:      {reading.raw_ec:10.2f} mS/cm  [Hex: {reading.raw_hex_ec}]",
            f"  Sensor EC:   {reading.sensor_ec:10.2f} mS/cm  {'PASS' if metrics.sensor_pass else 'FAIL'}",
            f"  Smart EC:    {result.smart_ec:10.2f} mS/cm  {'PASS' if metrics.smart_pass else 'FAIL'}",
            RULE,
        ]
        return "\n".join(lines)

    def __call__(self, reading: SensorReading, result: CompensationResult) -> None:
        if self.clear_screen:
            click.clear()
        self.echo(self.render(reading, result))
