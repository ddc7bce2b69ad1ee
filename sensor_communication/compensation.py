"""
compensation.py

Temperature compensation of conductivity readings to the 25 °C reference:

    C25 = raw_ec / (1 + k * (T - 25))

The sensor firmware uses a fixed k of 0.0200. Here k is looked up from a
piecewise-constant table calibrated per temperature band.
"""

import math

from sensor_communication.errors import DomainError
from sensor_communication.models import CompensationResult, SensorReading

REFERENCE_TEMPERATURE = 25.0

# Coefficient the sensor firmware applies at every temperature.
SENSOR_FIXED_K = 0.0200

# (upper bound inclusive, k), evaluated in order; first match wins.
DYNAMIC_K_TABLE = (
    (5.0, 0.0180),
    (10.0, 0.0184),
    (15.0, 0.0190),
    (25.0, 0.0190),
    (30.0, 0.0192),
)
DYNAMIC_K_ABOVE = 0.0194


def dynamic_k(temperature: float) -> float:
    """
    Returns the compensation coefficient for a temperature in °C.
    """
    for upper, k in DYNAMIC_K_TABLE:
        if temperature <= upper:
            return k
    return DYNAMIC_K_ABOVE


def compensate_with(raw_ec: float, temperature: float, k: float) -> float:
    """
    Normalizes raw_ec to 25 °C with an explicit coefficient.

    Raises:
        DomainError: If an input is not finite or the denominator is not positive.
    """
    if not (math.isfinite(raw_ec) and math.isfinite(temperature) and math.isfinite(k)):
        raise DomainError(f"Non-finite input: raw_ec={raw_ec}, temperature={temperature}, k={k}")
    denominator = 1.0 + k * (temperature - REFERENCE_TEMPERATURE)
    if denominator <= 0.0:
        raise DomainError(f"Compensation denominator {denominator:.6f} is not positive at {temperature} °C")
    return raw_ec / denominator


def compensate(raw_ec: float, temperature: float) -> float:
    """
    Normalizes raw_ec to 25 °C using the dynamic coefficient for the temperature.
    """
    return compensate_with(raw_ec, temperature, dynamic_k(temperature))


def compensate_reading(reading: SensorReading) -> CompensationResult:
    k = dynamic_k(reading.temperature)
    return CompensationResult(
        smart_ec=compensate_with(reading.raw_ec, reading.temperature, k),
        k_used=k,
    )
