"""
sensor_communication

Modbus RTU communication with a conductivity (EC) sensor: discovery, verified
calibration writes, periodic sampling and dynamic temperature compensation.
"""

__version__ = "0.1.0"
