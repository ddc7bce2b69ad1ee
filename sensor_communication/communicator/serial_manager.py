#!/usr/bin/env python3
"""
serial_manager.py

This module provides the function that opens and configures the serial port used to
talk to the EC sensor, with optional RS485 settings. Using pySerial's RS485Settings,
the port can be put in half-duplex mode with explicit RTS levels and timing delays for
adapters that do not switch direction automatically.

RS485 Configuration Details:
  - rts_level_for_tx: The RTS level used during transmission.
  - rts_level_for_rx: The RTS level used during reception.
  - delay_before_tx: Delay after setting RTS for transmission (in seconds).
  - delay_before_rx: Delay after switching RTS to reception (in seconds).

Usage Example:
    from sensor_communication.communicator.serial_manager import configure_sensor_serial
    ser = configure_sensor_serial(
        port="/dev/ttyUSB0",
        baudrate=9600,
        parity="N",
        bytesize=8,
        stopbits=1,
        timeout=1.0,
        use_rs485=True,
    )
"""

import serial
from serial.rs485 import RS485Settings

from sensor_communication.config import WRITE_TIMEOUT


def configure_sensor_serial(port: str, baudrate: int, parity: str = "N", bytesize: int = 8,
                            stopbits: float = 1, timeout: float = 1.0,
                            write_timeout: float = WRITE_TIMEOUT, use_rs485: bool = False,
                            rts_level_for_tx: bool = True, rts_level_for_rx: bool = False,
                            delay_before_tx: float = 0.0, delay_before_rx: float = 0.0) -> serial.Serial:
    """
    Opens and returns a serial.Serial object configured for Modbus RTU.

    Args:
        port (str): Serial port (e.g., "COM3" or "/dev/ttyUSB0").
        baudrate (int): Communication baud rate.
        parity (str): Parity setting ("N", "E", "O").
        bytesize (int): Number of data bits.
        stopbits (float): Number of stop bits.
        timeout (float): Read timeout in seconds; bounds every response wait.
        write_timeout (float): Write timeout in seconds.
        use_rs485 (bool): True to drive RTS for half-duplex RS485 adapters.
        rts_level_for_tx (bool): RTS level during transmission.
        rts_level_for_rx (bool): RTS level during reception.
        delay_before_tx (float): Delay in seconds before transmitting after setting RTS.
        delay_before_rx (float): Delay in seconds after switching to receive mode.

    Returns:
        serial.Serial: An open, configured serial port.

    Raises:
        serial.SerialException: If the port does not exist or cannot be opened.
    """
    ser = serial.Serial(
        port=port,
        baudrate=baudrate,
        bytesize=bytesize,
        parity=parity,
        stopbits=stopbits,
        timeout=timeout,
        write_timeout=write_timeout
    )
    if use_rs485:
        ser.rs485_mode = RS485Settings(
            rts_level_for_tx=rts_level_for_tx,
            rts_level_for_rx=rts_level_for_rx,
            delay_before_tx=delay_before_tx,
            delay_before_rx=delay_before_rx
        )
    return ser
