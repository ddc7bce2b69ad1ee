import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import serial

# Bus address of the EC sensor. The factory default for this model is 4, not 1.
DEFAULT_SLAVE_ID = 4

# Serial link parameters used by the deployed sensor (9600 8N1).
LINK_PARAMETERS: Dict[str, Any] = {
    "baudrate": 9600,
    "bytesize": serial.EIGHTBITS,
    "parity": serial.PARITY_NONE,
    "stopbits": serial.STOPBITS_ONE,
}

# Response timeouts in seconds.
PROBE_TIMEOUT = 0.1
SESSION_TIMEOUT = 1.0
WRITE_TIMEOUT = 1.0

# Sampling cadence and retry interval in seconds.
SAMPLE_INTERVAL = 1.0

# Delay between a float write and its read-back, so the firmware sees both words.
FLOAT_SETTLE_DELAY = 0.1

# Delay after a calibration procedure before sampling resumes.
CALIBRATION_SETTLE_DELAY = 1.0

# Absolute tolerance for float read-back verification.
FLOAT_VERIFY_TOLERANCE = 0.001

# Calibration constants.
CALIBRATION_PARAMETERS: Dict[str, Any] = {
    "mode_1_value": 2,
    "mode_2_value": 3,
    "coefficient_value": 12880.0,  # 12.88 mS/cm standard solution, written in uS/cm
    "test_k": 0.0190,
    "test_k_scale": 10000,
}

# Validation parameters handed to the dashboard (deployment specific).
DEFAULT_REFERENCE_STANDARD = 12.88  # mS/cm @ 25 °C
DEFAULT_TOLERANCE = 0.10            # mS/cm

DEFAULT_CSV_PATH = "ec_data_log.csv"

# Candidate port naming schemes, scanned scheme by scheme in this order.
POSIX_PORT_SCHEMES: List[Tuple[str, range]] = [
    ("/dev/ttyS", range(0, 21)),
    ("/dev/ttyUSB", range(0, 5)),
    ("/dev/ttyACM", range(0, 5)),
]
WINDOWS_PORT_SCHEMES: List[Tuple[str, range]] = [
    ("COM", range(1, 21)),
]


def port_schemes() -> List[Tuple[str, range]]:
    """
    Returns the port naming schemes for the current platform.
    """
    return WINDOWS_PORT_SCHEMES if os.name == "nt" else POSIX_PORT_SCHEMES


def candidate_ports(include_system: bool = False) -> List[str]:
    """
    Builds the ordered list of transport identifiers to probe.

    Args:
        include_system: If True, ports reported by pyserial's enumerator that are not
            already in the fixed list are appended at the end.

    Returns:
        A list of port names in priority order.
    """
    ports = [f"{prefix}{i}" for prefix, numbers in port_schemes() for i in numbers]
    if include_system:
        from serial.tools import list_ports
        for info in list_ports.comports():
            if info.device not in ports:
                ports.append(info.device)
    return ports


def create_app_directories() -> Tuple[Path, Path]:
    """
    Creates the application directories if they don't exist.
    Returns a tuple of (app_dir, log_dir).
    """
    app_dir = Path.home() / ".smart_ec_logger"
    log_dir = app_dir / "logs"
    for directory in [app_dir, log_dir]:
        directory.mkdir(parents=True, exist_ok=True)
    return app_dir, log_dir


def setup_logging(name: str, level: int = logging.INFO,
                  log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configures logging for the application.
    Console output always; a file handler is added when log_file is given.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Removes old handlers if any
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
