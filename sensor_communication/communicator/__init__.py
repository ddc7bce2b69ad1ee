"""
__init__.py

Serial-side components: port configuration, connections, register access,
discovery and verified writes.
"""

from sensor_communication.communicator.connection import Connection
from sensor_communication.communicator.register_channel import RegisterChannel
from sensor_communication.communicator.transport_locator import TransportLocator
from sensor_communication.communicator.verified_writer import VerifiedWriter

__all__ = [
    'Connection',
    'RegisterChannel',
    'TransportLocator',
    'VerifiedWriter',
]
