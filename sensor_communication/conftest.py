import pytest

from sensor_communication.communicator.connection import Connection
from sensor_communication.communicator.verified_writer import VerifiedWriter
from sensor_communication.device_simulator import SimulatedBus, SimulatedSensor
from sensor_communication.models import DeviceEndpoint

PORT = "/dev/ttyUSB0"


@pytest.fixture
def sensor():
    return SimulatedSensor(config={"temperature": 22.5, "raw_ec": 12.3})


@pytest.fixture
def bus(sensor):
    return SimulatedBus({PORT: sensor})


@pytest.fixture
def connection(bus):
    connection = Connection(DeviceEndpoint(PORT), serial_factory=bus)
    connection.open()
    yield connection
    connection.close()


@pytest.fixture
def channel(connection):
    return connection.channel


@pytest.fixture
def writer(channel):
    return VerifiedWriter(channel, settle_delay=0)
