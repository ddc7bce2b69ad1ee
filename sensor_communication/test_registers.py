import pytest

from sensor_communication.calibration.modes import write_step
from sensor_communication.param_types import ParamType
from sensor_communication.registers import REGISTERS, get_register


def test_measurement_registers_are_float_pairs():
    for name, address in (("temperature", 60), ("raw_ec", 45), ("sensor_ec", 41)):
        register = get_register(name)
        assert register.address == address
        assert register.param_type is ParamType.FLOAT32
        assert register.width == 2
        assert not register.write


def test_writable_registers():
    writable = {r.address: r.param_type for r in REGISTERS.values() if r.write}
    assert writable == {13: ParamType.UINT16, 28: ParamType.FLOAT32, 16: ParamType.UINT16}


def test_unknown_register():
    with pytest.raises(ValueError, match="Unknown register"):
        get_register("salinity")


def test_write_step_takes_address_and_kind_from_map():
    step = write_step("calibration_coefficient", 12880.0)
    assert (step.register, step.kind, step.description) == (28, ParamType.FLOAT32, "Calibration Coefficient")


def test_write_step_rejects_read_only_register():
    with pytest.raises(ValueError, match="read-only"):
        write_step("temperature", 25.0)
