import pytest

from modscope.enums import SimulationMode
from modscope.ranges import Range
from modscope.simulation import (
    DecrementSimulationParams,
    IncrementSimulationParams,
    ModbusSimulationParams,
    RandomSimulationParams,
)


def test_defaults():
    params = ModbusSimulationParams()
    assert params.mode is SimulationMode.NO
    assert params.interval == 1000
    assert params.increment_params.step == 1.0
    assert params.decrement_params.range == Range(0.0, 65535.0)
    assert params.random_params.range == Range(0.0, 65535.0)


def test_round_trip():
    params = ModbusSimulationParams(
        mode=SimulationMode.DECREMENT,
        random_params=RandomSimulationParams(Range(-5.0, 5.0)),
        increment_params=IncrementSimulationParams(0.5, Range(1.0, 10.0)),
        decrement_params=DecrementSimulationParams(2.0, Range(100.0, 200.0)),
        interval=250,
    )
    assert ModbusSimulationParams.from_bytes(params.to_bytes()) == params


def test_encoded_size_and_mode_prefix():
    data = ModbusSimulationParams(mode=SimulationMode.INCREMENT).to_bytes()
    assert len(data) == ModbusSimulationParams.SERIALIZED_SIZE == 72
    assert data[:4] == b"\x00\x00\x00\x02"


def test_wrong_length_rejected():
    data = ModbusSimulationParams().to_bytes()
    with pytest.raises(ValueError):
        ModbusSimulationParams.from_bytes(data[:-1])


def test_unknown_mode_rejected():
    data = bytearray(ModbusSimulationParams().to_bytes())
    data[3] = 0x63
    with pytest.raises(ValueError):
        ModbusSimulationParams.from_bytes(bytes(data))


def test_defaults_are_not_shared():
    a = ModbusSimulationParams()
    b = ModbusSimulationParams()
    a.increment_params.step = 3.0
    assert b.increment_params.step == 1.0