from modscope.dataunit import ModbusDataUnit
from modscope.enums import RegisterType

import pytest


def test_new_unit_has_no_values_set():
    unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, 10, 3)
    assert unit.value_count == 3
    assert unit.values == [0, 0, 0]
    assert [unit.has_value(i) for i in range(3)] == [False, False, False]


def test_set_value_marks_presence():
    unit = ModbusDataUnit(RegisterType.COILS, 0, 4)
    unit.set_value(2, 1)
    assert unit.has_value(2)
    assert not unit.has_value(1)
    assert unit.value(2) == 1


def test_out_of_range_indexes():
    unit = ModbusDataUnit(RegisterType.COILS, 0, 2)
    unit.set_value(5, 9)
    unit.set_value(-1, 9)
    assert unit.values == [0, 0]
    assert not unit.has_value(5)
    assert not unit.has_value(-1)
    assert unit.value(5) == 0


def test_set_values_changes_count():
    unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, 0, 1)
    unit.set_values([7, 8, 9])
    assert unit.value_count == 3
    assert unit.values == [7, 8, 9]
    assert len(unit) == 3


def test_validity_follows_register_type():
    assert not ModbusDataUnit().is_valid()
    assert ModbusDataUnit(RegisterType.INPUT_REGISTERS).is_valid()
    assert ModbusDataUnit(RegisterType.INPUT_REGISTERS).value_count == 0


def test_value_count_limit():
    with pytest.raises(ValueError):
        ModbusDataUnit(RegisterType.COILS, 0, 65536)