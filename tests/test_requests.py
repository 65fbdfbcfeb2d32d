import struct

import pytest

from modscope.codes import FunctionCode
from modscope.dataunit import ModbusDataUnit
from modscope.enums import ByteOrder, DataDisplayMode, RegisterType
from modscope.numeric import break_uint16, make_double, make_float, make_int32, make_int64
from modscope.requests import (
    ModbusMaskWriteParams,
    ModbusRequest,
    ModbusWriteParams,
    build_write_data_unit,
    create_coils_data_unit,
    create_double_data_unit,
    create_float_data_unit,
    create_holding_registers_data_unit,
    create_int32_data_unit,
    create_int64_data_unit,
    create_mask_write_request,
    create_read_request,
    create_write_request,
)


def _unit(register_type, start, values):
    unit = ModbusDataUnit(register_type, start, len(values))
    for index, value in enumerate(values):
        unit.set_value(index, value)
    return unit


def test_default_request_is_invalid():
    assert ModbusRequest().is_valid() is False


def test_request_data_length_limit():
    assert ModbusRequest(FunctionCode.WRITE_MULTIPLE_REGISTERS, bytes(252)).is_valid() is True
    assert ModbusRequest(FunctionCode.WRITE_MULTIPLE_REGISTERS, bytes(253)).is_valid() is False


def test_to_bytes_prefixes_function_code():
    request = ModbusRequest(FunctionCode.READ_COILS, b"\x00\x01")
    assert request.to_bytes() == bytes([FunctionCode.READ_COILS]) + b"\x00\x01"


@pytest.mark.parametrize(
    "register_type, function",
    [
        (RegisterType.COILS, FunctionCode.READ_COILS),
        (RegisterType.DISCRETE_INPUTS, FunctionCode.READ_DISCRETE_INPUTS),
        (RegisterType.INPUT_REGISTERS, FunctionCode.READ_INPUT_REGISTERS),
        (RegisterType.HOLDING_REGISTERS, FunctionCode.READ_HOLDING_REGISTERS),
    ],
)
def test_read_request(register_type, function):
    request = create_read_request(ModbusDataUnit(register_type, 100, 10))
    assert request.function_code == function
    assert request.data == struct.pack(">HH", 100, 10)
    assert request.is_valid()


def test_read_request_for_invalid_type():
    assert create_read_request(ModbusDataUnit()).is_valid() is False


def test_write_single_coil_on_and_off():
    on = create_write_request(_unit(RegisterType.COILS, 7, [1]), False)
    off = create_write_request(_unit(RegisterType.COILS, 7, [0]), False)
    assert on.function_code == FunctionCode.WRITE_SINGLE_COIL
    assert on.data == struct.pack(">HH", 7, 0xFF00)
    assert off.data == struct.pack(">HH", 7, 0x0000)


def test_forced_multiple_coils_for_one_value():
    request = create_write_request(_unit(RegisterType.COILS, 7, [1]), True)
    assert request.function_code == FunctionCode.WRITE_MULTIPLE_COILS
    assert request.data == struct.pack(">HHB", 7, 1, 1) + b"\x01"


def test_multiple_coils_bits_round_trip():
    values = [1, 0, 1, 1, 0, 0, 0, 0, 1]
    request = create_write_request(_unit(RegisterType.COILS, 0, values), False)
    assert request.function_code == FunctionCode.WRITE_MULTIPLE_COILS
    assert request.data[:5] == struct.pack(">HHB", 0, 9, 2)
    packed = request.data[5:]
    decoded = [(packed[i // 8] >> (i % 8)) & 1 for i in range(len(values))]
    assert decoded == values


def test_write_single_register():
    request = create_write_request(_unit(RegisterType.HOLDING_REGISTERS, 3, [0xBEEF]), False)
    assert request.function_code == FunctionCode.WRITE_SINGLE_REGISTER
    assert request.data == struct.pack(">HH", 3, 0xBEEF)


def test_write_multiple_registers():
    request = create_write_request(_unit(RegisterType.HOLDING_REGISTERS, 3, [1, 2, 3]), False)
    assert request.function_code == FunctionCode.WRITE_MULTIPLE_REGISTERS
    assert request.data == struct.pack(">HHB3H", 3, 3, 6, 1, 2, 3)


def test_forced_multiple_registers_for_one_value():
    request = create_write_request(_unit(RegisterType.HOLDING_REGISTERS, 3, [5]), True)
    assert request.function_code == FunctionCode.WRITE_MULTIPLE_REGISTERS


def test_write_request_for_read_only_type_is_invalid():
    request = create_write_request(_unit(RegisterType.INPUT_REGISTERS, 0, [1]), False)
    assert request.is_valid() is False


@pytest.mark.parametrize("zero_based, expected_address", [(False, 9), (True, 10)])
def test_mask_write_request(zero_based, expected_address):
    params = ModbusMaskWriteParams(
        node=1, address=10, and_mask=0xFF00, or_mask=0x0012, zero_based_address=zero_based
    )
    request = create_mask_write_request(params)
    assert request.function_code == FunctionCode.MASK_WRITE_REGISTER
    assert request.data == struct.pack(">HHH", expected_address, 0xFF00, 0x0012)


def test_mask_write_defaults():
    params = ModbusMaskWriteParams()
    assert (params.and_mask, params.or_mask) == (0xFFFF, 0)


def test_coils_unit_from_bool():
    unit = create_coils_data_unit(5, True)
    assert unit.register_type == RegisterType.COILS
    assert unit.start_address == 5
    assert unit.values == [1]
    assert unit.has_value(0)


def test_coils_unit_from_list():
    unit = create_coils_data_unit(2, [1, 0, 1])
    assert unit.values == [1, 0, 1]
    assert unit.value_count == 3


def test_holding_unit_single_direct():
    unit = create_holding_registers_data_unit(0, 0x1234, ByteOrder.DIRECT)
    assert unit.values == [0x1234]


def test_holding_unit_single_swapped():
    unit = create_holding_registers_data_unit(0, 0x1234, ByteOrder.SWAPPED)
    assert break_uint16(unit.value(0), ByteOrder.SWAPPED) == break_uint16(0x1234, ByteOrder.DIRECT)


@pytest.mark.parametrize("order", list(ByteOrder))
def test_holding_unit_list_written_as_given(order):
    unit = create_holding_registers_data_unit(4, [0x1234, 0x5678], order)
    assert unit.values == [0x1234, 0x5678]
    assert unit.start_address == 4


@pytest.mark.parametrize("order", list(ByteOrder))
@pytest.mark.parametrize("swapped", [False, True])
def test_float_unit_round_trip(order, swapped):
    unit = create_float_data_unit(0, 1.5, order, swapped)
    words = unit.values
    lo, hi = (words[1], words[0]) if swapped else (words[0], words[1])
    assert make_float(lo, hi, order) == 1.5


@pytest.mark.parametrize("order", list(ByteOrder))
@pytest.mark.parametrize("swapped", [False, True])
def test_int32_unit_round_trip(order, swapped):
    unit = create_int32_data_unit(0, -123456, order, swapped)
    words = unit.values
    lo, hi = (words[1], words[0]) if swapped else (words[0], words[1])
    assert make_int32(lo, hi, order) == -123456


@pytest.mark.parametrize("order", list(ByteOrder))
@pytest.mark.parametrize("swapped", [False, True])
def test_int64_unit_round_trip(order, swapped):
    unit = create_int64_data_unit(0, -(2**40) + 7, order, swapped)
    words = unit.values
    if swapped:
        words = list(reversed(words))
    assert make_int64(*words, order) == -(2**40) + 7


@pytest.mark.parametrize("order", list(ByteOrder))
@pytest.mark.parametrize("swapped", [False, True])
def test_double_unit_round_trip(order, swapped):
    unit = create_double_data_unit(0, 3.25, order, swapped)
    words = unit.values
    if swapped:
        words = list(reversed(words))
    assert make_double(*words, order) == 3.25


def test_build_coils_from_list_one_based():
    params = ModbusWriteParams(node=1, address=10, value=[1, 1, 0])
    unit = build_write_data_unit(RegisterType.COILS, params)
    assert unit.register_type == RegisterType.COILS
    assert unit.start_address == 9
    assert unit.values == [1, 1, 0]


def test_build_coils_from_scalar_zero_based():
    params = ModbusWriteParams(node=1, address=10, value=True, zero_based_address=True)
    unit = build_write_data_unit(RegisterType.COILS, params)
    assert unit.start_address == 10
    assert unit.values == [1]


@pytest.mark.parametrize(
    "mode, count",
    [
        (DataDisplayMode.UINT16, 1),
        (DataDisplayMode.HEX, 1),
        (DataDisplayMode.ANSI, 1),
        (DataDisplayMode.FLOATING_PT, 2),
        (DataDisplayMode.SWAPPED_FP, 2),
        (DataDisplayMode.DBL_FLOAT, 4),
        (DataDisplayMode.INT32, 2),
        (DataDisplayMode.SWAPPED_UINT32, 2),
        (DataDisplayMode.INT64, 4),
        (DataDisplayMode.SWAPPED_UINT64, 4),
    ],
)
def test_build_holding_register_count_by_mode(mode, count):
    params = ModbusWriteParams(node=1, address=1, value=12, display_mode=mode)
    unit = build_write_data_unit(RegisterType.HOLDING_REGISTERS, params)
    assert unit.register_type == RegisterType.HOLDING_REGISTERS
    assert unit.value_count == count
    assert unit.start_address == 0


def test_build_swapped_float_reverses_words():
    direct = ModbusWriteParams(value=2.5, display_mode=DataDisplayMode.FLOATING_PT)
    swapped = ModbusWriteParams(value=2.5, display_mode=DataDisplayMode.SWAPPED_FP)
    a = build_write_data_unit(RegisterType.HOLDING_REGISTERS, direct)
    b = build_write_data_unit(RegisterType.HOLDING_REGISTERS, swapped)
    assert b.values == list(reversed(a.values))


def test_build_holding_list_value():
    params = ModbusWriteParams(address=5, value=[7, 8], zero_based_address=True)
    unit = build_write_data_unit(RegisterType.HOLDING_REGISTERS, params)
    assert unit.values == [7, 8]
    assert unit.start_address == 5


def test_build_missing_value_reads_as_zero():
    params = ModbusWriteParams(value=None, display_mode=DataDisplayMode.UINT16)
    unit = build_write_data_unit(RegisterType.HOLDING_REGISTERS, params)
    assert unit.values == [0]


@pytest.mark.parametrize("point_type", [RegisterType.INPUT_REGISTERS, RegisterType.DISCRETE_INPUTS])
def test_build_for_read_only_type_is_invalid(point_type):
    params = ModbusWriteParams(value=1, display_mode=DataDisplayMode.UINT16)
    assert build_write_data_unit(point_type, params).is_valid() is False