"""Modbus request PDUs, write parameters and the data units that writes are built from."""

from __future__ import annotations

import struct
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

from modscope.codes import FunctionCode
from modscope.dataunit import ModbusDataUnit
from modscope.enums import ByteOrder, DataDisplayMode, RegisterType
from modscope.numeric import break_double, break_float, break_int32, break_int64

MAX_PDU_DATA = 252

CoilValue = Union[bool, int, Sequence[int]]


@dataclass(frozen=True)
class ModbusRequest:
    """A request PDU: function code followed by its data bytes."""

    function_code: int = FunctionCode.INVALID
    data: bytes = b""

    def is_valid(self) -> bool:
        """True for a defined function code and data that fits in one PDU."""
        return 0 < self.function_code < 0x100 and len(self.data) <= MAX_PDU_DATA

    def to_bytes(self) -> bytes:
        """The PDU as sent on the wire."""
        if not 0 <= self.function_code <= 0xFF:
            raise ValueError(f"function code out of range: {self.function_code}")
        return bytes([self.function_code]) + self.data


@dataclass
class ModbusWriteParams:
    """What to write, where, and how the value is interpreted."""

    node: int = 1
    address: int = 1
    value: Any = None
    display_mode: DataDisplayMode = DataDisplayMode.BINARY
    order: ByteOrder = ByteOrder.DIRECT
    codepage: str = ""
    zero_based_address: bool = False


@dataclass
class ModbusMaskWriteParams:
    """Parameters of a mask write register request."""

    node: int = 1
    address: int = 1
    and_mask: int = 0xFFFF
    or_mask: int = 0
    zero_based_address: bool = False


_READ_FUNCTIONS = {
    RegisterType.COILS: FunctionCode.READ_COILS,
    RegisterType.DISCRETE_INPUTS: FunctionCode.READ_DISCRETE_INPUTS,
    RegisterType.INPUT_REGISTERS: FunctionCode.READ_INPUT_REGISTERS,
    RegisterType.HOLDING_REGISTERS: FunctionCode.READ_HOLDING_REGISTERS,
}

_SINGLE_REGISTER_MODES = frozenset(
    {
        DataDisplayMode.BINARY,
        DataDisplayMode.UINT16,
        DataDisplayMode.INT16,
        DataDisplayMode.HEX,
        DataDisplayMode.ANSI,
    }
)


def _words(*values: int) -> bytes:
    return struct.pack(f">{len(values)}H", *(v & 0xFFFF for v in values))


def _swap_bytes(value: int, order: ByteOrder) -> int:
    value &= 0xFFFF
    if order == ByteOrder.SWAPPED:
        return ((value & 0xFF) << 8) | (value >> 8)
    return value


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def create_read_request(unit: ModbusDataUnit) -> ModbusRequest:
    """Read request for the points of a data unit; invalid for an unknown register type."""
    function = _READ_FUNCTIONS.get(unit.register_type)
    if function is None:
        return ModbusRequest()
    return ModbusRequest(function, _words(unit.start_address, unit.value_count))


def create_write_request(unit: ModbusDataUnit, use_multiple_write_func: bool) -> ModbusRequest:
    """Write request for coils or holding registers; invalid for other register types."""
    start = unit.start_address
    count = unit.value_count
    single = count == 1 and not use_multiple_write_func

    if unit.register_type == RegisterType.COILS:
        if single:
            return ModbusRequest(
                FunctionCode.WRITE_SINGLE_COIL,
                _words(start, 0x0000 if unit.value(0) == 0 else 0xFF00),
            )
        byte_count = (count + 7) // 8
        packed = bytes(
            sum(1 << bit for bit in range(8) if unit.value(index * 8 + bit))
            for index in range(byte_count)
        )
        return ModbusRequest(
            FunctionCode.WRITE_MULTIPLE_COILS,
            _words(start, count) + bytes([byte_count & 0xFF]) + packed,
        )

    if unit.register_type == RegisterType.HOLDING_REGISTERS:
        if single:
            return ModbusRequest(FunctionCode.WRITE_SINGLE_REGISTER, _words(start, unit.value(0)))
        return ModbusRequest(
            FunctionCode.WRITE_MULTIPLE_REGISTERS,
            _words(start, count) + bytes([(count * 2) & 0xFF]) + _words(*unit.values),
        )

    return ModbusRequest()


def create_mask_write_request(params: ModbusMaskWriteParams) -> ModbusRequest:
    """Mask write register request; the address is converted to zero-based."""
    address = params.address if params.zero_based_address else params.address - 1
    return ModbusRequest(
        FunctionCode.MASK_WRITE_REGISTER,
        _words(address, params.and_mask, params.or_mask),
    )


def create_coils_data_unit(start_address: int, value: CoilValue) -> ModbusDataUnit:
    """Coils unit holding one state, or one state per item of a sequence."""
    if isinstance(value, (list, tuple)):
        unit = ModbusDataUnit(RegisterType.COILS, start_address, len(value))
        unit.set_values(value)
        return unit
    unit = ModbusDataUnit(RegisterType.COILS, start_address, 1)
    unit.set_value(0, 1 if value else 0)
    return unit


def create_holding_registers_data_unit(
    start_address: int, value: int | Sequence[int], order: ByteOrder
) -> ModbusDataUnit:
    """Holding registers unit; a single value is byte-ordered, a sequence is written as given."""
    if isinstance(value, (list, tuple)):
        unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, start_address, len(value))
        if value:
            unit.set_values(value)
        return unit
    unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, start_address, 1)
    unit.set_value(0, _swap_bytes(value, order))
    return unit


def _registers_unit(start_address: int, words: Sequence[int], swapped: bool) -> ModbusDataUnit:
    ordered = list(reversed(words)) if swapped else list(words)
    unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, start_address, len(ordered))
    unit.set_values(ordered)
    return unit


def create_float_data_unit(
    start_address: int, value: float, order: ByteOrder, swapped: bool
) -> ModbusDataUnit:
    """Two registers holding a single-precision float; swapped puts the high word first."""
    return _registers_unit(start_address, break_float(value, order), swapped)


def create_int32_data_unit(
    start_address: int, value: int, order: ByteOrder, swapped: bool
) -> ModbusDataUnit:
    """Two registers holding a 32-bit integer; swapped puts the high word first."""
    return _registers_unit(start_address, break_int32(value, order), swapped)


def create_int64_data_unit(
    start_address: int, value: int, order: ByteOrder, swapped: bool
) -> ModbusDataUnit:
    """Four registers holding a 64-bit integer; swapped reverses the word order."""
    return _registers_unit(start_address, break_int64(value, order), swapped)


def create_double_data_unit(
    start_address: int, value: float, order: ByteOrder, swapped: bool
) -> ModbusDataUnit:
    """Four registers holding a double; swapped reverses the word order."""
    return _registers_unit(start_address, break_double(value, order), swapped)


def _holding_unit_for_mode(address: int, params: ModbusWriteParams) -> ModbusDataUnit:
    mode = params.display_mode
    order = params.order
    value = params.value

    if mode in _SINGLE_REGISTER_MODES:
        return create_holding_registers_data_unit(address, _to_int(value) & 0xFFFF, order)
    if mode in (DataDisplayMode.FLOATING_PT, DataDisplayMode.SWAPPED_FP):
        return create_float_data_unit(
            address, _to_float(value), order, mode == DataDisplayMode.SWAPPED_FP
        )
    if mode in (DataDisplayMode.DBL_FLOAT, DataDisplayMode.SWAPPED_DBL):
        return create_double_data_unit(
            address, _to_float(value), order, mode == DataDisplayMode.SWAPPED_DBL
        )
    if mode in (DataDisplayMode.INT32, DataDisplayMode.UINT32):
        return create_int32_data_unit(address, _to_int(value), order, False)
    if mode in (DataDisplayMode.SWAPPED_INT32, DataDisplayMode.SWAPPED_UINT32):
        return create_int32_data_unit(address, _to_int(value), order, True)
    if mode in (DataDisplayMode.INT64, DataDisplayMode.UINT64):
        return create_int64_data_unit(address, _to_int(value), order, False)
    if mode in (DataDisplayMode.SWAPPED_INT64, DataDisplayMode.SWAPPED_UINT64):
        return create_int64_data_unit(address, _to_int(value), order, True)
    return ModbusDataUnit()


def build_write_data_unit(point_type: RegisterType, params: ModbusWriteParams) -> ModbusDataUnit:
    """Data unit to write for the given point type; invalid for types that cannot be written."""
    address = params.address if params.zero_based_address else params.address - 1
    value = params.value

    if isinstance(value, (list, tuple)):
        if point_type == RegisterType.COILS:
            return create_coils_data_unit(address, value)
        if point_type == RegisterType.HOLDING_REGISTERS:
            return create_holding_registers_data_unit(address, value, params.order)
        return ModbusDataUnit()

    if point_type == RegisterType.COILS:
        return create_coils_data_unit(address, bool(value))
    if point_type == RegisterType.HOLDING_REGISTERS:
        return _holding_unit_for_mode(address, params)
    return ModbusDataUnit()