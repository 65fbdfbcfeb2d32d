"""Value handling of the holding register write dialogs."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from modscope.enums import ByteOrder, DataDisplayMode
from modscope.numeric import break_float, make_float
from modscope.ranges import Range, address_range, slave_range
from modscope.requests import ModbusWriteParams

REGISTER_BITS = 16

_INPUT_RANGES = {
    DataDisplayMode.UINT16: Range(0, 0xFFFF),
    DataDisplayMode.INT16: Range(-0x8000, 0x7FFF),
    DataDisplayMode.HEX: Range(0, 0xFFFF),
}


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def _wrap_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def input_range_for_mode(mode: DataDisplayMode) -> Range | None:
    """Accepted input range for a display mode, or None where the mode sets none."""
    return _INPUT_RANGES.get(DataDisplayMode(mode))


def coerce_write_value(mode: DataDisplayMode, value: Any) -> Any:
    """Convert a value to the type a display mode edits; raises ValueError outside its range."""
    mode = DataDisplayMode(mode)
    if mode == DataDisplayMode.BINARY:
        return value
    if mode in (DataDisplayMode.FLOATING_PT, DataDisplayMode.SWAPPED_FP):
        lo, hi = break_float(_to_float(value), ByteOrder.DIRECT)
        return make_float(lo, hi, ByteOrder.DIRECT)
    if mode in (DataDisplayMode.DBL_FLOAT, DataDisplayMode.SWAPPED_DBL):
        return _to_float(value)
    if mode in (DataDisplayMode.INT32, DataDisplayMode.SWAPPED_INT32):
        return _wrap_signed(_to_int(value), 32)
    if mode in (DataDisplayMode.UINT32, DataDisplayMode.SWAPPED_UINT32):
        return _to_int(value) & 0xFFFFFFFF
    if mode in (DataDisplayMode.INT64, DataDisplayMode.SWAPPED_INT64):
        return _wrap_signed(_to_int(value), 64)
    if mode in (DataDisplayMode.UINT64, DataDisplayMode.SWAPPED_UINT64):
        return _to_int(value) & 0xFFFFFFFFFFFFFFFF

    if mode == DataDisplayMode.INT16:
        number = _wrap_signed(_to_int(value), 32)
    else:
        number = _to_int(value) & 0xFFFFFFFF
    allowed = input_range_for_mode(mode)
    if allowed is not None and number not in allowed:
        raise ValueError(f"{value!r} is outside {allowed.start}..{allowed.end} for {mode.name}")
    return number


def register_to_bits(value: int) -> list[bool]:
    """The 16 bits of a register, least significant first."""
    value &= 0xFFFF
    return [bool((value >> bit) & 1) for bit in range(REGISTER_BITS)]


def bits_to_register(bits: Iterable[bool]) -> int:
    """Register value from up to 16 bits, least significant first."""
    bits = list(bits)
    if len(bits) > REGISTER_BITS:
        raise ValueError(f"a register holds {REGISTER_BITS} bits, got {len(bits)}")
    return sum(1 << bit for bit, state in enumerate(bits) if state)


def accept_write(
    params: ModbusWriteParams, node: int, address: int, value: Any
) -> ModbusWriteParams:
    """Write parameters with the entered node, address and value; raises ValueError if out of range."""
    if node not in slave_range():
        raise ValueError(f"device id out of range: {node}")
    allowed = address_range(params.zero_based_address)
    if address not in allowed:
        raise ValueError(f"address out of range: {address}")
    return replace(params, node=node, address=address, value=value)