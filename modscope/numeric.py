"""Splitting numbers into 16-bit registers and assembling them back.

Registers are laid out low word first, each word optionally byte-swapped.
"""

from __future__ import annotations

import math
import struct

from modscope.enums import ByteOrder


def _to_byte_order(value: int, order: ByteOrder) -> int:
    value &= 0xFFFF
    if order == ByteOrder.SWAPPED:
        return ((value & 0xFF) << 8) | (value >> 8)
    return value


def _split(raw: bytes, order: ByteOrder) -> tuple[int, ...]:
    words = struct.unpack(f"<{len(raw) // 2}H", raw)
    return tuple(_to_byte_order(w, order) for w in words)


def _join(words: tuple[int, ...], order: ByteOrder) -> bytes:
    return struct.pack(f"<{len(words)}H", *(_to_byte_order(w, order) for w in words))


def make_uint16(lo: int, hi: int, order: ByteOrder) -> int:
    """Combine two bytes into a register value."""
    lo &= 0xFF
    hi &= 0xFF
    if order == ByteOrder.DIRECT:
        return lo | (hi << 8)
    return hi | (lo << 8)


def break_uint16(value: int, order: ByteOrder) -> tuple[int, int]:
    """Split a register value into (lo, hi) bytes."""
    value &= 0xFFFF
    low, high = value & 0xFF, value >> 8
    if order == ByteOrder.DIRECT:
        return low, high
    return high, low


def break_float(value: float, order: ByteOrder) -> tuple[int, int]:
    """Split a single-precision float into (lo, hi) registers."""
    try:
        raw = struct.pack("<f", value)
    except OverflowError:
        raw = struct.pack("<f", math.copysign(math.inf, value))
    return _split(raw, order)  # type: ignore[return-value]


def break_int32(value: int, order: ByteOrder) -> tuple[int, int]:
    """Split a 32-bit integer into (lo, hi) registers."""
    return _split(struct.pack("<I", value & 0xFFFFFFFF), order)  # type: ignore[return-value]


def break_uint32(value: int, order: ByteOrder) -> tuple[int, int]:
    """Split an unsigned 32-bit integer into (lo, hi) registers."""
    return break_int32(value, order)


def break_int64(value: int, order: ByteOrder) -> tuple[int, int, int, int]:
    """Split a 64-bit integer into four registers, lowest first."""
    return _split(struct.pack("<Q", value & 0xFFFFFFFFFFFFFFFF), order)  # type: ignore[return-value]


def break_uint64(value: int, order: ByteOrder) -> tuple[int, int, int, int]:
    """Split an unsigned 64-bit integer into four registers, lowest first."""
    return break_int64(value, order)


def break_double(value: float, order: ByteOrder) -> tuple[int, int, int, int]:
    """Split a double into four registers, lowest first."""
    return _split(struct.pack("<d", value), order)  # type: ignore[return-value]


def make_float(lo: int, hi: int, order: ByteOrder) -> float:
    """Assemble a single-precision float from two registers."""
    return struct.unpack("<f", _join((lo, hi), order))[0]


def make_int32(lo: int, hi: int, order: ByteOrder) -> int:
    """Assemble a signed 32-bit integer from two registers."""
    return struct.unpack("<i", _join((lo, hi), order))[0]


def make_uint32(lo: int, hi: int, order: ByteOrder) -> int:
    """Assemble an unsigned 32-bit integer from two registers."""
    return struct.unpack("<I", _join((lo, hi), order))[0]


def make_int64(lolo: int, lohi: int, hilo: int, hihi: int, order: ByteOrder) -> int:
    """Assemble a signed 64-bit integer from four registers."""
    return struct.unpack("<q", _join((lolo, lohi, hilo, hihi), order))[0]


def make_uint64(lolo: int, lohi: int, hilo: int, hihi: int, order: ByteOrder) -> int:
    """Assemble an unsigned 64-bit integer from four registers."""
    return struct.unpack("<Q", _join((lolo, lohi, hilo, hihi), order))[0]


def make_double(lolo: int, lohi: int, hilo: int, hihi: int, order: ByteOrder) -> float:
    """Assemble a double from four registers."""
    return struct.unpack("<d", _join((lolo, lohi, hilo, hihi), order))[0]