"""Enumerations shared across the scanner, and their settings persistence."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from enum import IntEnum
from typing import TypeVar


class AddressBase(IntEnum):
    """Whether point addresses are shown starting at 0 or at 1."""

    BASE0 = 0
    BASE1 = 1


class DisplayMode(IntEnum):
    """What a scan window shows: register data or message traffic."""

    DATA = 0
    TRAFFIC = 1


class DataDisplayMode(IntEnum):
    """How register values are interpreted and formatted."""

    BINARY = 0
    UINT16 = 1
    INT16 = 2
    HEX = 3
    FLOATING_PT = 4
    SWAPPED_FP = 5
    DBL_FLOAT = 6
    SWAPPED_DBL = 7
    INT32 = 8
    SWAPPED_INT32 = 9
    UINT32 = 10
    SWAPPED_UINT32 = 11
    INT64 = 12
    SWAPPED_INT64 = 13
    UINT64 = 14
    SWAPPED_UINT64 = 15
    ANSI = 16


class ByteOrder(IntEnum):
    """Order of the two bytes within a 16-bit register."""

    DIRECT = 0
    SWAPPED = 1


class ConnectionType(IntEnum):
    """Transport used to reach the device."""

    TCP = 0
    SERIAL = 1


class TransmissionMode(IntEnum):
    """Serial line framing."""

    ASCII = 0
    RTU = 1


class CaptureMode(IntEnum):
    """Whether traffic is being captured to a text file."""

    OFF = 0
    TEXT_CAPTURE = 1


class SimulationMode(IntEnum):
    """How a simulated point changes its value."""

    NO = 0
    RANDOM = 1
    INCREMENT = 2
    DECREMENT = 3
    TOGGLE = 4


class RegisterType(IntEnum):
    """Modbus data table a point belongs to."""

    INVALID = 0
    DISCRETE_INPUTS = 1
    COILS = 2
    INPUT_REGISTERS = 3
    HOLDING_REGISTERS = 4


_SETTING_KEYS: dict[type[IntEnum], str] = {
    AddressBase: "AddressBase",
    DisplayMode: "DisplayMode",
    DataDisplayMode: "DataDisplayMode",
    ByteOrder: "ByteOrder",
}

E = TypeVar("E", bound=IntEnum)


def _key_for(enum_type: type) -> str:
    try:
        return _SETTING_KEYS[enum_type]
    except KeyError:
        raise TypeError(f"{enum_type.__name__} is not stored in settings") from None


def save_setting(settings: MutableMapping[str, object], value: IntEnum) -> None:
    """Store an enum value in a settings mapping under its own key."""
    settings[_key_for(type(value))] = int(value)


def load_setting(settings: Mapping[str, object], enum_type: type[E]) -> E:
    """Read an enum value from a settings mapping; a missing or unreadable value reads as 0."""
    raw = settings.get(_key_for(enum_type), 0)
    try:
        number = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        number = 0
    return enum_type(number)