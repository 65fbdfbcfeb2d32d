"""Saving and restoring the state of a scan window.

Two forms are supported: a compact big-endian binary stream, versioned so that
older files still load, and a flat settings mapping such as an INI section.
"""

from __future__ import annotations

import struct
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field, fields
from typing import Any, BinaryIO

from modscope.displaydef import DisplayDefinition, filter_simulation_map
from modscope.enums import (
    ByteOrder,
    DataDisplayMode,
    DisplayMode,
    RegisterType,
    load_setting,
    save_setting,
)
from modscope.simulation import ModbusSimulationParams

FORM_VERSION: tuple[int, int] = (1, 6)

_NULL_STRING = 0xFFFFFFFF

SimulationKey = tuple[RegisterType, int]


class FormFileError(ValueError):
    """Raised when form data is truncated or cannot be read."""


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit channels."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    def name(self) -> str:
        """'#rrggbb', or '#aarrggbb' when not fully opaque."""
        if self.alpha == 255:
            return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"
        return f"#{self.alpha:02x}{self.red:02x}{self.green:02x}{self.blue:02x}"

    @classmethod
    def from_name(cls, text: str) -> Color:
        """Parse '#rrggbb' or '#aarrggbb'; raises ValueError otherwise."""
        digits = text.strip().lstrip("#")
        if len(digits) not in (6, 8):
            raise ValueError(f"not a colour name: {text!r}")
        number = int(digits, 16)
        alpha = (number >> 24) & 0xFF if len(digits) == 8 else 255
        return cls((number >> 16) & 0xFF, (number >> 8) & 0xFF, number & 0xFF, alpha)


BLACK = Color(0, 0, 0)
LIGHT_GRAY = Color(0xC0, 0xC0, 0xC0)
RED = Color(0xFF, 0, 0)


@dataclass
class FormState:
    """Everything about a scan window that is saved to a file or to settings."""

    form_id: int = 1
    is_maximized: bool = False
    window_size: tuple[int, int] | None = None
    display_mode: DisplayMode = DisplayMode.DATA
    data_display_mode: DataDisplayMode = DataDisplayMode.UINT16
    display_hex_addresses: bool = False
    background_color: Color = LIGHT_GRAY
    foreground_color: Color = BLACK
    status_color: Color = RED
    font: str = ""
    display_definition: DisplayDefinition = field(default_factory=DisplayDefinition)
    byte_order: ByteOrder = ByteOrder.DIRECT
    simulation_map: dict[SimulationKey, ModbusSimulationParams] = field(default_factory=dict)
    description_map: dict[SimulationKey, str] = field(default_factory=dict)
    codepage: str = ""

    @classmethod
    def from_form(cls, form: Any) -> FormState:
        """Capture the state of a scan form; presentation attributes it lacks take defaults."""
        defaults = cls()
        dd = form.display_definition
        simulations = getattr(form, "simulation_map", {}) or {}
        return cls(
            form_id=form.form_id,
            is_maximized=bool(getattr(form, "is_maximized", defaults.is_maximized)),
            window_size=getattr(form, "window_size", defaults.window_size),
            display_mode=getattr(form, "display_mode", defaults.display_mode),
            data_display_mode=getattr(form, "data_display_mode", defaults.data_display_mode),
            display_hex_addresses=bool(
                getattr(form, "display_hex_addresses", defaults.display_hex_addresses)
            ),
            background_color=getattr(form, "background_color", defaults.background_color),
            foreground_color=getattr(form, "foreground_color", defaults.foreground_color),
            status_color=getattr(form, "status_color", defaults.status_color),
            font=getattr(form, "font", defaults.font),
            display_definition=dd,
            byte_order=getattr(form, "byte_order", defaults.byte_order),
            simulation_map=filter_simulation_map(dd, simulations),
            description_map=dict(getattr(form, "description_map", {}) or {}),
            codepage=getattr(form, "codepage", defaults.codepage),
        )

    def apply_to(self, form: Any) -> None:
        """Restore this state onto a scan form, then start its simulations and descriptions."""
        form.window_size = self.window_size
        form.is_maximized = self.is_maximized
        form.display_mode = self.display_mode
        form.data_display_mode = self.data_display_mode
        form.display_hex_addresses = self.display_hex_addresses
        form.background_color = self.background_color
        form.foreground_color = self.foreground_color
        form.status_color = self.status_color
        form.font = self.font
        form.set_display_definition(self.display_definition)
        form.byte_order = self.byte_order
        form.codepage = self.codepage

        simulations = dict(getattr(form, "simulation_map", {}) or {})
        simulations.update(self.simulation_map)
        form.simulation_map = simulations

        descriptions = dict(getattr(form, "description_map", {}) or {})
        descriptions.update(self.description_map)
        form.description_map = descriptions


class _Writer:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def raw(self, data: bytes) -> None:
        self._stream.write(data)

    def int32(self, value: int) -> None:
        self.raw(struct.pack(">i", int(value)))

    def uint32(self, value: int) -> None:
        self.raw(struct.pack(">I", value))

    def uint16(self, value: int) -> None:
        self.raw(struct.pack(">H", value & 0xFFFF))

    def boolean(self, value: bool) -> None:
        self.raw(b"\x01" if value else b"\x00")

    def string(self, text: str | None) -> None:
        if text is None:
            self.uint32(_NULL_STRING)
            return
        encoded = text.encode("utf-16-be")
        self.uint32(len(encoded))
        self.raw(encoded)

    def size(self, size: tuple[int, int] | None) -> None:
        width, height = size if size is not None else (-1, -1)
        self.int32(width)
        self.int32(height)

    def color(self, color: Color) -> None:
        channels = (color.alpha, color.red, color.green, color.blue)
        self.raw(struct.pack(">b5H", 1, *(c * 257 for c in channels), 0))


class _Reader:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def raw(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise FormFileError("form data is truncated")
        return data

    def int32(self) -> int:
        return struct.unpack(">i", self.raw(4))[0]

    def uint32(self) -> int:
        return struct.unpack(">I", self.raw(4))[0]

    def uint16(self) -> int:
        return struct.unpack(">H", self.raw(2))[0]

    def boolean(self) -> bool:
        return self.raw(1) != b"\x00"

    def string(self) -> str:
        length = self.uint32()
        if length == _NULL_STRING:
            return ""
        if length % 2:
            raise FormFileError("odd string length in form data")
        return self.raw(length).decode("utf-16-be")

    def size(self) -> tuple[int, int] | None:
        width, height = self.int32(), self.int32()
        if width < 0 or height < 0:
            return None
        return width, height

    def color(self) -> Color:
        spec, alpha, red, green, blue, _pad = struct.unpack(">b5H", self.raw(11))
        if spec == 0:
            return BLACK
        return Color(red // 257, green // 257, blue // 257, alpha // 257)

    def register_type(self) -> RegisterType:
        try:
            return RegisterType(self.int32())
        except ValueError as exc:
            raise FormFileError(str(exc)) from exc


def write_form_state(stream: BinaryIO, state: FormState) -> None:
    """Write a form state in the current version's binary layout."""
    out = _Writer(stream)
    out.int32(state.form_id)
    out.boolean(state.is_maximized)
    out.size(state.window_size)
    out.int32(state.display_mode)
    out.int32(state.data_display_mode)
    out.boolean(state.display_hex_addresses)
    out.color(state.background_color)
    out.color(state.foreground_color)
    out.color(state.status_color)
    out.string(state.font)

    dd = state.display_definition
    out.int32(dd.scan_rate)
    out.int32(dd.device_id)
    out.int32(dd.point_type)
    out.int32(dd.point_address)
    out.int32(dd.length)
    out.int32(dd.log_view_limit)
    out.boolean(dd.zero_based_address)

    out.int32(state.byte_order)
    out.uint32(len(state.simulation_map))
    for (point_type, address), params in sorted(state.simulation_map.items()):
        out.int32(point_type)
        out.uint16(address)
        out.raw(params.to_bytes())
    out.uint32(len(state.description_map))
    for (point_type, address), text in sorted(state.description_map.items()):
        out.int32(point_type)
        out.uint16(address)
        out.string(text)
    out.string(state.codepage)


def read_form_state(stream: BinaryIO, version: tuple[int, int]) -> FormState:
    """Read a form state written by the given file version; raises FormFileError on bad data."""
    version = tuple(version)
    if version > FORM_VERSION:
        raise FormFileError(f"unsupported form version {version[0]}.{version[1]}")
    src = _Reader(stream)
    try:
        form_id = src.int32()
        is_maximized = src.boolean()
        window_size = src.size()
        display_mode = DisplayMode(src.int32())
        data_display_mode = DataDisplayMode(src.int32())
        hex_addresses = src.boolean()
        background = src.color()
        foreground = src.color()
        status = src.color()
        font = src.string()

        dd = DisplayDefinition()
        dd.scan_rate = src.int32()
        dd.device_id = src.int32()
        dd.point_type = src.register_type()
        dd.point_address = src.int32()
        dd.length = src.int32()
        if version >= (1, 4):
            dd.log_view_limit = src.int32()
        if version >= (1, 5):
            dd.zero_based_address = src.boolean()

        byte_order = ByteOrder.DIRECT
        simulations: dict[SimulationKey, ModbusSimulationParams] = {}
        if version >= (1, 1):
            byte_order = ByteOrder(src.int32())
            for _ in range(src.uint32()):
                key = (src.register_type(), src.uint16())
                simulations[key] = ModbusSimulationParams.from_bytes(
                    src.raw(ModbusSimulationParams.SERIALIZED_SIZE)
                )

        descriptions: dict[SimulationKey, str] = {}
        if version >= (1, 2):
            for _ in range(src.uint32()):
                key = (src.register_type(), src.uint16())
                descriptions[key] = src.string()

        codepage = src.string() if version >= (1, 6) else ""
    except FormFileError:
        raise
    except ValueError as exc:
        raise FormFileError(str(exc)) from exc

    return FormState(
        form_id=form_id,
        is_maximized=is_maximized,
        window_size=window_size,
        display_mode=display_mode,
        data_display_mode=data_display_mode,
        display_hex_addresses=hex_addresses,
        background_color=background,
        foreground_color=foreground,
        status_color=status,
        font=font,
        display_definition=dd,
        byte_order=byte_order,
        simulation_map=simulations,
        description_map=descriptions,
        codepage=codepage,
    )


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _to_color(value: Any, default: Color) -> Color:
    if isinstance(value, Color):
        return value
    if isinstance(value, str):
        try:
            return Color.from_name(value)
        except ValueError:
            return default
    return default


def _to_size(value: Any) -> tuple[int, int] | None:
    if value is None:
        return None
    try:
        width, height = (int(part) for part in value)
    except (TypeError, ValueError):
        return None
    return width, height


def _dd_to_settings(dd: DisplayDefinition) -> dict[str, Any]:
    return {f.name: int(getattr(dd, f.name)) for f in fields(dd)}


def _dd_from_settings(value: Any) -> DisplayDefinition:
    dd = DisplayDefinition()
    if not isinstance(value, Mapping):
        return dd
    for f in fields(dd):
        if f.name not in value:
            continue
        raw = value[f.name]
        try:
            if f.name == "zero_based_address":
                setattr(dd, f.name, _to_bool(raw))
            elif f.name == "point_type":
                setattr(dd, f.name, RegisterType(int(raw)))
            else:
                setattr(dd, f.name, int(raw))
        except (TypeError, ValueError):
            continue
    return dd


def save_form_settings(settings: MutableMapping[str, Any], state: FormState) -> None:
    """Store a form state in a settings mapping; the size is kept only for a normal window."""
    settings["Font"] = state.font
    settings["ForegroundColor"] = state.foreground_color.name()
    settings["BackgroundColor"] = state.background_color.name()
    settings["StatusColor"] = state.status_color.name()
    settings["ViewMaximized"] = state.is_maximized
    if not state.is_maximized and state.window_size is not None:
        settings["ViewSize"] = tuple(state.window_size)
    save_setting(settings, state.display_mode)
    save_setting(settings, state.data_display_mode)
    save_setting(settings, state.byte_order)
    settings["DisplayDefinition"] = _dd_to_settings(state.display_definition)
    settings["DisplayHexAddresses"] = state.display_hex_addresses
    settings["Codepage"] = state.codepage


def load_form_settings(settings: Mapping[str, Any]) -> FormState:
    """Read a form state from a settings mapping, with defaults for what is missing."""
    return FormState(
        is_maximized=_to_bool(settings.get("ViewMaximized", False)),
        window_size=_to_size(settings.get("ViewSize")),
        display_mode=load_setting(settings, DisplayMode),
        data_display_mode=load_setting(settings, DataDisplayMode),
        display_hex_addresses=_to_bool(settings.get("DisplayHexAddresses", False)),
        background_color=_to_color(settings.get("BackgroundColor"), LIGHT_GRAY),
        foreground_color=_to_color(settings.get("ForegroundColor"), BLACK),
        status_color=_to_color(settings.get("StatusColor"), RED),
        font=str(settings.get("Font", "") or ""),
        display_definition=_dd_from_settings(settings.get("DisplayDefinition")),
        byte_order=load_setting(settings, ByteOrder),
        codepage=str(settings.get("Codepage", "") or ""),
    )