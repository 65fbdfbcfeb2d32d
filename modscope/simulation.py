"""Parameters of automatic value simulation and their binary form."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

from modscope.enums import SimulationMode
from modscope.ranges import Range

_HEAD = struct.Struct(">i")
_RANGE = struct.Struct(">dd")
_STEP_RANGE = struct.Struct(">ddd")
_TAIL = struct.Struct(">I")


def _default_range() -> Range:
    return Range(0.0, 65535.0)


@dataclass
class RandomSimulationParams:
    """Random values drawn from a range."""

    range: Range = field(default_factory=_default_range)


@dataclass
class IncrementSimulationParams:
    """Values increasing by a step within a range."""

    step: float = 1.0
    range: Range = field(default_factory=_default_range)


@dataclass
class DecrementSimulationParams:
    """Values decreasing by a step within a range."""

    step: float = 1.0
    range: Range = field(default_factory=_default_range)


@dataclass
class ModbusSimulationParams:
    """Complete simulation settings for one point."""

    SERIALIZED_SIZE: ClassVar[int] = (
        _HEAD.size + _RANGE.size + 2 * _STEP_RANGE.size + _TAIL.size
    )

    mode: SimulationMode = SimulationMode.NO
    random_params: RandomSimulationParams = field(default_factory=RandomSimulationParams)
    increment_params: IncrementSimulationParams = field(default_factory=IncrementSimulationParams)
    decrement_params: DecrementSimulationParams = field(default_factory=DecrementSimulationParams)
    interval: int = 1000

    def to_bytes(self) -> bytes:
        """Encode as big-endian: mode, random range, increment, decrement, interval."""
        inc, dec = self.increment_params, self.decrement_params
        return b"".join(
            (
                _HEAD.pack(int(self.mode)),
                _RANGE.pack(self.random_params.range.start, self.random_params.range.end),
                _STEP_RANGE.pack(inc.step, inc.range.start, inc.range.end),
                _STEP_RANGE.pack(dec.step, dec.range.start, dec.range.end),
                _TAIL.pack(self.interval & 0xFFFFFFFF),
            )
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> ModbusSimulationParams:
        """Decode the form written by to_bytes; raises ValueError on wrong length or mode."""
        if len(data) != cls.SERIALIZED_SIZE:
            raise ValueError(
                f"expected {cls.SERIALIZED_SIZE} bytes of simulation parameters, got {len(data)}"
            )
        offset = 0
        (mode,) = _HEAD.unpack_from(data, offset)
        offset += _HEAD.size
        rnd_from, rnd_to = _RANGE.unpack_from(data, offset)
        offset += _RANGE.size
        inc_step, inc_from, inc_to = _STEP_RANGE.unpack_from(data, offset)
        offset += _STEP_RANGE.size
        dec_step, dec_from, dec_to = _STEP_RANGE.unpack_from(data, offset)
        offset += _STEP_RANGE.size
        (interval,) = _TAIL.unpack_from(data, offset)
        return cls(
            mode=SimulationMode(mode),
            random_params=RandomSimulationParams(Range(rnd_from, rnd_to)),
            increment_params=IncrementSimulationParams(inc_step, Range(inc_from, inc_to)),
            decrement_params=DecrementSimulationParams(dec_step, Range(dec_from, dec_to)),
            interval=interval,
        )