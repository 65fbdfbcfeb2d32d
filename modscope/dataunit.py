"""A block of Modbus points that remembers which values have been set."""

from __future__ import annotations

from collections.abc import Iterable

from modscope.enums import RegisterType


class ModbusDataUnit:
    """Register type, start address and values, with a per-value 'has been set' flag."""

    def __init__(
        self,
        register_type: RegisterType = RegisterType.INVALID,
        start_address: int = 0,
        value_count: int = 0,
    ) -> None:
        if not 0 <= value_count <= 0xFFFF:
            raise ValueError(f"value count out of range: {value_count}")
        self.register_type = RegisterType(register_type)
        self.start_address = start_address
        self._values = [0] * value_count
        self._has_values = [False] * value_count

    @property
    def value_count(self) -> int:
        """Number of values held."""
        return len(self._values)

    @property
    def values(self) -> list[int]:
        """A copy of the values."""
        return list(self._values)

    def is_valid(self) -> bool:
        """True if the unit has a register type."""
        return self.register_type != RegisterType.INVALID

    def has_value(self, index: int) -> bool:
        """True if the value at index has been set; False for any index outside the unit."""
        if 0 <= index < len(self._has_values):
            return self._has_values[index]
        return False

    def value(self, index: int) -> int:
        """The value at index, or 0 for any index outside the unit."""
        if 0 <= index < len(self._values):
            return self._values[index]
        return 0

    def set_value(self, index: int, value: int) -> None:
        """Set the value at index and mark it as present; indexes outside the unit are ignored."""
        if 0 <= index < len(self._values):
            self._values[index] = value & 0xFFFF
            self._has_values[index] = True

    def set_values(self, values: Iterable[int]) -> None:
        """Replace all values; the count follows the new values, presence flags are left as they were."""
        self._values = [v & 0xFFFF for v in values]

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"ModbusDataUnit({self.register_type.name}, start={self.start_address}, "
            f"values={self._values})"
        )