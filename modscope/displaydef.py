"""What a scan window polls: device, point type, address and length."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TypeVar

from modscope.enums import AddressBase, RegisterType
from modscope.ranges import address_range

V = TypeVar("V")


@dataclass
class DisplayDefinition:
    """Polling parameters of one scan window."""

    scan_rate: int = 1000
    device_id: int = 1
    point_type: RegisterType = RegisterType.HOLDING_REGISTERS
    point_address: int = 1
    length: int = 50
    log_view_limit: int = 30
    zero_based_address: bool = False

    def start_address(self) -> int:
        """The zero-based protocol address of the first point."""
        return self.point_address - (0 if self.zero_based_address else 1)

    def is_scan_range_valid(self) -> bool:
        """True if the whole scan fits below the highest address."""
        return self.start_address() + self.length <= address_range(self.zero_based_address).end

    def with_address_base(self, base: AddressBase) -> DisplayDefinition:
        """A copy switched to the given address base, shifting the shown address by one."""
        if base == AddressBase.BASE1:
            address = max(1, self.point_address + 1)
        else:
            address = max(0, self.point_address - 1)
        return replace(
            self, point_address=address, zero_based_address=(base == AddressBase.BASE0)
        )


def filter_simulation_map(
    dd: DisplayDefinition, simulation_map: Mapping[tuple[RegisterType, int], V]
) -> dict[tuple[RegisterType, int], V]:
    """Entries of a (point type, address) map that fall within the scanned points."""
    start = dd.start_address()
    end = start + dd.length
    return {
        key: params
        for key, params in simulation_map.items()
        if key[0] == dd.point_type and start <= key[1] < end
    }