"""Value types describing the adapter and its devices."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


def _unwrap(value: Any) -> Any:
    # dbus-fast hands properties over as Variant instances
    return getattr(value, "value", value)


class PowerState(Enum):
    """Adapter power, as reported by BlueZ's ``PowerState`` property."""

    ON = "on"
    OFF = "off"

    @classmethod
    def from_property(cls, value: Any) -> "PowerState":
        # transitional values such as "off-enabling" count as off
        return cls.ON if _unwrap(value) == "on" else cls.OFF

    @property
    def powered(self) -> bool:
        return self is PowerState.ON

    def __invert__(self) -> "PowerState":
        return PowerState.OFF if self is PowerState.ON else PowerState.ON

    def __str__(self) -> str:
        return "enabled" if self is PowerState.ON else "disabled"


@dataclass(slots=True, frozen=True)
class Device:
    """Snapshot of one ``org.bluez.Device1`` object.

    ``battery`` is only filled for connected devices that expose
    ``org.bluez.Battery1``; ``rssi`` only while the device is advertising
    during a discovery session.
    """

    alias: str
    address: str
    connected: bool = False
    paired: bool = False
    trusted: bool = False
    bonded: bool = False
    battery: Optional[int] = None
    rssi: Optional[int] = None

    @classmethod
    def from_properties(
        cls,
        properties: Mapping[str, Any],
        battery: Optional[Mapping[str, Any]] = None,
    ) -> "Device":
        props = {key: _unwrap(value) for key, value in properties.items()}
        address = str(props.get("Address", ""))
        connected = bool(props.get("Connected", False))

        percentage = None
        if connected and battery and "Percentage" in battery:
            percentage = int(_unwrap(battery["Percentage"]))

        rssi = props.get("RSSI")
        return cls(
            alias=str(props.get("Alias") or props.get("Name") or address),
            address=address,
            connected=connected,
            paired=bool(props.get("Paired", False)),
            trusted=bool(props.get("Trusted", False)),
            bonded=bool(props.get("Bonded", False)),
            battery=percentage,
            rssi=int(rssi) if rssi is not None else None,
        )


def _flag(value: bool) -> str:
    return "true" if value else "false"


class ListColumn(str, Enum):
    """Columns of the list-devices output."""

    ALIAS = "alias"
    ADDRESS = "address"
    CONNECTED = "connected"
    TRUSTED = "trusted"
    BONDED = "bonded"
    PAIRED = "paired"

    @property
    def header(self) -> str:
        return self.name

    def cell(self, device: Device) -> str:
        value = getattr(device, self.value)
        if isinstance(value, bool):
            return _flag(value)
        return str(value)


class ScanColumn(str, Enum):
    """Columns of the scan output."""

    ALIAS = "alias"
    ADDRESS = "address"
    RSSI = "rssi"

    @property
    def header(self) -> str:
        return self.name

    def cell(self, device: Device) -> str:
        if self is ScanColumn.RSSI:
            return str(device.rssi if device.rssi is not None else 0)
        return str(getattr(device, self.value))


class SelectColumn(Enum):
    """Columns of the interactive connect/disconnect pickers.

    Rows are ``(index, device)`` pairs.
    """

    IDX = "idx"
    ALIAS = "alias"
    ADDRESS = "address"
    RSSI = "rssi"

    @property
    def header(self) -> str:
        return self.name

    def cell(self, row: Tuple[int, Device]) -> str:
        index, device = row
        if self is SelectColumn.IDX:
            return f"({index})"
        if self is SelectColumn.RSSI:
            return str(device.rssi) if device.rssi is not None else "-"
        return str(getattr(device, self.value))


class DeviceStatus(str, Enum):
    """Flags list-devices can filter on."""

    CONNECTED = "connected"
    TRUSTED = "trusted"
    BONDED = "bonded"
    PAIRED = "paired"

    def matches(self, device: Device) -> bool:
        return bool(getattr(device, self.value))


DEFAULT_LIST_COLUMNS: Tuple[ListColumn, ...] = tuple(ListColumn)
DEFAULT_SCAN_COLUMNS: Tuple[ScanColumn, ...] = tuple(ScanColumn)
CONNECT_COLUMNS: Tuple[SelectColumn, ...] = (
    SelectColumn.IDX,
    SelectColumn.ALIAS,
    SelectColumn.ADDRESS,
    SelectColumn.RSSI,
)
DISCONNECT_COLUMNS: Tuple[SelectColumn, ...] = (
    SelectColumn.IDX,
    SelectColumn.ALIAS,
    SelectColumn.ADDRESS,
)


__all__ = [
    "PowerState",
    "Device",
    "ListColumn",
    "ScanColumn",
    "SelectColumn",
    "DeviceStatus",
    "DEFAULT_LIST_COLUMNS",
    "DEFAULT_SCAN_COLUMNS",
    "CONNECT_COLUMNS",
    "DISCONNECT_COLUMNS",
]
