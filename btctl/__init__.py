"""btctl: inspect and control the Bluetooth adapter through BlueZ."""
from __future__ import annotations

__version__ = "0.4.0"

from .client import BluetoothClient, BluezClient
from .errors import (
    BtError,
    ClientInitError,
    CommandError,
    InvalidSelectionError,
    NoConnectedDevicesError,
    OutputError,
    ServiceCallError,
)
from .models import Device, DeviceStatus, ListColumn, PowerState, ScanColumn

__all__ = [
    "BluetoothClient",
    "BluezClient",
    "BtError",
    "ClientInitError",
    "CommandError",
    "Device",
    "DeviceStatus",
    "InvalidSelectionError",
    "ListColumn",
    "NoConnectedDevicesError",
    "OutputError",
    "PowerState",
    "ScanColumn",
    "ServiceCallError",
    "__version__",
]
