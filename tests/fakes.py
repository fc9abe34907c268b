"""Scripted stand-ins for the BlueZ client and its D-Bus bus."""
from __future__ import annotations

import io
import threading
from typing import Any, Dict, List, Optional, Sequence, Tuple

from btctl.errors import ServiceCallError
from btctl.models import Device, PowerState

CONNECTED_DEVICE = Device(
    alias="test_dev",
    address="XX:XX:XX:XX:XX:XX",
    connected=True,
    paired=True,
    trusted=True,
    bonded=False,
    battery=50,
)

SCANNED_DEVICE = Device(
    alias="test_dev",
    address="XX:XX:XX:XX:XX:XX",
    connected=True,
    paired=True,
    trusted=True,
    bonded=False,
    rssi=50,
)


class ScriptedClient:
    """Replays canned devices and fails the operation named in ``fail``."""

    def __init__(
        self,
        *,
        power: PowerState = PowerState.ON,
        devices: Optional[Sequence[Device]] = None,
        connected: Optional[Sequence[Device]] = None,
        scanned: Optional[Sequence[Device]] = None,
        fail: Optional[str] = None,
    ) -> None:
        self.power = power
        self._devices = list(devices if devices is not None else [CONNECTED_DEVICE])
        self._connected = list(connected if connected is not None else [CONNECTED_DEVICE])
        self._scanned = list(scanned if scanned is not None else [SCANNED_DEVICE])
        self.fail = fail
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.closed = False

    async def __aenter__(self) -> "ScriptedClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if self.fail == name:
            raise ServiceCallError(name, RuntimeError("scripted failure"))

    async def power_state(self) -> PowerState:
        self._record("power_state")
        return self.power

    async def toggle_power_state(self) -> PowerState:
        self._record("toggle_power_state")
        self.power = ~self.power
        return self.power

    async def devices(self) -> List[Device]:
        self._record("devices")
        return list(self._devices)

    async def connected_devices(self) -> List[Device]:
        self._record("connected_devices")
        return list(self._connected)

    async def scanned_devices(self) -> List[Device]:
        self._record("scanned_devices")
        return list(self._scanned)

    async def start_discovery(self) -> None:
        self._record("start_discovery")

    async def stop_discovery(self) -> None:
        self._record("stop_discovery")

    async def connect(self, alias: str) -> None:
        self._record("connect", alias)

    async def disconnect(self, alias: str) -> None:
        self._record("disconnect", alias)

    async def remove(self, alias: str) -> None:
        self._record("remove", alias)


class BrokenStream(io.StringIO):
    """Output stream whose writes always fail."""

    def write(self, text: str) -> int:
        raise OSError("stream closed")


class FakeMessageBus:
    """Minimal bus that answers ``call`` from a table of canned replies.

    ``replies`` maps ``(path, interface, member)`` to a reply object; every
    message sent is kept in ``sent``.
    """

    replies: Dict[Tuple[str, str, str], Any] = {}
    connect_error: Optional[BaseException] = None

    def __init__(self, **_: Any) -> None:
        self.sent: List[Any] = []
        self.disconnected = False

    async def connect(self) -> "FakeMessageBus":
        if self.connect_error is not None:
            raise self.connect_error
        return self

    async def call(self, message: Any) -> Any:
        self.sent.append(message)
        return self.replies[(message.path, message.interface, message.member)]

    def disconnect(self) -> None:
        self.disconnected = True


class InterruptedInput(io.StringIO):
    """Input stream that raises ``KeyboardInterrupt`` the way Ctrl-C does mid-read.

    ``thread`` records which thread the read happened on.
    """

    thread: Optional[int] = None

    def readline(self, *args: Any) -> str:
        self.thread = threading.get_ident()
        raise KeyboardInterrupt
