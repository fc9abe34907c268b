"""BlueZ client built on top of dbus-fast."""
from __future__ import annotations

import contextlib
import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

from bleak.exc import BleakDBusError
from dbus_fast import BusType, Message, MessageType, Variant
from dbus_fast.aio import MessageBus

from btctl.config import DEFAULT_ADAPTER
from btctl.errors import ClientInitError, DeviceNotFoundError, ServiceCallError
from btctl.models import Device, PowerState

logger = logging.getLogger(__name__)

BLUEZ_SERVICE = "org.bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
BATTERY_INTERFACE = "org.bluez.Battery1"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"
OBJECT_MANAGER_INTERFACE = "org.freedesktop.DBus.ObjectManager"

ManagedObjects = Dict[str, Dict[str, Dict[str, Any]]]


class BluetoothClient(Protocol):
	"""Operations the command handlers need from the Bluetooth service."""

	async def power_state(self) -> PowerState: ...

	async def toggle_power_state(self) -> PowerState: ...

	async def devices(self) -> List[Device]: ...

	async def connected_devices(self) -> List[Device]: ...

	async def scanned_devices(self) -> List[Device]: ...

	async def start_discovery(self) -> None: ...

	async def stop_discovery(self) -> None: ...

	async def connect(self, alias: str) -> None: ...

	async def disconnect(self, alias: str) -> None: ...

	async def remove(self, alias: str) -> None: ...


@contextlib.contextmanager
def _operation(name: str) -> Iterator[None]:
	try:
		yield
	except ServiceCallError:
		raise
	except Exception as exc:
		raise ServiceCallError(name, exc) from exc


class BluezClient:
	"""Thin request/response wrapper around the ``org.bluez`` D-Bus API.

	Every public call is a single round trip (or a lookup followed by one
	method call) and failures surface as :class:`ServiceCallError` tagged
	with the call name.
	"""

	def __init__(self, bus: MessageBus, adapter: str = DEFAULT_ADAPTER) -> None:
		self._bus = bus
		self.adapter = adapter
		self.adapter_path = f"/org/bluez/{adapter}"

	# ---------------------------------------------------------------------
	# Lifecycle helpers
	# ---------------------------------------------------------------------
	@classmethod
	async def open(cls, adapter: str = DEFAULT_ADAPTER) -> "BluezClient":
		try:
			bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
		except Exception as exc:
			raise ClientInitError(exc) from exc
		logger.debug("Connected to the system bus for adapter %s", adapter)
		return cls(bus, adapter)

	def close(self) -> None:
		if self._bus is None:
			return
		self._bus.disconnect()
		self._bus = None

	async def __aenter__(self) -> "BluezClient":
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
		self.close()

	# ------------------------------------------------------------------
	# Adapter
	# ------------------------------------------------------------------
	async def power_state(self) -> PowerState:
		with _operation("power_state"):
			value = await self._get_property(self.adapter_path, ADAPTER_INTERFACE, "PowerState")
			return PowerState.from_property(value)

	async def toggle_power_state(self) -> PowerState:
		new_state = ~(await self.power_state())
		with _operation("toggle_power_state"):
			await self._set_property(
				self.adapter_path,
				ADAPTER_INTERFACE,
				"Powered",
				Variant("b", new_state.powered),
			)
		logger.debug("Adapter %s powered %s", self.adapter, new_state.value)
		return new_state

	async def start_discovery(self) -> None:
		with _operation("start_discovery"):
			await self._call(self.adapter_path, ADAPTER_INTERFACE, "StartDiscovery")

	async def stop_discovery(self) -> None:
		with _operation("stop_discovery"):
			await self._call(self.adapter_path, ADAPTER_INTERFACE, "StopDiscovery")

	# ------------------------------------------------------------------
	# Devices
	# ------------------------------------------------------------------
	async def devices(self) -> List[Device]:
		with _operation("devices"):
			return await self._devices()

	async def connected_devices(self) -> List[Device]:
		with _operation("connected_devices"):
			return [device for device in await self._devices() if device.connected]

	async def scanned_devices(self) -> List[Device]:
		with _operation("scanned_devices"):
			return [device for device in await self._devices() if device.rssi is not None]

	async def connect(self, alias: str) -> None:
		with _operation("connect"):
			path = await self._find_device_path(alias)
			await self._call(path, DEVICE_INTERFACE, "Connect")

	async def disconnect(self, alias: str) -> None:
		with _operation("disconnect"):
			path = await self._find_device_path(alias)
			await self._call(path, DEVICE_INTERFACE, "Disconnect")

	async def remove(self, alias: str) -> None:
		with _operation("remove"):
			path = await self._find_device_path(alias)
			await self._call(self.adapter_path, ADAPTER_INTERFACE, "RemoveDevice", "o", [path])

	async def _devices(self) -> List[Device]:
		objects = await self._managed_objects()
		return [
			Device.from_properties(interfaces[DEVICE_INTERFACE], interfaces.get(BATTERY_INTERFACE))
			for _, interfaces in self._device_objects(objects)
		]

	async def _find_device_path(self, alias: str) -> str:
		objects = await self._managed_objects()
		for path, interfaces in self._device_objects(objects):
			if Device.from_properties(interfaces[DEVICE_INTERFACE]).alias == alias:
				return path
		raise DeviceNotFoundError(alias)

	def _device_objects(self, objects: ManagedObjects) -> List[Tuple[str, Dict[str, Dict[str, Any]]]]:
		prefix = self.adapter_path + "/"
		return [
			(path, interfaces)
			for path, interfaces in sorted(objects.items())
			if path.startswith(prefix) and DEVICE_INTERFACE in interfaces
		]

	# ------------------------------------------------------------------
	# D-Bus plumbing
	# ------------------------------------------------------------------
	async def _managed_objects(self) -> ManagedObjects:
		body = await self._call("/", OBJECT_MANAGER_INTERFACE, "GetManagedObjects")
		return body[0]

	async def _get_property(self, path: str, interface: str, name: str) -> Any:
		body = await self._call(path, PROPERTIES_INTERFACE, "Get", "ss", [interface, name])
		return body[0]

	async def _set_property(self, path: str, interface: str, name: str, value: Variant) -> None:
		await self._call(path, PROPERTIES_INTERFACE, "Set", "ssv", [interface, name, value])

	async def _call(
		self,
		path: str,
		interface: str,
		member: str,
		signature: str = "",
		body: Optional[Sequence[Any]] = None,
	) -> List[Any]:
		if self._bus is None:
			raise RuntimeError("BluezClient is closed")
		logger.debug("D-Bus call %s.%s on %s", interface, member, path)
		reply = await self._bus.call(
			Message(
				destination=BLUEZ_SERVICE,
				path=path,
				interface=interface,
				member=member,
				signature=signature,
				body=list(body or []),
			)
		)
		if reply is None:
			raise RuntimeError(f"no reply to {interface}.{member}")
		if reply.message_type == MessageType.ERROR:
			raise BleakDBusError(reply.error_name, reply.body)
		return reply.body


__all__ = [
	"BluetoothClient",
	"BluezClient",
	"BLUEZ_SERVICE",
	"ADAPTER_INTERFACE",
	"DEVICE_INTERFACE",
	"BATTERY_INTERFACE",
]
