"""Discovery sessions for btctl."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from btctl.client import BluetoothClient
from btctl.config import DEFAULT_SCAN_DURATION
from btctl.errors import CommandError, ServiceCallError
from btctl.models import Device

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DiscoveryConfig:
	"""Configuration bundle used by :func:`discover`."""

	duration: int = DEFAULT_SCAN_DURATION
	contains_name: Optional[str] = None

	def __post_init__(self) -> None:
		if self.duration < 0:
			raise ValueError("duration must not be negative")

	def allows(self, device: Device) -> bool:
		if self.contains_name is None:
			return True
		return self.contains_name in device.alias


async def discover(
	client: BluetoothClient,
	command: str,
	config: DiscoveryConfig | None = None,
) -> List[Device]:
	"""Start discovery, wait ``config.duration`` seconds and read back what was seen.

	Discovery is left running; callers stop it once their output is written.
	Failures are raised as :class:`CommandError` tagged ``start_discovery`` or
	``discovered_devices`` on behalf of ``command``.
	"""
	config = config or DiscoveryConfig()

	try:
		await client.start_discovery()
	except ServiceCallError as exc:
		raise CommandError(command, "start_discovery", exc) from exc

	logger.debug("Discovering for %ss", config.duration)
	await asyncio.sleep(config.duration)

	try:
		scanned = await client.scanned_devices()
	except ServiceCallError as exc:
		raise CommandError(command, "discovered_devices", exc) from exc

	results = [device for device in scanned if config.allows(device)]
	logger.debug("Discovered %d device(s), %d after filtering", len(scanned), len(results))
	return results


async def stop(client: BluetoothClient, command: str) -> None:
	try:
		await client.stop_discovery()
	except ServiceCallError as exc:
		raise CommandError(command, "stop_discovery", exc) from exc


__all__ = [
	"DiscoveryConfig",
	"discover",
	"stop",
]
