"""Simulation tests for discovery sessions."""
from __future__ import annotations

from unittest import IsolatedAsyncioTestCase, TestCase
from unittest.mock import AsyncMock, patch

from btctl.errors import CommandError, ServiceCallError
from btctl.models import Device
from btctl.scanner import DiscoveryConfig, discover, stop

from fakes import ScriptedClient

HEADSET = Device(alias="Headset Pro", address="AA:BB:CC:DD:EE:01", rssi=-52)
SPEAKER = Device(alias="Speaker", address="AA:BB:CC:DD:EE:02", rssi=-70)


class DiscoverySimulationTest(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        patcher = patch("btctl.scanner.asyncio.sleep", new_callable=AsyncMock)
        self.sleep = patcher.start()
        self.addCleanup(patcher.stop)

    async def test_discover_waits_then_reads_scanned_devices(self) -> None:
        client = ScriptedClient(scanned=[HEADSET, SPEAKER])

        results = await discover(client, "scan", DiscoveryConfig(duration=3))

        self.assertEqual(results, [HEADSET, SPEAKER])
        self.sleep.assert_awaited_once_with(3)
        self.assertEqual(client.names(), ["start_discovery", "scanned_devices"])

    async def test_name_filter_is_substring_match(self) -> None:
        client = ScriptedClient(scanned=[HEADSET, SPEAKER])

        results = await discover(client, "connect", DiscoveryConfig(duration=0, contains_name="Pro"))

        self.assertEqual(results, [HEADSET])

    async def test_start_failure_skips_wait(self) -> None:
        client = ScriptedClient(fail="start_discovery")

        with self.assertRaises(CommandError) as ctx:
            await discover(client, "scan")

        self.assertEqual(ctx.exception.step, "start_discovery")
        self.assertIsInstance(ctx.exception.cause, ServiceCallError)
        self.sleep.assert_not_awaited()

    async def test_read_failure_is_tagged_discovered_devices(self) -> None:
        client = ScriptedClient(fail="scanned_devices")

        with self.assertRaises(CommandError) as ctx:
            await discover(client, "connect")

        self.assertEqual(ctx.exception.command, "connect")
        self.assertEqual(ctx.exception.step, "discovered_devices")

    async def test_stop_failure(self) -> None:
        client = ScriptedClient(fail="stop_discovery")

        with self.assertRaises(CommandError) as ctx:
            await stop(client, "scan")

        self.assertEqual(ctx.exception.step, "stop_discovery")


class DiscoveryConfigTest(TestCase):
    def test_negative_duration_rejected(self) -> None:
        with self.assertRaises(ValueError):
            DiscoveryConfig(duration=-1)


if __name__ == "__main__":
    import unittest

    unittest.main()
