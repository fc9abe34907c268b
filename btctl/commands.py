"""Command handlers behind the btctl subcommands.

Each handler takes a :class:`~btctl.client.BluetoothClient`, writes its
result to ``out`` and, for connect/disconnect in interactive mode, reads one
line from ``inp``. Failures are raised as :class:`~btctl.errors.CommandError`
subclasses; output written before a failure is left in place.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, TextIO

from btctl import scanner
from btctl.client import BluetoothClient
from btctl.config import DEFAULT_SCAN_DURATION
from btctl.errors import (
    CommandError,
    InvalidSelectionError,
    NoConnectedDevicesError,
    OutputError,
    ServiceCallError,
)
from btctl.formatting import render, resolve_output, to_pretty
from btctl.models import (
    CONNECT_COLUMNS,
    DEFAULT_LIST_COLUMNS,
    DEFAULT_SCAN_COLUMNS,
    DISCONNECT_COLUMNS,
    Device,
    DeviceStatus,
    ListColumn,
    ScanColumn,
    SelectColumn,
)

logger = logging.getLogger(__name__)

CONNECT_PROMPT = "Select the device you wish to connect: "
DISCONNECT_PROMPT = "Select the device(s) you wish to disconnect: "


def _write(out: TextIO, text: str, command: str) -> None:
    try:
        out.write(text)
        out.flush()
    except (OSError, UnicodeError) as exc:
        raise OutputError(command, exc) from exc


def _read_line(inp: TextIO, command: str) -> str:
    # plain blocking read on the loop thread; Ctrl-C must reach it
    try:
        return inp.readline()
    except (OSError, UnicodeError) as exc:
        raise OutputError(command, exc) from exc


def parse_selection(answer: str, count: int, command: str, *, multiple: bool = False) -> List[int]:
    """Turn the user's answer into row indexes.

    ``multiple`` accepts a comma-separated list. Any token that is not an
    integer naming one of the ``count`` rows, or that repeats an earlier
    index, rejects the whole answer.
    """
    tokens = answer.split(",") if multiple else [answer]
    indexes: List[int] = []
    for token in tokens:
        try:
            index = int(token.strip())
        except ValueError as exc:
            raise InvalidSelectionError(command, answer) from exc
        if not 0 <= index < count or index in indexes:
            raise InvalidSelectionError(command, answer)
        indexes.append(index)
    return indexes


async def _select_aliases(
    out: TextIO,
    inp: TextIO,
    devices: Sequence[Device],
    columns: Sequence[SelectColumn],
    prompt: str,
    command: str,
    *,
    multiple: bool = False,
) -> List[str]:
    table = to_pretty(list(enumerate(devices)), columns)
    _write(out, table + prompt, command)
    answer = _read_line(inp, command)
    indexes = parse_selection(answer, len(devices), command, multiple=multiple)
    return [devices[index].alias for index in indexes]


async def status(client: BluetoothClient, out: TextIO) -> None:
    """Write the adapter power state and the connected devices."""
    try:
        power_state = await client.power_state()
    except ServiceCallError as exc:
        raise CommandError("status", "power_state", exc) from exc
    try:
        connected = await client.connected_devices()
    except ServiceCallError as exc:
        raise CommandError("status", "connected_devices", exc) from exc

    parts = [f"bluetooth: {power_state}\nconnected devices: "]
    for device in connected:
        line = f"\n{device.alias}/{device.address}"
        if device.battery is not None:
            line += f" (batt: %{device.battery})"
        parts.append(line)
    parts.append("\n")
    _write(out, "".join(parts), "status")


async def toggle(client: BluetoothClient, out: TextIO) -> None:
    """Flip the adapter power and write the new state."""
    try:
        new_state = await client.toggle_power_state()
    except ServiceCallError as exc:
        raise CommandError("toggle", "toggle_power_state", exc) from exc
    _write(out, f"bluetooth: {new_state}\n", "toggle")


async def list_devices(
    client: BluetoothClient,
    out: TextIO,
    *,
    columns: Optional[Sequence[ListColumn]] = None,
    values: Optional[Sequence[ListColumn]] = None,
    status: Optional[DeviceStatus] = None,
) -> None:
    """List the devices BlueZ knows about.

    ``columns`` selects the table shape, ``values`` the terse shape (ignored
    when ``columns`` is given); neither gives the full table. ``status`` keeps
    only devices with that flag set.
    """
    shape, keys = resolve_output(columns, values, DEFAULT_LIST_COLUMNS)
    logger.debug("list-devices: %s output with %s", shape.value, [key.value for key in keys])

    try:
        devices = await client.devices()
    except ServiceCallError as exc:
        raise CommandError("list-devices", "devices", exc) from exc

    if status is not None:
        devices = [device for device in devices if status.matches(device)]

    _write(out, render(shape, devices, keys), "list-devices")


async def scan(
    client: BluetoothClient,
    out: TextIO,
    *,
    duration: int = DEFAULT_SCAN_DURATION,
    columns: Optional[Sequence[ScanColumn]] = None,
    values: Optional[Sequence[ScanColumn]] = None,
) -> None:
    """Run a discovery session and write what was seen.

    Discovery is stopped after the output is written; a failure to stop is
    still reported as a failure of the command.
    """
    shape, keys = resolve_output(columns, values, DEFAULT_SCAN_COLUMNS)
    logger.debug("scan: %s output with %s", shape.value, [key.value for key in keys])

    devices = await scanner.discover(client, "scan", scanner.DiscoveryConfig(duration=duration))
    _write(out, render(shape, devices, keys), "scan")
    await scanner.stop(client, "scan")


async def connect(
    client: BluetoothClient,
    out: TextIO,
    inp: TextIO,
    *,
    alias: Optional[str] = None,
    duration: int = DEFAULT_SCAN_DURATION,
    contains_name: Optional[str] = None,
) -> None:
    """Connect to a device by alias, or pick one from a scan when no alias is given."""
    interactive = alias is None
    if interactive:
        logger.debug("connect: no alias given, scanning for %ss", duration)
        config = scanner.DiscoveryConfig(duration=duration, contains_name=contains_name)
        devices = await scanner.discover(client, "connect", config)
        (alias,) = await _select_aliases(out, inp, devices, CONNECT_COLUMNS, CONNECT_PROMPT, "connect")

    try:
        await client.connect(alias)
    except ServiceCallError as exc:
        raise CommandError("connect", "connect", exc) from exc

    _write(out, f"connected to device: {alias}\n", "connect")

    if interactive:
        await scanner.stop(client, "connect")


async def disconnect(
    client: BluetoothClient,
    out: TextIO,
    inp: TextIO,
    *,
    aliases: Optional[Sequence[str]] = None,
    force: bool = False,
) -> None:
    """Disconnect from (or with ``force``, remove) devices.

    Without ``aliases`` the connected devices are listed and the user picks
    one or more of them. ``force`` only changes the action.
    """
    if aliases is None:
        logger.debug("disconnect: no aliases given, asking the user")
        try:
            devices = await client.connected_devices()
        except ServiceCallError as exc:
            raise CommandError("disconnect", "connected_devices", exc) from exc
        if not devices:
            raise NoConnectedDevicesError("disconnect")
        aliases = await _select_aliases(
            out, inp, devices, DISCONNECT_COLUMNS, DISCONNECT_PROMPT, "disconnect", multiple=True
        )

    for alias in aliases:
        alias = alias.strip()
        try:
            if force:
                await client.remove(alias)
                message = f"removed device {alias} (forced)\n"
            else:
                await client.disconnect(alias)
                message = f"disconnected from device {alias}\n"
        except ServiceCallError as exc:
            raise CommandError("disconnect", "remove" if force else "disconnect", exc) from exc
        _write(out, message, "disconnect")


__all__ = [
    "CONNECT_PROMPT",
    "DISCONNECT_PROMPT",
    "connect",
    "disconnect",
    "list_devices",
    "parse_selection",
    "scan",
    "status",
    "toggle",
]
