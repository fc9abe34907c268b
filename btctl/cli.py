"""btctl command-line interface."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TextIO, Type

from btctl import __version__, commands
from btctl.client import BluetoothClient, BluezClient
from btctl.config import Settings, parse_duration
from btctl.errors import BtError
from btctl.models import DeviceStatus, ListColumn, ScanColumn

PROGRAM = "btctl"

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Awaitable[Any]]
Handler = Callable[[BluetoothClient, argparse.Namespace, Settings, TextIO, TextIO], Awaitable[None]]


def _column_list(enum_cls: Type[Enum]) -> Callable[[str], List[Any]]:
	choices = ", ".join(member.value for member in enum_cls)

	def parse(raw: str) -> List[Any]:
		items: List[Any] = []
		for token in raw.split(","):
			token = token.strip().lower()
			if not token:
				continue
			try:
				items.append(enum_cls(token))
			except ValueError as exc:
				raise argparse.ArgumentTypeError(f"invalid column {token!r} (choose from {choices})") from exc
		return items

	parse.__name__ = "column list"
	return parse


def _duration(raw: str) -> int:
	try:
		return parse_duration(raw)
	except ValueError as exc:
		raise argparse.ArgumentTypeError(str(exc)) from exc


def _alias_list(raw: str) -> List[str]:
	aliases = [alias.strip() for alias in raw.split(",") if alias.strip()]
	if not aliases:
		raise argparse.ArgumentTypeError(f"empty alias list {raw!r}")
	return aliases


def _split_aliases(raw: Optional[List[List[str]]]) -> Optional[List[str]]:
	aliases = [alias for group in raw or [] for alias in group]
	return aliases or None


async def _cmd_status(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.status(client, out)


async def _cmd_toggle(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.toggle(client, out)


async def _cmd_list_devices(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.list_devices(
		client,
		out,
		columns=args.columns,
		values=args.values,
		status=DeviceStatus(args.status) if args.status else None,
	)


async def _cmd_scan(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.scan(
		client,
		out,
		duration=settings.scan_duration if args.duration is None else args.duration,
		columns=args.columns,
		values=args.values,
	)


async def _cmd_connect(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.connect(
		client,
		out,
		inp,
		alias=args.alias,
		duration=settings.scan_duration if args.duration is None else args.duration,
		contains_name=args.contains_name,
	)


async def _cmd_disconnect(client: BluetoothClient, args: argparse.Namespace, settings: Settings, out: TextIO, inp: TextIO) -> None:
	await commands.disconnect(
		client,
		out,
		inp,
		aliases=_split_aliases(args.aliases),
		force=args.force,
	)


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog=PROGRAM, description="Inspect and control the Bluetooth adapter through BlueZ")
	parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
	parser.add_argument("--debug", action="store_true", help="Log D-Bus calls and decisions to stderr")
	parser.add_argument("--adapter", help="Adapter name under /org/bluez (default: $BTCTL_ADAPTER or hci0)")
	parser.set_defaults(handler=_cmd_status)
	sub = parser.add_subparsers(dest="command", metavar="COMMAND")

	status = sub.add_parser("status", aliases=["s"], help="See Bluetooth status (default)")
	status.set_defaults(handler=_cmd_status)

	toggle = sub.add_parser("toggle", aliases=["t"], help="Toggle Bluetooth power")
	toggle.set_defaults(handler=_cmd_toggle)

	list_devices = sub.add_parser("list-devices", aliases=["ls"], help="See known Bluetooth devices on the host")
	list_devices.add_argument("-c", "--columns", type=_column_list(ListColumn), help="Comma-separated columns of the table output")
	list_devices.add_argument("-v", "--values", type=_column_list(ListColumn), help="Comma-separated values of the terse output")
	list_devices.add_argument(
		"-s",
		"--status",
		choices=[member.value for member in DeviceStatus],
		help="Only show devices with this status",
	)
	list_devices.set_defaults(handler=_cmd_list_devices)

	scan = sub.add_parser("scan", aliases=["sc"], help="Scan available Bluetooth devices")
	scan.add_argument("-d", "--duration", type=_duration, help="Scan duration in seconds (default: $BTCTL_SCAN_DURATION or 5)")
	scan.add_argument(
		"-c",
		"--columns",
		type=_column_list(ScanColumn),
		nargs="?",
		const=[],
		help="Comma-separated columns of the table output (all when empty)",
	)
	scan.add_argument(
		"-v",
		"--values",
		type=_column_list(ScanColumn),
		nargs="?",
		const=[],
		help="Comma-separated values of the terse output (all when empty)",
	)
	scan.set_defaults(handler=_cmd_scan)

	connect = sub.add_parser("connect", aliases=["c"], help="Connect to an available Bluetooth device")
	connect.add_argument("-d", "--duration", type=_duration, help="Duration of the interactive scan")
	connect.add_argument("-n", "--contains-name", help="Only offer devices whose alias contains this text")
	connect.add_argument("alias", nargs="?", metavar="ALIAS", help="Full alias of a known device; omit to pick from a scan")
	connect.set_defaults(handler=_cmd_connect)

	disconnect = sub.add_parser("disconnect", aliases=["d"], help="Disconnect from the connected device(s)")
	disconnect.add_argument("-f", "--force", action="store_true", help="Remove the device(s) from the known devices list")
	disconnect.add_argument(
		"aliases",
		nargs="*",
		type=_alias_list,
		metavar="ALIAS",
		help="Comma-separated full aliases; omit to pick from the connected devices",
	)
	disconnect.set_defaults(handler=_cmd_disconnect)

	return parser


async def _run(
	handler: Handler,
	args: argparse.Namespace,
	settings: Settings,
	client_factory: ClientFactory,
	out: TextIO,
	inp: TextIO,
) -> None:
	client = await client_factory(settings.adapter)
	async with client:
		await handler(client, args, settings, out, inp)


def main(
	argv: Optional[List[str]] = None,
	*,
	client_factory: Optional[ClientFactory] = None,
	stdin: Optional[TextIO] = None,
	stdout: Optional[TextIO] = None,
	stderr: Optional[TextIO] = None,
) -> int:
	parser = _build_parser()
	args = parser.parse_args(argv)
	inp = stdin or sys.stdin
	out = stdout or sys.stdout
	err = stderr or sys.stderr

	try:
		settings = Settings.from_env().with_overrides(adapter=args.adapter, debug=args.debug)
	except BtError as exc:
		err.write(f"{PROGRAM}: {exc}\n")
		return 1

	logging.basicConfig(level=settings.log_level_value, format="%(levelname)s %(name)s: %(message)s", stream=err)
	logger.debug("Running %s on adapter %s", args.command or "status", settings.adapter)

	try:
		asyncio.run(_run(args.handler, args, settings, client_factory or BluezClient.open, out, inp))
	except BtError as exc:
		err.write(f"{PROGRAM}: {exc}\n")
		return 1
	except KeyboardInterrupt:
		err.write("\n")
		return 130
	return 0


if __name__ == "__main__":
	sys.exit(main())
