"""Exception hierarchy shared by the btctl client, commands and CLI."""
from __future__ import annotations

from typing import Optional


class BtError(Exception):
    """Base class for every error btctl reports to the user."""


class ConfigError(BtError):
    """Raised when the environment holds an invalid setting."""


class ClientInitError(BtError):
    """Raised when the system bus or the BlueZ adapter cannot be reached."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"unable to establish a Bluez D-Bus connection: {cause}")
        self.cause = cause


class ServiceCallError(BtError):
    """Raised when a single BlueZ call fails.

    ``operation`` names the logical client call that produced the failure,
    e.g. ``"power_state"`` or ``"remove"``.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"the Bluez process '{operation}' failed: {cause}")
        self.operation = operation
        self.cause = cause


class DeviceNotFoundError(LookupError):
    """No device object carries the requested alias."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"no device with alias '{alias}'")
        self.alias = alias


_STEP_DESCRIPTIONS = {
    "power_state": "get device power state",
    "toggle_power_state": "toggle device power state",
    "connected_devices": "get connected devices",
    "devices": "get known devices",
    "start_discovery": "start device discovery",
    "discovered_devices": "get discovered devices",
    "stop_discovery": "stop device discovery",
    "connect": "connect to device",
    "disconnect": "disconnect from device",
    "remove": "remove device",
}


class CommandError(BtError):
    """Raised when one step of a command fails.

    ``command`` is the subcommand name and ``step`` tags what the command was
    doing when it failed.
    """

    def __init__(
        self,
        command: str,
        step: str,
        cause: Optional[BaseException] = None,
        *,
        message: Optional[str] = None,
    ) -> None:
        text = message or f"unable to {_STEP_DESCRIPTIONS.get(step, step)}"
        if cause is not None:
            text = f"{text}: {cause}"
        super().__init__(f"{command}: {text}")
        self.command = command
        self.step = step
        self.cause = cause


class InvalidSelectionError(CommandError):
    """The interactive answer does not name a listed device."""

    def __init__(self, command: str, answer: str) -> None:
        super().__init__(
            command,
            "select",
            message=f"the selected index {answer.strip()!r} is not valid",
        )
        self.answer = answer


class NoConnectedDevicesError(CommandError):
    """There is nothing to choose from in the interactive disconnect."""

    def __init__(self, command: str) -> None:
        super().__init__(
            command,
            "connected_devices",
            message="there are no connected devices to disconnect",
        )


class OutputError(CommandError):
    """Writing to the output stream or reading the answer failed.

    ``cause`` is the ``OSError`` or the ``UnicodeError`` raised by the stream.
    """

    def __init__(self, command: str, cause: Exception) -> None:
        super().__init__(command, "io", cause, message="io error")


__all__ = [
    "BtError",
    "ConfigError",
    "ClientInitError",
    "ServiceCallError",
    "DeviceNotFoundError",
    "CommandError",
    "InvalidSelectionError",
    "NoConnectedDevicesError",
    "OutputError",
]
