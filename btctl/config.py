"""Environment driven settings for btctl."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from btctl.errors import ConfigError

DEFAULT_ADAPTER = "hci0"
DEFAULT_SCAN_DURATION = 5
DEFAULT_LOG_LEVEL = "WARNING"
MAX_SCAN_DURATION = 255


def parse_duration(raw: str) -> int:
    """Parse a discovery duration in whole seconds (0..255)."""
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid duration {raw!r}: expected an integer") from exc
    if not 0 <= value <= MAX_SCAN_DURATION:
        raise ValueError(f"invalid duration {value}: expected 0..{MAX_SCAN_DURATION}")
    return value


def _check_adapter(raw: str, source: str) -> str:
    adapter = raw.strip()
    if not adapter or "/" in adapter:
        raise ConfigError(f"{source} must be an adapter name like 'hci0', got {adapter!r}")
    return adapter


@dataclass(slots=True, frozen=True)
class Settings:
    """Resolved runtime settings."""

    adapter: str = DEFAULT_ADAPTER
    scan_duration: int = DEFAULT_SCAN_DURATION
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        adapter = _check_adapter(env.get("BTCTL_ADAPTER", DEFAULT_ADAPTER), "BTCTL_ADAPTER")

        try:
            scan_duration = parse_duration(env.get("BTCTL_SCAN_DURATION", str(DEFAULT_SCAN_DURATION)))
        except ValueError as exc:
            raise ConfigError(f"BTCTL_SCAN_DURATION: {exc}") from exc

        log_level = env.get("BTCTL_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"BTCTL_LOG_LEVEL: unknown level {log_level!r}")

        return cls(adapter=adapter, scan_duration=scan_duration, log_level=log_level)

    def with_overrides(self, *, adapter: Optional[str] = None, debug: bool = False) -> "Settings":
        changes = {}
        if adapter is not None:
            changes["adapter"] = _check_adapter(adapter, "--adapter")
        if debug:
            changes["log_level"] = "DEBUG"
        return replace(self, **changes) if changes else self


__all__ = [
    "DEFAULT_ADAPTER",
    "DEFAULT_SCAN_DURATION",
    "Settings",
    "parse_duration",
]
