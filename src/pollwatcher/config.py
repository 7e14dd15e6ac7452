"""Configuration for the polling watcher package."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .exceptions import ConfigurationError, DurationTooShortError
from .models import Op


_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """
    Parse a duration string such as "100ms", "1.5s" or "1m30s".

    A bare number is read as milliseconds.

    Args:
        value: Duration string

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        return float(text) / 1000.0
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _split_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class WatcherConfig:
    """
    Configuration options for the polling watcher.

    Attributes:
        poll_interval_ms: Interval between poll ticks
        recursive: Default recursion mode for roots added by the CLI
        ignore_hidden: Whether dotfiles and dot-directories are excluded
        max_events: Maximum events delivered per tick (0 = unlimited)
        ops: Operations forwarded to the consumer (empty = all)
        event_buffer_size: Capacity of the event channel (0 = unbounded)
        error_buffer_size: Capacity of the error channel (0 = unbounded)
        follow_symlinks: Whether symbolic links are followed when listing
        ignore_paths: Paths ignored when the watcher is created
    """
    poll_interval_ms: int = 100
    recursive: bool = True
    ignore_hidden: bool = False
    max_events: int = 0
    ops: List[Op] = field(default_factory=list)
    event_buffer_size: int = 128
    error_buffer_size: int = 16
    follow_symlinks: bool = False
    ignore_paths: List[Path] = field(default_factory=list)

    def __post_init__(self):
        self.ops = [Op.parse(op) if isinstance(op, str) else op for op in self.ops]
        self.ignore_paths = [Path(p) for p in self.ignore_paths]
        if self.poll_interval_ms <= 0:
            raise DurationTooShortError(
                f"poll interval must be positive, got {self.poll_interval_ms}ms"
            )
        if self.max_events < 0:
            raise ConfigurationError(f"max_events must not be negative: {self.max_events}")

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_env(cls, prefix: str = "POLLWATCHER_", **overrides) -> "WatcherConfig":
        """
        Build a configuration from environment variables.

        Recognized variables (with the default prefix): POLLWATCHER_INTERVAL
        (duration string), POLLWATCHER_RECURSIVE, POLLWATCHER_IGNORE_HIDDEN,
        POLLWATCHER_MAX_EVENTS, POLLWATCHER_OPS, POLLWATCHER_EVENT_BUFFER_SIZE,
        POLLWATCHER_ERROR_BUFFER_SIZE, POLLWATCHER_FOLLOW_SYMLINKS and
        POLLWATCHER_IGNORE (comma-separated).

        Args:
            prefix: Prefix of the variable names
            **overrides: Values that take precedence over the environment

        Returns:
            A new WatcherConfig
        """
        env = os.environ
        values = {}

        if f"{prefix}INTERVAL" in env:
            seconds = parse_duration(env[f"{prefix}INTERVAL"])
            values["poll_interval_ms"] = max(int(round(seconds * 1000)), 1)
        if f"{prefix}RECURSIVE" in env:
            values["recursive"] = _env_bool(env[f"{prefix}RECURSIVE"])
        if f"{prefix}IGNORE_HIDDEN" in env:
            values["ignore_hidden"] = _env_bool(env[f"{prefix}IGNORE_HIDDEN"])
        if f"{prefix}MAX_EVENTS" in env:
            values["max_events"] = int(env[f"{prefix}MAX_EVENTS"])
        if f"{prefix}OPS" in env:
            values["ops"] = _split_list(env[f"{prefix}OPS"])
        if f"{prefix}EVENT_BUFFER_SIZE" in env:
            values["event_buffer_size"] = int(env[f"{prefix}EVENT_BUFFER_SIZE"])
        if f"{prefix}ERROR_BUFFER_SIZE" in env:
            values["error_buffer_size"] = int(env[f"{prefix}ERROR_BUFFER_SIZE"])
        if f"{prefix}FOLLOW_SYMLINKS" in env:
            values["follow_symlinks"] = _env_bool(env[f"{prefix}FOLLOW_SYMLINKS"])
        if f"{prefix}IGNORE" in env:
            values["ignore_paths"] = _split_list(env[f"{prefix}IGNORE"])

        values.update(overrides)
        return cls(**values)
