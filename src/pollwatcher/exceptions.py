"""Custom exceptions for the polling watcher package."""

from pathlib import Path
from typing import Optional


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class ConfigurationError(WatcherError):
    """Invalid argument passed to a configuration call."""
    pass


class PathNotFoundError(ConfigurationError):
    """Path passed to add/ignore does not exist."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class DurationTooShortError(ConfigurationError):
    """Poll interval is not a positive duration."""
    pass


class ListingError(WatcherError):
    """Listing a watched path failed during a poll tick."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class FilterHookError(ListingError):
    """A filter hook raised while a snapshot was being built."""
    pass


class WatchedFileDeletedError(WatcherError):
    """A non-recursively watched file or folder was deleted."""

    def __init__(self, path: Path):
        super().__init__(f"watched file or folder deleted: {path}")
        self.path = path


class LifecycleError(WatcherError):
    """Operation is not valid in the watcher's current state."""
    pass


class WatcherAlreadyRunningError(LifecycleError):
    """Watcher is already running."""
    pass


class WatcherClosedError(LifecycleError):
    """Watcher has been closed."""
    pass


class ChannelClosedError(WatcherError):
    """Channel has been closed."""
    pass
