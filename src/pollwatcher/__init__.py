"""
Polling File Watcher

Watches files and folders by listing them on a fixed interval and
comparing each listing with the previous one.

Features:
- File change events: CREATE, WRITE, REMOVE, RENAME, MOVE, CHMOD
- Rename/move detection by pairing removes with creates
- Recursive and non-recursive roots
- Ignore lists, hidden-file toggle and filter hooks
- Operation filtering and per-tick event caps
- Thread-safe reconfiguration while running
"""

from .models import (
    Op,
    FileRecord,
    Event,
    Snapshot,
)

from .config import WatcherConfig, parse_duration

from .exceptions import (
    WatcherError,
    ConfigurationError,
    PathNotFoundError,
    DurationTooShortError,
    ListingError,
    FilterHookError,
    WatchedFileDeletedError,
    LifecycleError,
    WatcherAlreadyRunningError,
    WatcherClosedError,
    ChannelClosedError,
)

from .filters import (
    FilterResult,
    FilterHook,
    CallableFilterHook,
    RegexFilterHook,
    PathFilter,
)
from .channels import Channel
from .root_manager import RootManager
from .snapshot import BuildResult, build_snapshot, list_path, list_recursive
from .differ import MoveCorrelator, diff_snapshots, edit_distance
from .op_filter import OpFilter
from .watcher import Watcher, WatcherState


__all__ = [
    # Models
    "Op",
    "FileRecord",
    "Event",
    "Snapshot",
    # Config
    "WatcherConfig",
    "parse_duration",
    # Exceptions
    "WatcherError",
    "ConfigurationError",
    "PathNotFoundError",
    "DurationTooShortError",
    "ListingError",
    "FilterHookError",
    "WatchedFileDeletedError",
    "LifecycleError",
    "WatcherAlreadyRunningError",
    "WatcherClosedError",
    "ChannelClosedError",
    # Filters
    "FilterResult",
    "FilterHook",
    "CallableFilterHook",
    "RegexFilterHook",
    "PathFilter",
    # Components
    "Channel",
    "RootManager",
    "BuildResult",
    "build_snapshot",
    "list_path",
    "list_recursive",
    "MoveCorrelator",
    "diff_snapshots",
    "edit_distance",
    "OpFilter",
    "Watcher",
    "WatcherState",
]
