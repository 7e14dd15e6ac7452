"""Polling watcher: configuration, poll loop and lifecycle."""

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, Optional, Union

from .channels import Channel
from .config import WatcherConfig
from .differ import diff_snapshots
from .exceptions import (
    ChannelClosedError,
    ConfigurationError,
    DurationTooShortError,
    ListingError,
    PathNotFoundError,
    WatcherAlreadyRunningError,
    WatcherClosedError,
)
from .filters import FilterHook, PathFilter, is_hidden
from .models import Event, FileRecord, Op, Snapshot, triggered_record
from .op_filter import OpFilter
from .root_manager import RootManager, covers
from .snapshot import build_snapshot, list_path, list_recursive

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class WatcherState(Enum):
    """Lifecycle states of a watcher."""
    CREATED = "created"
    STARTED = "started"
    CLOSED = "closed"


def _absolute(path: PathLike) -> Path:
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


class Watcher:
    """
    Polls a set of files and directories and reports changes.

    Every tick lists the watched roots, compares the listing with the
    previous one and sends the resulting events on the events channel.
    Listing failures go to the errors channel and the previous snapshot is
    kept. The closed event is set once the watcher has shut down.

    Configuration methods may be called from any thread before or after
    start(); they share one lock with the poll loop.
    """

    def __init__(self, config: Optional[WatcherConfig] = None):
        """
        Initialize the watcher.

        Args:
            config: Watcher configuration

        Raises:
            PathNotFoundError: If a path in config.ignore_paths does not exist
        """
        self.config = config or WatcherConfig()

        self._lock = threading.RLock()
        self._tick_lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._roots = RootManager()
        self._filter = PathFilter(ignore_hidden=self.config.ignore_hidden)
        self._op_filter = OpFilter(self.config.ops, self.config.max_events)
        self._files: Snapshot = {}

        self._state = WatcherState.CREATED
        self._loop_active = False
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.events = Channel(self.config.event_buffer_size, "event")
        self.errors = Channel(self.config.error_buffer_size, "error")
        self.closed = threading.Event()

        if self.config.ignore_paths:
            self.ignore(*self.config.ignore_paths)

    # Configuration

    def _check_open(self) -> None:
        if self._state is WatcherState.CLOSED:
            raise WatcherClosedError("Watcher is closed")

    def add(self, path: PathLike) -> None:
        """
        Watch a file, or a directory and its immediate children.

        Args:
            path: Path to watch

        Raises:
            PathNotFoundError: If the path does not exist
            ConfigurationError: If the path cannot be listed
            WatcherClosedError: If the watcher is closed
        """
        self._add(_absolute(path), recursive=False)

    def add_recursive(self, path: PathLike) -> None:
        """
        Watch a directory and its whole subtree.

        Args:
            path: Path to watch

        Raises:
            PathNotFoundError: If the path does not exist
            ConfigurationError: If the path cannot be listed
            WatcherClosedError: If the watcher is closed
        """
        self._add(_absolute(path), recursive=True)

    def _add(self, root: Path, recursive: bool) -> None:
        with self._lock:
            self._check_open()

            if self._filter.excludes(root):
                logger.debug(f"Not watching excluded path: {root}")
                return

            try:
                if recursive:
                    listed = list_recursive(root, self._filter, self.config.follow_symlinks)
                else:
                    listed = list_path(root, self._filter, self.config.follow_symlinks)
            except FileNotFoundError as e:
                raise PathNotFoundError(f"Path does not exist: {root}", root) from e
            except OSError as e:
                raise ConfigurationError(f"Cannot list {root}: {e}") from e

            self._files.update(listed)
            self._roots.add_root(root, recursive)

        logger.info(f"Watching {root} ({'recursive' if recursive else 'non-recursive'}, {len(listed)} path(s))")

    def remove(self, path: PathLike) -> None:
        """
        Stop watching a root added with add().

        The root and its immediate children leave the snapshot unless
        another root still covers them.
        """
        root = _absolute(path)
        with self._lock:
            self._check_open()
            self._roots.remove_root(root)
            self._drop_paths(lambda p: p == root or p.parent == root)
        logger.info(f"Stopped watching {root}")

    def remove_recursive(self, path: PathLike) -> None:
        """
        Stop watching a root added with add_recursive().

        The root's subtree leaves the snapshot unless another root still
        covers it.
        """
        root = _absolute(path)
        with self._lock:
            self._check_open()
            self._roots.remove_root(root)
            self._drop_paths(lambda p: p == root or root in p.parents)
        logger.info(f"Stopped watching {root} recursively")

    def _drop_paths(self, predicate) -> None:
        """Remove matching paths no remaining root covers. Caller holds the lock."""
        for path in [p for p in self._files if predicate(p)]:
            if self._roots.find_root_for_path(path) is None:
                del self._files[path]

    def ignore(self, *paths: PathLike) -> None:
        """
        Exclude paths, and the subtrees of directories, from watching.

        Every path must exist; nothing is ignored if one does not.

        Args:
            *paths: Paths to ignore

        Raises:
            PathNotFoundError: If a path does not exist
            WatcherClosedError: If the watcher is closed
        """
        resolved = [_absolute(path) for path in paths]
        for path in resolved:
            if not os.path.lexists(path):
                raise PathNotFoundError(f"Cannot ignore missing path: {path}", path)

        with self._lock:
            self._check_open()
            for path in resolved:
                self._filter.ignore(path)
                removed = self._roots.remove_under(path)
                if removed:
                    logger.debug(f"Ignoring {path} removed {removed} root(s)")
            for path in [p for p in self._files if self._filter.is_ignored(p)]:
                del self._files[path]

        logger.info(f"Ignoring {len(resolved)} path(s)")

    def ignore_hidden_files(self, enabled: bool) -> None:
        """
        Toggle whether dotfiles and dot-directories are excluded.

        Args:
            enabled: True to exclude hidden entries
        """
        with self._lock:
            self._check_open()
            self._filter.ignore_hidden = enabled
            if enabled:
                for path in [p for p in self._files if is_hidden(p)]:
                    del self._files[path]

    def filter_ops(self, *ops: Union[Op, str]) -> None:
        """
        Only deliver events of the given operations.

        Calling with no arguments delivers every operation again.
        """
        parsed = [Op.parse(op) if isinstance(op, str) else op for op in ops]
        with self._lock:
            self._check_open()
            self._op_filter = OpFilter(parsed, self._op_filter.max_events)

    def set_max_events(self, max_events: int) -> None:
        """
        Cap the number of events delivered per tick (0 = unlimited).

        Raises:
            ConfigurationError: If max_events is negative
        """
        if max_events < 0:
            raise ConfigurationError(f"max_events must not be negative: {max_events}")
        with self._lock:
            self._check_open()
            self._op_filter = OpFilter(self._op_filter.ops, max_events)

    def add_filter_hook(self, hook) -> FilterHook:
        """
        Append a filter hook to the chain.

        Args:
            hook: A FilterHook, or a callable taking (path, record) and
                returning a FilterResult or bool

        Returns:
            The registered FilterHook
        """
        with self._lock:
            self._check_open()
            return self._filter.add_hook(hook)

    def watched_files(self) -> Mapping[Path, FileRecord]:
        """
        Get the current snapshot.

        Returns:
            Read-only copy mapping path to FileRecord
        """
        with self._lock:
            return MappingProxyType(dict(self._files))

    def roots(self) -> Mapping[Path, bool]:
        """Get the watched roots and their recursive flags."""
        return self._roots.get_roots()

    # Lifecycle

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the poll loop is running."""
        return self._loop_active and not self._stop_event.is_set()

    def _begin(self, interval: Optional[float]) -> float:
        """Validate and move to STARTED."""
        if interval is None:
            interval = self.config.poll_interval
        if interval <= 0:
            raise DurationTooShortError(f"Poll interval must be positive, got {interval}")

        with self._state_lock:
            self._check_open()
            if self._state is WatcherState.STARTED:
                raise WatcherAlreadyRunningError("Watcher is already running")
            self._state = WatcherState.STARTED
            self._loop_active = True

        logger.info(f"Watcher started, polling every {interval}s")
        return interval

    def start(self, interval: Optional[float] = None) -> None:
        """
        Start polling (blocking).

        Runs the poll loop in the calling thread until close() is called.

        Args:
            interval: Seconds between ticks (defaults to config.poll_interval)

        Raises:
            DurationTooShortError: If the interval is not positive
            WatcherAlreadyRunningError: If already started
            WatcherClosedError: If the watcher is closed
        """
        self._run(self._begin(interval))

    def start_async(self, interval: Optional[float] = None) -> threading.Thread:
        """
        Start polling in a background thread.

        Returns:
            The poll loop thread

        Raises:
            DurationTooShortError: If the interval is not positive
            WatcherAlreadyRunningError: If already started
            WatcherClosedError: If the watcher is closed
        """
        interval = self._begin(interval)
        self._thread = threading.Thread(
            target=self._run,
            args=(interval,),
            name="PollLoop",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def _run(self, interval: float) -> None:
        """Poll loop."""
        logger.debug("Poll loop started")
        try:
            while not self._stop_event.is_set():
                self._tick()
                self._ready.set()
                if self._stop_event.wait(timeout=interval):
                    break
        finally:
            self._shutdown()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the first tick has published its snapshot.

        Also returns once the watcher is closed.

        Args:
            timeout: Maximum seconds to wait (None waits forever)

        Returns:
            True unless the timeout expired
        """
        return self._ready.wait(timeout)

    def close(self) -> None:
        """
        Stop the watcher.

        If the poll loop is running it finishes its current tick, then
        shuts down and sets the closed event. Calling close() again is a
        no-op.
        """
        with self._state_lock:
            if self._stop_event.is_set():
                return
            self._stop_event.set()
            running = self._loop_active
            self._state = WatcherState.CLOSED

        logger.info("Closing watcher")
        if not running:
            with self._tick_lock:
                self._shutdown()

    def _shutdown(self) -> None:
        """Internal shutdown procedure."""
        with self._state_lock:
            self._state = WatcherState.CLOSED
            self._loop_active = False
        with self._lock:
            self._files = {}
            self._roots.clear()

        self.events.close()
        self.errors.close()
        self._ready.set()
        self.closed.set()
        logger.info("Watcher closed")

    # Polling

    def poll(self) -> List[Event]:
        """
        Run one polling cycle in the calling thread.

        Returns:
            The events delivered on the events channel

        Raises:
            WatcherClosedError: If the watcher is closed
        """
        with self._lock:
            self._check_open()
        return self._tick()

    def _tick(self) -> List[Event]:
        with self._tick_lock:
            with self._lock:
                roots = self._roots.get_roots()
                events: List[Event] = []
                try:
                    result = build_snapshot(roots, self._filter, self.config.follow_symlinks)
                except ListingError as e:
                    failure = e
                else:
                    failure = None
                    for deleted in result.deleted_roots:
                        self._roots.remove_root(deleted.path)
                    # Mutators edit self._files in place, so the diff must
                    # finish before they can run.
                    events = self._op_filter.apply(diff_snapshots(self._files, result.files))

            if failure is not None:
                logger.error(f"Poll failed, keeping previous snapshot: {failure}")
                self._send(self.errors, failure)
                return []

            for deleted in result.deleted_roots:
                self._send(self.errors, deleted)

            delivered = []
            for event in events:
                if not self._send(self.events, event):
                    break
                delivered.append(event)

            if self._stop_event.is_set():
                return delivered

            self._publish(result.files, roots)
            logger.debug(f"Tick done: {len(result.files)} path(s), {len(delivered)} event(s)")
            return delivered

    def _publish(self, files: Snapshot, built_roots: Mapping[Path, bool]) -> None:
        """
        Replace the current snapshot.

        Configuration may have changed while events were delivered: paths
        ignored or no longer covered by a root are pruned, and paths listed
        by roots added during the tick are kept.
        """
        with self._lock:
            current_roots = self._roots.get_roots()
            added = [
                (root, recursive) for root, recursive in current_roots.items()
                if built_roots.get(root) != recursive
            ]

            published = {
                path: record for path, record in files.items()
                if not self._filter.excludes(path)
                and self._roots.find_root_for_path(path) is not None
            }
            for path, record in self._files.items():
                if path in published:
                    continue
                if any(covers(root, recursive, path) for root, recursive in added):
                    published[path] = record

            self._files = published

    def _send(self, channel: Channel, item) -> bool:
        """Deliver an item unless the watcher is shutting down."""
        try:
            return channel.send(item, cancel=self._stop_event)
        except ChannelClosedError:
            return False

    def trigger_event(self, op: Union[Op, str], record: Optional[FileRecord] = None) -> Event:
        """
        Send a synthetic event on the events channel.

        The snapshot is not touched.

        Args:
            op: Operation of the event
            record: Record for the event (a placeholder named
                "triggered event" at path "-" if omitted)

        Returns:
            The event that was sent

        Raises:
            WatcherClosedError: If the watcher is closed
        """
        if isinstance(op, str):
            op = Op.parse(op)
        if record is None:
            record = triggered_record()

        with self._lock:
            self._check_open()

        event = Event(op, record.path, record)
        if not self._send(self.events, event):
            raise WatcherClosedError("Watcher closed before the event was delivered")
        return event

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=5.0)
        return False
