#!/usr/bin/env python3
"""
Command-line front end for the polling watcher.

Usage:
    pollwatcher --interval 250ms --cmd "make test" src/ tests/
    pollwatcher --no-recursive --list --ignore build,dist .
    python -m pollwatcher --cmd "./notify.sh" --pipe --keepalive docs/
"""

import argparse
import logging
import shlex
import signal
import subprocess
import sys
import threading
from typing import List, Optional

from dotenv import load_dotenv

from .config import WatcherConfig, parse_duration
from .exceptions import WatchedFileDeletedError, WatcherError
from .models import Op
from .watcher import Watcher

logger = logging.getLogger("pollwatcher")


class GracefulShutdown:
    """Close the watcher on SIGINT/SIGTERM."""

    def __init__(self, watcher: Watcher):
        self.watcher = watcher
        self.triggered = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.triggered = True
        self.watcher.close()


class EventConsumer:
    """
    Drains the watcher's channels and runs the command for each event.

    A deleted watched file is reported and ignored. Any other error, or a
    failing command without keepalive, closes the watcher and marks the
    run as failed.
    """

    def __init__(
        self,
        watcher: Watcher,
        command: Optional[List[str]] = None,
        pipe: bool = False,
        keepalive: bool = False,
        out=None,
    ):
        self.watcher = watcher
        self.command = command
        self.pipe = pipe
        self.keepalive = keepalive
        self.out = out or sys.stdout
        self.failed = False

    def fail(self, message: str) -> None:
        logger.error(message)
        self.failed = True
        self.watcher.close()

    def run_command(self, stdin_text: Optional[str] = None) -> bool:
        """
        Run the configured command.

        Args:
            stdin_text: Text fed to the command's stdin (inherits stdin if None)

        Returns:
            True if the run may continue
        """
        if not self.command:
            return True

        try:
            if stdin_text is None:
                completed = subprocess.run(self.command)
            else:
                completed = subprocess.run(self.command, input=stdin_text, text=True)
        except OSError as e:
            self.fail(f"Failed to run {self.command[0]}: {e}")
            return False

        if completed.returncode == 0:
            return True
        message = f"Command {' '.join(self.command)} exited with status {completed.returncode}"
        if self.keepalive:
            logger.warning(message)
            return True
        self.fail(message)
        return False

    def run_startup_command(self) -> None:
        self.run_command()

    def handle_event(self, event) -> bool:
        print(event, file=self.out, flush=True)
        return self.run_command(str(event) if self.pipe else None)

    def handle_error(self, error: Exception) -> bool:
        if isinstance(error, WatchedFileDeletedError):
            print(error, file=self.out, flush=True)
            return True
        self.fail(f"Watcher error: {error}")
        return False

    def run(self) -> None:
        """Consume until the watcher is closed and both channels are drained."""
        watcher = self.watcher
        while True:
            error = watcher.errors.receive(timeout=0)
            if error is not None and not self.handle_error(error):
                return

            event = watcher.events.receive(timeout=0.05)
            if event is not None:
                if not self.handle_event(event):
                    return
                continue

            if watcher.closed.is_set() and not len(watcher.events) and not len(watcher.errors):
                return


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser(defaults: Optional[WatcherConfig] = None) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Args:
        defaults: Configuration supplying default values (e.g. from the environment)
    """
    defaults = defaults or WatcherConfig()

    parser = argparse.ArgumentParser(
        prog="pollwatcher",
        description="Watch files and folders for changes by polling.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Files and folders to watch (default: current directory)",
    )
    parser.add_argument(
        "--interval",
        default=f"{defaults.poll_interval_ms}ms",
        help="Poll interval, e.g. 100ms, 1s (default: %(default)s)",
    )
    parser.add_argument(
        "--recursive",
        action=argparse.BooleanOptionalAction,
        default=defaults.recursive,
        help="Watch folders recursively",
    )
    parser.add_argument(
        "--dotfiles",
        action=argparse.BooleanOptionalAction,
        default=not defaults.ignore_hidden,
        help="Watch dot files",
    )
    parser.add_argument("--cmd", default="", help="Command to run when an event occurs")
    parser.add_argument(
        "--startcmd",
        action="store_true",
        help="Run the command when the watcher starts",
    )
    parser.add_argument("--list", action="store_true", help="List watched files on start")
    parser.add_argument(
        "--pipe",
        action="store_true",
        help="Pipe the event's description to the command's stdin",
    )
    parser.add_argument(
        "--keepalive",
        action="store_true",
        help="Keep running when the command exits with a non-zero status",
    )
    parser.add_argument(
        "--ignore",
        default=",".join(str(p) for p in defaults.ignore_paths),
        help="Comma separated list of paths to ignore",
    )
    parser.add_argument(
        "--max-events",
        type=int,
        default=defaults.max_events,
        help="Maximum events delivered per poll (0 = unlimited)",
    )
    parser.add_argument(
        "--ops",
        default=",".join(op.value for op in defaults.ops),
        help="Comma separated operations to report, e.g. write,create (default: all)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the watcher CLI. Returns the process exit status."""
    load_dotenv()

    try:
        defaults = WatcherConfig.from_env()
    except (ValueError, WatcherError) as e:
        print(f"pollwatcher: invalid environment configuration: {e}", file=sys.stderr)
        return 2

    parser = build_parser(defaults)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        interval = parse_duration(args.interval)
        ops = [Op.parse(name) for name in _split_csv(args.ops)]
    except ValueError as e:
        parser.error(str(e))

    config = WatcherConfig(
        poll_interval_ms=max(int(round(interval * 1000)), 1),
        recursive=args.recursive,
        ignore_hidden=not args.dotfiles,
        max_events=max(args.max_events, 0),
        ops=ops,
        event_buffer_size=defaults.event_buffer_size,
        error_buffer_size=defaults.error_buffer_size,
        follow_symlinks=defaults.follow_symlinks,
    )
    watcher = Watcher(config)
    paths = args.paths or ["."]

    try:
        ignored = _split_csv(args.ignore)
        if ignored:
            watcher.ignore(*ignored)
        for path in paths:
            if args.recursive:
                watcher.add_recursive(path)
            else:
                watcher.add(path)
    except WatcherError as e:
        logger.error(str(e))
        return 1

    command = shlex.split(args.cmd) if args.cmd else None
    consumer = EventConsumer(watcher, command, pipe=args.pipe, keepalive=args.keepalive)
    consumer_thread = threading.Thread(target=consumer.run, name="EventConsumer", daemon=True)
    consumer_thread.start()

    if args.list:
        for path, record in sorted(watcher.watched_files().items()):
            print(f"{path}: {record.name}")
        print()

    print(f"Watching {len(watcher.watched_files())} files", flush=True)

    shutdown = GracefulShutdown(watcher)

    if command and args.startcmd:
        threading.Thread(
            target=consumer.run_startup_command,
            name="StartCommand",
            daemon=True,
        ).start()

    try:
        watcher.start(interval)
    except WatcherError as e:
        logger.error(str(e))
        watcher.close()
        return 1
    finally:
        consumer_thread.join(timeout=5.0)

    if shutdown.triggered:
        print("watcher closed")
    return 1 if consumer.failed else 0


if __name__ == "__main__":
    sys.exit(main())
