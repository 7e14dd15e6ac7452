"""Snapshot comparison with rename and move detection."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .models import OP_ORDER, Event, FileRecord, Op, Snapshot

logger = logging.getLogger(__name__)


def edit_distance(a: str, b: str) -> int:
    """
    Compute the Levenshtein distance between two strings.

    Args:
        a: First string
        b: Second string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions turning a into b
    """
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def _same_entry(removed: FileRecord, created: FileRecord) -> bool:
    """Renames keep size and mode; mode also carries the file type."""
    return (
        removed.size == created.size
        and removed.mode == created.mode
        and removed.is_directory == created.is_directory
    )


class MoveCorrelator:
    """
    Pairs removed paths with created paths to detect renames and moves.

    Listings expose no stable file identity, so pairing is a heuristic: a
    remove and a create are the same entry when size and mode match. When
    several creates qualify for one remove, the one with the smallest path
    edit distance wins, then the lexicographically smallest path.

    Two entries renamed in the same tick with identical size and mode cannot
    be told apart; the pairing for them is a best guess.
    """

    def __init__(self):
        self._removes: Dict[Path, FileRecord] = {}
        self._creates: Dict[Path, FileRecord] = {}

    def on_remove(self, path: Path, record: FileRecord) -> None:
        """Record a tentative remove."""
        self._removes[path] = record

    def on_create(self, path: Path, record: FileRecord) -> None:
        """Record a tentative create."""
        self._creates[path] = record

    def _best_match(self, old_path: Path, removed: FileRecord) -> Optional[Path]:
        candidates = [
            path for path, created in self._creates.items()
            if _same_entry(removed, created)
        ]
        if not candidates:
            return None
        old = str(old_path)
        return min(candidates, key=lambda path: (edit_distance(old, str(path)), str(path)))

    def correlate(self) -> List[Event]:
        """
        Resolve the tentative events.

        Removes are paired in path order; each create is used at most once.

        Returns:
            RENAME/MOVE events for pairs, CREATE/REMOVE events for the rest
        """
        events = []

        for old_path in sorted(self._removes):
            removed = self._removes[old_path]
            new_path = self._best_match(old_path, removed)
            if new_path is None:
                events.append(Event(Op.REMOVE, old_path, removed))
                continue

            created = self._creates.pop(new_path)
            op = Op.RENAME if old_path.parent == new_path.parent else Op.MOVE
            logger.debug(f"Correlated {op}: {old_path} -> {new_path}")
            events.append(Event(op, new_path, created, old_path=old_path))

        for path, created in self._creates.items():
            events.append(Event(Op.CREATE, path, created))

        self.clear()
        return events

    def clear(self) -> None:
        """Clear all tentative events."""
        self._removes.clear()
        self._creates.clear()


def diff_snapshots(old: Snapshot, new: Snapshot) -> List[Event]:
    """
    Compare two snapshots.

    Paths only in new are creates, paths only in old are removes, and
    matching remove/create pairs become renames (same parent) or moves.
    For paths in both, a size or modification time change is a WRITE and
    a mode-only change is a CHMOD.

    Args:
        old: Previous snapshot
        new: Current snapshot

    Returns:
        Events ordered by path
    """
    correlator = MoveCorrelator()
    events = []

    for path, record in new.items():
        previous = old.get(path)
        if previous is None:
            correlator.on_create(path, record)
        elif previous.metadata_equal(record):
            continue
        elif previous.size == record.size and previous.mtime_ns == record.mtime_ns:
            events.append(Event(Op.CHMOD, path, record))
        else:
            events.append(Event(Op.WRITE, path, record))

    for path, record in old.items():
        if path not in new:
            correlator.on_remove(path, record)

    events.extend(correlator.correlate())
    events.sort(key=lambda event: (str(event.path), OP_ORDER[event.op]))
    return events
