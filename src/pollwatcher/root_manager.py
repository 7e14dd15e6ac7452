"""Thread-safe management of watched roots."""

import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional


def covers(root: Path, recursive: bool, path: Path) -> bool:
    """
    Check if a root lists a path.

    Non-recursive roots only list themselves and their direct children.
    """
    if path == root or path.parent == root:
        return True
    return recursive and root in path.parents


class RootManager:
    """
    Thread-safe registry of the roots being watched.

    Each root carries the recursive flag it was added with. Adding a root
    again replaces its flag.
    """

    def __init__(self):
        """Initialize the root manager."""
        self._roots: Dict[Path, bool] = {}
        self._lock = threading.RLock()

    def add_root(self, path: Path, recursive: bool = False) -> bool:
        """
        Register a root.

        Args:
            path: Absolute path of the root
            recursive: Whether the root's whole subtree is listed

        Returns:
            True if the root is new, False if an existing root was updated
        """
        with self._lock:
            is_new = path not in self._roots
            self._roots[path] = recursive
            return is_new

    def remove_root(self, path: Path) -> bool:
        """
        Unregister a root.

        Args:
            path: Absolute path of the root

        Returns:
            True if the root was removed, False if not found
        """
        with self._lock:
            if path in self._roots:
                del self._roots[path]
                return True
            return False

    def remove_under(self, path: Path) -> int:
        """
        Unregister every root at or below a path.

        Args:
            path: Absolute path of the subtree

        Returns:
            Number of roots removed
        """
        with self._lock:
            doomed = [
                root for root in self._roots
                if root == path or path in root.parents
            ]
            for root in doomed:
                del self._roots[root]
            return len(doomed)

    def get_roots(self) -> Mapping[Path, bool]:
        """
        Get the current roots and their recursive flags.

        Returns:
            Read-only mapping of root path to recursive flag
        """
        with self._lock:
            return MappingProxyType(dict(self._roots))

    def is_recursive(self, path: Path) -> Optional[bool]:
        """
        Get the recursive flag of a root.

        Returns:
            The flag, or None if the path is not a root
        """
        with self._lock:
            return self._roots.get(path)

    def find_root_for_path(self, path: Path) -> Optional[Path]:
        """
        Find which root covers the given path.

        Non-recursive roots only cover themselves and their direct children.

        Args:
            path: Absolute path to check

        Returns:
            The covering root, or None
        """
        with self._lock:
            for root, recursive in self._roots.items():
                if covers(root, recursive, path):
                    return root
            return None

    def clear(self) -> int:
        """
        Remove all roots.

        Returns:
            Number of roots removed
        """
        with self._lock:
            count = len(self._roots)
            self._roots.clear()
            return count

    def __len__(self) -> int:
        """Return the number of watched roots."""
        with self._lock:
            return len(self._roots)

    def __contains__(self, path: Path) -> bool:
        """Check if a path is a watched root."""
        with self._lock:
            return path in self._roots
