"""Ignore list, hidden-file toggle and filter hook chain."""

import re
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, List, Pattern, Set, Union

from .exceptions import FilterHookError
from .models import FileRecord


class FilterResult(Enum):
    """Outcome of testing a path against a filter."""
    INCLUDE = "include"
    SKIP = "skip"


class FilterHook(ABC):
    """
    A predicate deciding whether a listed path is watched.

    Raising from test() aborts the snapshot being built.
    """

    @abstractmethod
    def test(self, path: Path, record: FileRecord) -> FilterResult:
        """
        Decide whether the path is included.

        Args:
            path: Absolute path of the entry
            record: Metadata of the entry

        Returns:
            FilterResult.INCLUDE or FilterResult.SKIP
        """
        pass


class CallableFilterHook(FilterHook):
    """Adapts a plain function to the FilterHook interface."""

    def __init__(self, func: Callable[[Path, FileRecord], FilterResult]):
        self.func = func

    def test(self, path: Path, record: FileRecord) -> FilterResult:
        result = self.func(path, record)
        if isinstance(result, bool):
            return FilterResult.INCLUDE if result else FilterResult.SKIP
        return result

    def __repr__(self) -> str:
        return f"CallableFilterHook({self.func!r})"


class RegexFilterHook(FilterHook):
    """
    Includes only entries whose name matches a regular expression.

    Directories exempted from the match are always included, so recursion
    into them is never blocked by their own name.
    """

    def __init__(
        self,
        pattern: Union[str, Pattern[str]],
        exempt_directories: bool = False,
        use_full_path: bool = False,
    ):
        """
        Initialize the hook.

        Args:
            pattern: Regular expression searched in the name
            exempt_directories: If True, directories always pass
            use_full_path: If True, match against the full path instead of the name
        """
        self.regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.exempt_directories = exempt_directories
        self.use_full_path = use_full_path

    def test(self, path: Path, record: FileRecord) -> FilterResult:
        if self.exempt_directories and record.is_directory:
            return FilterResult.INCLUDE

        subject = str(path) if self.use_full_path else record.name
        if self.regex.search(subject):
            return FilterResult.INCLUDE
        return FilterResult.SKIP

    def __repr__(self) -> str:
        return (
            f"RegexFilterHook({self.regex.pattern!r}, "
            f"exempt_directories={self.exempt_directories}, "
            f"use_full_path={self.use_full_path})"
        )


def as_filter_hook(hook) -> FilterHook:
    """Wrap plain callables so every hook exposes test()."""
    if isinstance(hook, FilterHook):
        return hook
    if callable(hook):
        return CallableFilterHook(hook)
    raise TypeError(f"filter hook must be a FilterHook or callable, got {type(hook).__name__}")


def is_hidden(path: Path) -> bool:
    """Check if a path names a dotfile or dot-directory."""
    name = path.name
    return name.startswith(".") and name not in (".", "..")


class PathFilter:
    """
    Decides per path whether it belongs in a snapshot.

    Checks run in order: ignored paths (and their subtrees), the hidden-file
    toggle, then filter hooks in registration order. The first SKIP wins.

    Not thread-safe on its own; the watcher guards it with its lock.
    """

    def __init__(self, ignore_hidden: bool = False):
        self.ignore_hidden = ignore_hidden
        self._ignored: Set[Path] = set()
        self._hooks: List[FilterHook] = []

    def ignore(self, path: Path) -> None:
        """Add an absolute path to the ignore list."""
        self._ignored.add(path)

    def is_ignored(self, path: Path) -> bool:
        """
        Check if a path or one of its ancestors is on the ignore list.

        Args:
            path: Absolute path to check

        Returns:
            True if the path is excluded by the ignore list
        """
        if not self._ignored:
            return False
        if path in self._ignored:
            return True
        return any(parent in self._ignored for parent in path.parents)

    def add_hook(self, hook) -> FilterHook:
        """
        Append a hook to the chain.

        Args:
            hook: A FilterHook or a callable taking (path, record)

        Returns:
            The registered FilterHook
        """
        hook = as_filter_hook(hook)
        self._hooks.append(hook)
        return hook

    def excludes(self, path: Path) -> bool:
        """Check the ignore list and hidden-file toggle only."""
        if self.is_ignored(path):
            return True
        return self.ignore_hidden and is_hidden(path)

    def run_hooks(self, path: Path, record: FileRecord) -> FilterResult:
        """
        Run the hook chain for a path.

        Raises:
            FilterHookError: If a hook raises
        """
        for hook in self._hooks:
            try:
                result = hook.test(path, record)
            except Exception as e:
                raise FilterHookError(f"filter hook {hook!r} failed for {path}: {e}", path) from e
            if result is FilterResult.SKIP:
                return FilterResult.SKIP
        return FilterResult.INCLUDE

    def check(self, path: Path, record: FileRecord) -> FilterResult:
        """
        Run every check for a path.

        Args:
            path: Absolute path of the entry
            record: Metadata of the entry

        Returns:
            FilterResult.INCLUDE if the path should be watched

        Raises:
            FilterHookError: If a hook raises
        """
        if self.excludes(path):
            return FilterResult.SKIP
        return self.run_hooks(path, record)
