"""Builds point-in-time listings of the watched roots."""

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Tuple

from .exceptions import ListingError, WatchedFileDeletedError
from .filters import FilterResult, PathFilter
from .models import FileRecord, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """
    Outcome of a full snapshot build.

    Attributes:
        files: The new snapshot
        deleted_roots: Non-recursive roots that no longer exist
    """
    files: Snapshot = field(default_factory=dict)
    deleted_roots: List[WatchedFileDeletedError] = field(default_factory=list)


def _list_children(
    directory: Path,
    path_filter: PathFilter,
    follow_symlinks: bool,
    missing_ok: bool,
) -> List[Tuple[FileRecord, os.stat_result]]:
    """
    List the included direct children of a directory.

    Entries that disappear between the directory read and the stat call are
    skipped. If missing_ok, a directory that vanished or was replaced by a
    file is treated as empty.

    Raises:
        OSError: If the directory cannot be read
        FilterHookError: If a filter hook raises
    """
    children = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                path = Path(entry.path)
                try:
                    st = entry.stat(follow_symlinks=follow_symlinks)
                except FileNotFoundError:
                    continue
                record = FileRecord.from_stat(path, st)
                if path_filter.check(path, record) is FilterResult.SKIP:
                    continue
                children.append((record, st))
    except (FileNotFoundError, NotADirectoryError):
        if not missing_ok:
            raise
        return []
    return children


def list_path(path: Path, path_filter: PathFilter, follow_symlinks: bool = False) -> Snapshot:
    """
    List a path and, if it is a directory, its immediate children.

    Args:
        path: Absolute path to list
        path_filter: Filter deciding which children are included
        follow_symlinks: Whether symlinked children are stat'ed through

    Returns:
        Snapshot of the path and its children

    Raises:
        OSError: If the path cannot be stat'ed or read
        FilterHookError: If a filter hook raises
    """
    record = FileRecord.from_path(path)
    files: Snapshot = {path: record}
    if not record.is_directory:
        return files

    for child, _ in _list_children(path, path_filter, follow_symlinks, missing_ok=False):
        files[child.path] = child
    return files


def list_recursive(path: Path, path_filter: PathFilter, follow_symlinks: bool = False) -> Snapshot:
    """
    List a path and its whole subtree.

    Excluded directories are pruned along with everything below them.
    With follow_symlinks, each physical directory is descended once so
    symlink cycles terminate.

    Args:
        path: Absolute path to list
        path_filter: Filter deciding which entries are included
        follow_symlinks: Whether symbolic links are followed

    Returns:
        Snapshot of the subtree

    Raises:
        OSError: If the root cannot be stat'ed or a directory cannot be read
        FilterHookError: If a filter hook raises
    """
    root_stat = os.stat(path)
    record = FileRecord.from_stat(path, root_stat)
    files: Snapshot = {path: record}
    if not record.is_directory:
        return files

    visited = {(root_stat.st_dev, root_stat.st_ino)}
    pending = [path]

    while pending:
        directory = pending.pop()
        children = _list_children(
            directory,
            path_filter,
            follow_symlinks,
            missing_ok=directory != path,
        )
        for child, st in children:
            files[child.path] = child
            if not stat.S_ISDIR(st.st_mode):
                continue
            if follow_symlinks:
                key = (st.st_dev, st.st_ino)
                if key in visited:
                    continue
                visited.add(key)
            pending.append(child.path)

    return files


def build_snapshot(
    roots: Mapping[Path, bool],
    path_filter: PathFilter,
    follow_symlinks: bool = False,
) -> BuildResult:
    """
    Build a complete snapshot of every watched root.

    A non-recursive root that no longer exists is reported in
    deleted_roots and left out; any other failure abandons the build.

    Args:
        roots: Mapping of root path to recursive flag
        path_filter: Filter applied to every listed entry
        follow_symlinks: Whether symbolic links are followed

    Returns:
        BuildResult with the new snapshot

    Raises:
        ListingError: If a root could not be listed
    """
    result = BuildResult()

    for root, recursive in sorted(roots.items()):
        if path_filter.excludes(root):
            continue

        try:
            if recursive:
                listed = list_recursive(root, path_filter, follow_symlinks)
            else:
                listed = list_path(root, path_filter, follow_symlinks)
        except FileNotFoundError as e:
            if recursive:
                raise ListingError(f"watched root no longer exists: {root}", root) from e
            logger.warning(f"Watched path deleted: {root}")
            result.deleted_roots.append(WatchedFileDeletedError(root))
            continue
        except ListingError:
            raise
        except OSError as e:
            raise ListingError(f"failed to list {root}: {e}", root) from e

        result.files.update(listed)

    logger.debug(f"Built snapshot of {len(result.files)} path(s) from {len(roots)} root(s)")
    return result
