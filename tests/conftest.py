"""Shared fixtures for the test suite."""

import os
from pathlib import Path

import pytest

from pollwatcher.models import FileRecord


def make_record(
    path,
    size: int = 5,
    mode: int = 0o100644,
    mtime_ns: int = 1_000_000_000,
    is_directory: bool = False,
) -> FileRecord:
    """Build a FileRecord without touching the filesystem."""
    path = Path(path)
    if is_directory and mode == 0o100644:
        mode = 0o040755
    return FileRecord(
        path=path,
        name=path.name,
        size=size,
        mode=mode,
        mtime_ns=mtime_ns,
        is_directory=is_directory,
    )


def write_file(path: Path, content: str = "hello", mtime: float = 1_600_000_000.0) -> Path:
    """Write a file and pin its modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def tree(tmp_path):
    """
    A small directory tree:

        root/
            a.txt
            .hidden
            sub/
                b.txt
                deep/
                    c.txt
    """
    root = tmp_path / "root"
    write_file(root / "a.txt")
    write_file(root / ".hidden")
    write_file(root / "sub" / "b.txt")
    write_file(root / "sub" / "deep" / "c.txt")
    return root
