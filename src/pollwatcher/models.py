"""Data models for the polling watcher package."""

import os
import stat
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional


class Op(Enum):
    """Kinds of change the watcher reports."""
    CREATE = "CREATE"
    WRITE = "WRITE"
    REMOVE = "REMOVE"
    RENAME = "RENAME"
    CHMOD = "CHMOD"
    MOVE = "MOVE"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "Op":
        """
        Look up an operation by name, case-insensitively.

        Args:
            name: Operation name such as "write" or "RENAME"

        Returns:
            The matching Op

        Raises:
            ValueError: If the name is not a known operation
        """
        try:
            return cls(name.strip().upper())
        except ValueError:
            known = ", ".join(op.value for op in cls)
            raise ValueError(f"unknown operation {name!r} (expected one of {known})") from None


# Sort rank used to order events that share a path.
OP_ORDER = {op: index for index, op in enumerate(Op)}


@dataclass(frozen=True)
class FileRecord:
    """
    Metadata of one path captured at a poll tick.

    Attributes:
        path: Absolute path of the entry
        name: Base name of the entry
        size: Size in bytes
        mode: Full st_mode (file type and permission bits)
        mtime_ns: Modification time in nanoseconds
        is_directory: Whether the entry is a directory
    """
    path: Path
    name: str
    size: int
    mode: int
    mtime_ns: int
    is_directory: bool = False

    @classmethod
    def from_stat(cls, path: Path, st: os.stat_result) -> "FileRecord":
        """Create a record from an existing stat result."""
        return cls(
            path=path,
            name=path.name or str(path),
            size=st.st_size,
            mode=st.st_mode,
            mtime_ns=st.st_mtime_ns,
            is_directory=stat.S_ISDIR(st.st_mode),
        )

    @classmethod
    def from_path(cls, path: Path, follow_symlinks: bool = True) -> "FileRecord":
        """
        Stat a path and create a record for it.

        Raises:
            OSError: If the path cannot be stat'ed
        """
        st = os.stat(path, follow_symlinks=follow_symlinks)
        return cls.from_stat(path, st)

    @property
    def permissions(self) -> int:
        """Permission bits of the mode."""
        return stat.S_IMODE(self.mode)

    @property
    def mtime(self) -> float:
        """Modification time in seconds."""
        return self.mtime_ns / 1e9

    def metadata_equal(self, other: "FileRecord") -> bool:
        """Check whether size, mode and modification time all match."""
        return (
            self.size == other.size
            and self.mode == other.mode
            and self.mtime_ns == other.mtime_ns
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "name": self.name,
            "size": self.size,
            "mode": self.mode,
            "mtime_ns": self.mtime_ns,
            "is_directory": self.is_directory,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FileRecord":
        """Create from dictionary."""
        return cls(
            path=Path(data["path"]),
            name=data["name"],
            size=data.get("size", 0),
            mode=data.get("mode", 0),
            mtime_ns=data.get("mtime_ns", 0),
            is_directory=data.get("is_directory", False),
        )


Snapshot = Dict[Path, FileRecord]


def triggered_record() -> FileRecord:
    """Placeholder record used for events injected with trigger_event."""
    return FileRecord(
        path=Path("-"),
        name="triggered event",
        size=0,
        mode=0,
        mtime_ns=time.time_ns(),
    )


@dataclass(frozen=True)
class Event:
    """
    A change detected between two snapshots.

    Attributes:
        op: The kind of change
        path: Path the change applies to (the new path for RENAME/MOVE)
        record: Metadata of the entry (the old record for REMOVE)
        old_path: For RENAME/MOVE events, the previous path
    """
    op: Op
    path: Path
    record: FileRecord
    old_path: Optional[Path] = None

    @property
    def is_directory(self) -> bool:
        return self.record.is_directory

    @property
    def name(self) -> str:
        return self.record.name

    def __str__(self) -> str:
        kind = "DIRECTORY" if self.record.is_directory else "FILE"
        if self.old_path is not None:
            location = f"{self.old_path} -> {self.path}"
        else:
            location = str(self.path)
        return f'{kind} "{self.record.name}" {self.op} [{location}]'

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "op": self.op.value,
            "path": str(self.path),
            "old_path": str(self.old_path) if self.old_path else None,
            "record": self.record.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """Create from dictionary."""
        return cls(
            op=Op(data["op"]),
            path=Path(data["path"]),
            record=FileRecord.from_dict(data["record"]),
            old_path=Path(data["old_path"]) if data.get("old_path") else None,
        )
