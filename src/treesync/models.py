from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntryKind(str, Enum):
    REGULAR = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    FIFO = "fifo"
    SOCKET = "socket"
    BLOCK = "blockdev"
    CHAR = "chardev"
    NON_EXISTING = "nonexisting"


SPECIAL_KINDS = frozenset(
    {EntryKind.FIFO, EntryKind.SOCKET, EntryKind.BLOCK, EntryKind.CHAR}
)
DEVICE_KINDS = frozenset({EntryKind.BLOCK, EntryKind.CHAR})


@dataclass(frozen=True)
class Entry:
    """One directory child as seen by a single listing scan.

    `kind` is the lstat kind. For symlinks scanned with symlink following,
    `resolved` carries the stat of the link target (None when dangling).
    """

    path: str
    name: str
    kind: EntryKind
    size: int = 0
    mtime_ns: int = 0
    mode: int = 0
    link_target: str | None = None
    device: tuple[int, int] | None = None
    resolved: Entry | None = None


@dataclass(frozen=True)
class SrcOnly:
    src: Entry
    dst_dir: str


@dataclass(frozen=True)
class DstOnly:
    src_dir: str
    dst: Entry


@dataclass(frozen=True)
class Match:
    src: Entry
    dst: Entry


@dataclass(frozen=True)
class Mismatch:
    src: Entry
    dst: Entry


@dataclass(frozen=True)
class TypeMismatch:
    src: Entry
    dst: Entry


@dataclass(frozen=True)
class IgnoredDir:
    entry: Entry


@dataclass(frozen=True)
class IgnoredFile:
    entry: Entry


@dataclass(frozen=True)
class NameCollision:
    key: str
    kept: Entry
    dropped: Entry


@dataclass(frozen=True)
class DirsProgress:
    src_dir: str
    dst_dir: str


@dataclass(frozen=True)
class FilesProgress:
    src: Entry
    dst: Entry


type TreeEvent = (
    SrcOnly
    | DstOnly
    | Match
    | Mismatch
    | TypeMismatch
    | IgnoredDir
    | IgnoredFile
    | NameCollision
    | DirsProgress
    | FilesProgress
)
