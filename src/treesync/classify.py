from __future__ import annotations

import stat

from .models import Entry, EntryKind


def kind_from_mode(st_mode: int) -> EntryKind:
    if stat.S_ISREG(st_mode):
        return EntryKind.REGULAR
    if stat.S_ISDIR(st_mode):
        return EntryKind.DIR
    if stat.S_ISLNK(st_mode):
        return EntryKind.SYMLINK
    if stat.S_ISFIFO(st_mode):
        return EntryKind.FIFO
    if stat.S_ISSOCK(st_mode):
        return EntryKind.SOCKET
    if stat.S_ISBLK(st_mode):
        return EntryKind.BLOCK
    if stat.S_ISCHR(st_mode):
        return EntryKind.CHAR
    return EntryKind.NON_EXISTING


def effective(entry: Entry, follow_symlinks: bool) -> Entry:
    """Return the entry whose size, mtime and device numbers count."""
    if (
        follow_symlinks
        and entry.kind == EntryKind.SYMLINK
        and entry.resolved is not None
    ):
        return entry.resolved
    return entry


def classify(entry: Entry, follow_symlinks: bool) -> EntryKind:
    # A dangling symlink has nothing to dereference and stays a symlink.
    return effective(entry, follow_symlinks).kind
