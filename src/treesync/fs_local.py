from __future__ import annotations

import errno
import os
import stat
from pathlib import Path
from typing import BinaryIO

from .fs import build_entry, vanished_entry
from .models import Entry, EntryKind


def _device(st: os.stat_result) -> tuple[int, int]:
    return (os.major(st.st_rdev), os.minor(st.st_rdev))


class LocalFileSystem:
    mtime_resolution_ns = 1

    def join(self, base: str, name: str) -> str:
        return os.path.join(base, name)

    def parent(self, path: str) -> str:
        return os.path.dirname(path.rstrip(os.sep)) or os.sep

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def _entry_from_stat(
        self,
        path: str,
        name: str,
        st: os.stat_result,
        *,
        link_target: str | None = None,
        resolved: Entry | None = None,
    ) -> Entry:
        return build_entry(
            path,
            name,
            st.st_mode,
            size=st.st_size,
            mtime_ns=st.st_mtime_ns,
            device=_device(st),
            link_target=link_target,
            resolved=resolved,
        )

    def stat(self, path: str, follow_symlinks: bool = False) -> Entry:
        name = os.path.basename(path.rstrip(os.sep)) or path
        st = os.lstat(path)
        if not stat.S_ISLNK(st.st_mode):
            return self._entry_from_stat(path, name, st)

        link_target = os.readlink(path)
        resolved = None
        if follow_symlinks:
            try:
                resolved = self._entry_from_stat(path, name, os.stat(path))
            except OSError:
                # Dangling link or symlink loop: nothing to dereference.
                resolved = None
        return self._entry_from_stat(
            path, name, st, link_target=link_target, resolved=resolved
        )

    def scan_dir(self, path: str, follow_symlinks: bool = False) -> list[Entry]:
        entries: list[Entry] = []
        with os.scandir(path) as it:
            names = [item.name for item in it]
        for name in names:
            child = os.path.join(path, name)
            try:
                entries.append(self.stat(child, follow_symlinks))
            except FileNotFoundError:
                entries.append(vanished_entry(child, name))
        return entries

    def read_bytes(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def open_read(self, path: str) -> BinaryIO:
        return open(path, "rb")

    def open_write(self, path: str) -> BinaryIO:
        return open(path, "wb")

    def makedirs(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def symlink(self, target: str, path: str) -> None:
        os.symlink(target, path)

    def make_special(self, path: str, entry: Entry) -> None:
        if entry.kind == EntryKind.FIFO:
            os.mkfifo(path, entry.mode)
            return
        if entry.kind in (EntryKind.BLOCK, EntryKind.CHAR) and entry.device:
            type_bits = stat.S_IFBLK if entry.kind == EntryKind.BLOCK else stat.S_IFCHR
            os.mknod(path, entry.mode | type_bits, os.makedev(*entry.device))
            return
        raise OSError(errno.EOPNOTSUPP, f"cannot copy {entry.kind.value}", path)

    def remove(self, path: str) -> None:
        if stat.S_ISDIR(os.lstat(path).st_mode):
            os.rmdir(path)
        else:
            os.unlink(path)

    def set_mtime(self, path: str, mtime_ns: int, follow_symlinks: bool = True) -> None:
        st = os.stat(path) if follow_symlinks else os.lstat(path)
        os.utime(path, ns=(st.st_atime_ns, mtime_ns), follow_symlinks=follow_symlinks)

    def chmod(self, path: str, mode: int) -> None:
        os.chmod(path, mode)
