from __future__ import annotations

import errno
import posixpath
import stat
from typing import BinaryIO

import paramiko

from .fs import build_entry, vanished_entry
from .models import Entry

type StatLike = paramiko.SFTPAttributes


def _mtime_ns(st: StatLike) -> int:
    return int(float(getattr(st, "st_mtime", 0) or 0) * 1_000_000_000)


class SftpFileSystem:
    """Filesystem provider backed by an open SFTP session.

    SFTP carries no device numbers, so block/char devices on a remote side
    compare by kind only. Mtimes travel in whole seconds.
    """

    mtime_resolution_ns = 1_000_000_000

    def __init__(self, sftp: paramiko.SFTPClient) -> None:
        self.sftp = sftp

    def join(self, base: str, name: str) -> str:
        return posixpath.join(base, name)

    def parent(self, path: str) -> str:
        return posixpath.dirname(path.rstrip("/")) or "/"

    def exists(self, path: str) -> bool:
        try:
            self.sftp.lstat(path)
        except FileNotFoundError:
            return False
        return True

    def _entry_from_attrs(
        self,
        path: str,
        name: str,
        st: StatLike,
        *,
        link_target: str | None = None,
        resolved: Entry | None = None,
    ) -> Entry:
        return build_entry(
            path,
            name,
            int(st.st_mode or 0),
            size=int(st.st_size or 0),
            mtime_ns=_mtime_ns(st),
            link_target=link_target,
            resolved=resolved,
        )

    def _complete(
        self, path: str, name: str, st: StatLike, follow_symlinks: bool
    ) -> Entry:
        if not stat.S_ISLNK(int(st.st_mode or 0)):
            return self._entry_from_attrs(path, name, st)
        link_target = self.sftp.readlink(path)
        resolved = None
        if follow_symlinks:
            try:
                resolved = self._entry_from_attrs(path, name, self.sftp.stat(path))
            except OSError:
                resolved = None
        return self._entry_from_attrs(
            path, name, st, link_target=link_target, resolved=resolved
        )

    def stat(self, path: str, follow_symlinks: bool = False) -> Entry:
        name = posixpath.basename(path.rstrip("/")) or path
        return self._complete(path, name, self.sftp.lstat(path), follow_symlinks)

    def scan_dir(self, path: str, follow_symlinks: bool = False) -> list[Entry]:
        entries: list[Entry] = []
        for attrs in self.sftp.listdir_attr(path):
            name = attrs.filename
            child = posixpath.join(path, name)
            try:
                entries.append(self._complete(child, name, attrs, follow_symlinks))
            except FileNotFoundError:
                entries.append(vanished_entry(child, name))
        return entries

    def read_bytes(self, path: str) -> bytes:
        with self.sftp.open(path, "rb") as handle:
            handle.prefetch()
            return handle.read()

    def open_read(self, path: str) -> BinaryIO:
        handle = self.sftp.open(path, "rb")
        handle.prefetch()
        return handle

    def open_write(self, path: str) -> BinaryIO:
        handle = self.sftp.open(path, "wb")
        handle.set_pipelined(True)
        return handle

    def makedirs(self, path: str) -> None:
        parts = []
        current = path.rstrip("/")
        while current and current not in {"/", "."}:
            parts.append(current)
            current = posixpath.dirname(current)
        for segment in reversed(parts):
            try:
                self.sftp.stat(segment)
            except FileNotFoundError:
                self.sftp.mkdir(segment)

    def symlink(self, target: str, path: str) -> None:
        self.sftp.symlink(target, path)

    def make_special(self, path: str, entry: Entry) -> None:
        raise OSError(
            errno.EOPNOTSUPP, f"cannot create {entry.kind.value} over SFTP", path
        )

    def remove(self, path: str) -> None:
        if stat.S_ISDIR(int(self.sftp.lstat(path).st_mode or 0)):
            self.sftp.rmdir(path)
        else:
            self.sftp.remove(path)

    def set_mtime(self, path: str, mtime_ns: int, follow_symlinks: bool = True) -> None:
        # SFTP utime always follows links and has second resolution.
        st = self.sftp.stat(path)
        self.sftp.utime(path, (int(st.st_atime or 0), mtime_ns // 1_000_000_000))

    def chmod(self, path: str, mode: int) -> None:
        self.sftp.chmod(path, mode)
