from __future__ import annotations

from typing import BinaryIO, Protocol

from .classify import kind_from_mode
from .models import Entry, EntryKind


class FileSystem(Protocol):
    """Filesystem primitives consumed by the comparator and the tree operations.

    Every call is synchronous. Failures surface as `OSError`; callers that
    mutate wrap them into `FilesystemMutationError`. `mtime_resolution_ns` is
    the granularity of the mtimes the provider reports and stores.
    """

    mtime_resolution_ns: int

    def join(self, base: str, name: str) -> str: ...

    def parent(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...

    def stat(self, path: str, follow_symlinks: bool = False) -> Entry: ...

    def scan_dir(self, path: str, follow_symlinks: bool = False) -> list[Entry]: ...

    def read_bytes(self, path: str) -> bytes: ...

    def open_read(self, path: str) -> BinaryIO: ...

    def open_write(self, path: str) -> BinaryIO: ...

    def makedirs(self, path: str) -> None: ...

    def symlink(self, target: str, path: str) -> None: ...

    def make_special(self, path: str, entry: Entry) -> None: ...

    def remove(self, path: str) -> None: ...

    def set_mtime(
        self, path: str, mtime_ns: int, follow_symlinks: bool = True
    ) -> None: ...

    def chmod(self, path: str, mode: int) -> None: ...


def build_entry(
    path: str,
    name: str,
    st_mode: int,
    *,
    size: int = 0,
    mtime_ns: int = 0,
    device: tuple[int, int] | None = None,
    link_target: str | None = None,
    resolved: Entry | None = None,
) -> Entry:
    kind = kind_from_mode(st_mode)
    return Entry(
        path=path,
        name=name,
        kind=kind,
        size=size if kind == EntryKind.REGULAR else 0,
        mtime_ns=mtime_ns,
        mode=st_mode & 0o7777,
        link_target=link_target,
        device=device if kind in (EntryKind.BLOCK, EntryKind.CHAR) else None,
        resolved=resolved,
    )


def vanished_entry(path: str, name: str) -> Entry:
    return Entry(path=path, name=name, kind=EntryKind.NON_EXISTING)
