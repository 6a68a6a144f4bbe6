from __future__ import annotations

from .classify import classify, effective
from .config import SyncConfig
from .excludes import is_excluded_name
from .fs import FileSystem
from .handlers import TreeEventHandler
from .models import (
    DirsProgress,
    DstOnly,
    Entry,
    EntryKind,
    FilesProgress,
    IgnoredDir,
    IgnoredFile,
    Match,
    Mismatch,
    NameCollision,
    SrcOnly,
    TypeMismatch,
)
from .text_utils import filename_key


def contents_equal(
    src_fs: FileSystem, src: Entry, dst_fs: FileSystem, dst: Entry, config: SyncConfig
) -> bool:
    """Regular-file equality: same size, then same bytes unless content is ignored."""
    follow = config.follow_symlinks
    if effective(src, follow).size != effective(dst, follow).size:
        return False
    if config.ignore_content:
        return True
    return src_fs.read_bytes(src.path) == dst_fs.read_bytes(dst.path)


class TreeDiff:
    """Merge-join comparison of two directory trees.

    Both directories are listed once, keyed by (optionally normalized) name and
    walked in ascending key order. Every name produces exactly one event on
    `handler`; equal subdirectories are descended into depth-first.
    """

    def __init__(
        self,
        config: SyncConfig,
        src_fs: FileSystem,
        dst_fs: FileSystem,
        handler: TreeEventHandler,
    ) -> None:
        self.config = config
        self.src_fs = src_fs
        self.dst_fs = dst_fs
        self.handler = handler

    def process(self) -> bool:
        """Compare the configured roots. Returns True iff no difference was found."""
        return self.process_dir(self.config.src_root, self.config.dst_root)

    def _keyed_map(
        self, fs: FileSystem, path: str, *, src: bool
    ) -> tuple[dict[str, Entry], bool]:
        entries: dict[str, Entry] = {}
        collided = False
        # Raw-name order, so a collision always keeps the same twin.
        listing = fs.scan_dir(path, self.config.follow_symlinks)
        for entry in sorted(listing, key=lambda item: item.name):
            if is_excluded_name(entry.name, self.config, src=src):
                continue
            key = filename_key(entry.name, self.config.normalize_filenames)
            kept = entries.get(key)
            if kept is not None:
                self.handler.handle(NameCollision(key=key, kept=kept, dropped=entry))
                collided = True
                continue
            entries[key] = entry
        return entries, collided

    def process_dir(self, src_dir: str, dst_dir: str) -> bool:
        self.handler.handle(DirsProgress(src_dir=src_dir, dst_dir=dst_dir))

        src_map, src_collided = self._keyed_map(self.src_fs, src_dir, src=True)
        dst_map: dict[str, Entry] = {}
        dst_collided = False
        if self.dst_fs.exists(dst_dir):
            dst_map, dst_collided = self._keyed_map(self.dst_fs, dst_dir, src=False)

        equal = not (src_collided or dst_collided)
        src_keys = sorted(src_map)
        dst_keys = sorted(dst_map)
        i = j = 0
        while i < len(src_keys) or j < len(dst_keys):
            if j == len(dst_keys) or (i < len(src_keys) and src_keys[i] < dst_keys[j]):
                self.handler.handle(SrcOnly(src=src_map[src_keys[i]], dst_dir=dst_dir))
                equal = False
                i += 1
            elif i == len(src_keys) or src_keys[i] > dst_keys[j]:
                self.handler.handle(DstOnly(src_dir=src_dir, dst=dst_map[dst_keys[j]]))
                equal = False
                j += 1
            else:
                if not self._compare_pair(src_map[src_keys[i]], dst_map[dst_keys[j]]):
                    equal = False
                i += 1
                j += 1
        return equal

    def _compare_pair(self, src: Entry, dst: Entry) -> bool:
        follow = self.config.follow_symlinks
        kind = classify(src, follow)
        if kind != classify(dst, follow):
            self.handler.handle(TypeMismatch(src=src, dst=dst))
            return False

        if kind != EntryKind.DIR:
            self.handler.handle(FilesProgress(src=src, dst=dst))

        if kind == EntryKind.DIR:
            if self.config.ignore_dirs:
                self._ignore(IgnoredDir, src, dst)
                return True
            return self.process_dir(src.path, dst.path)

        if kind == EntryKind.REGULAR:
            same = contents_equal(self.src_fs, src, self.dst_fs, dst, self.config)
        elif kind == EntryKind.SYMLINK:
            same = src.link_target == dst.link_target
        elif kind in (EntryKind.FIFO, EntryKind.SOCKET):
            if self.config.ignore_special:
                self._ignore(IgnoredFile, src, dst)
                return True
            same = True
        elif kind in (EntryKind.BLOCK, EntryKind.CHAR):
            if self.config.ignore_special:
                self._ignore(IgnoredFile, src, dst)
                return True
            same = effective(src, follow).device == effective(dst, follow).device
        else:
            # Vanished between listing and stat.
            self._ignore(IgnoredFile, src, dst)
            return True

        if same:
            self.handler.handle(Match(src=src, dst=dst))
            return True
        self.handler.handle(Mismatch(src=src, dst=dst))
        return False

    def _ignore(self, event_type, src: Entry, dst: Entry) -> None:
        self.handler.handle(event_type(src))
        self.handler.handle(event_type(dst))
