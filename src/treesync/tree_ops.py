from __future__ import annotations

import shutil

from .classify import classify, effective
from .config import COPY_CHUNK_SIZE, SyncConfig
from .errors import FilesystemMutationError
from .excludes import is_excluded_name
from .fs import FileSystem
from .models import Entry, EntryKind, SPECIAL_KINDS
from .reporter import Reporter

type _OverlayKey = tuple[int, str]


class DryRunOverlay:
    """Simulated destination state for dummy mode.

    Records what dummy-mode mutations would have created or removed, so that
    later existence checks answer as they would in a real run.
    """

    def __init__(self) -> None:
        self._created: dict[_OverlayKey, EntryKind] = {}
        self._removed: set[_OverlayKey] = set()

    def _is_removed(self, fs: FileSystem, path: str) -> bool:
        current = path
        while True:
            if (id(fs), current) in self._removed:
                return True
            parent = fs.parent(current)
            if parent == current:
                return False
            current = parent

    def kind(self, fs: FileSystem, path: str) -> EntryKind | None:
        key = (id(fs), path)
        if key in self._created:
            return self._created[key]
        if self._is_removed(fs, path) or not fs.exists(path):
            return None
        try:
            return fs.stat(path).kind
        except FileNotFoundError:
            return None

    def children(self, fs: FileSystem, path: str) -> list[Entry]:
        entries: dict[str, Entry] = {}
        if not self._is_removed(fs, path) and fs.exists(path):
            for entry in fs.scan_dir(path):
                if not self._is_removed(fs, entry.path):
                    entries[entry.name] = entry
        for (fs_id, created_path), kind in self._created.items():
            if fs_id != id(fs) or fs.parent(created_path) != path:
                continue
            name = created_path[len(fs.join(path, "")) :]
            entries[name] = Entry(path=created_path, name=name, kind=kind)
        return [entries[name] for name in sorted(entries)]

    def created(self, fs: FileSystem, path: str, kind: EntryKind) -> None:
        self._created[(id(fs), path)] = kind

    def removed(self, fs: FileSystem, path: str) -> None:
        key = (id(fs), path)
        prefix = fs.join(path, "")
        for fs_id, created_path in list(self._created):
            if fs_id == key[0] and (
                created_path == path or created_path.startswith(prefix)
            ):
                del self._created[(fs_id, created_path)]
        self._removed.add(key)


class TreeOps:
    """Recursive mkdir/copy/delete primitives with verbose tracing.

    Every mutation is skipped in dummy mode, but the decision and the trace
    line are produced exactly as in a real run.
    """

    def __init__(self, config: SyncConfig, reporter: Reporter) -> None:
        self.config = config
        self.reporter = reporter
        self.overlay = DryRunOverlay()

    @property
    def dummy(self) -> bool:
        return self.config.dummy_mode

    def _mutate(self, action: str, path: str, func, *args) -> None:
        try:
            func(*args)
        except OSError as exc:
            detail = exc.strerror or str(exc)
            raise FilesystemMutationError(action, path, detail) from exc

    def mkdirs(self, fs: FileSystem, path: str, trace_prefix: str) -> None:
        existing = self.overlay.kind(fs, path)
        if existing is None:
            self.reporter.action(f"{trace_prefix} {path}")
            self.reporter.counters.created_dirs += 1
            if self.dummy:
                self.overlay.created(fs, path, EntryKind.DIR)
            else:
                self._mutate("Cannot create dir", path, fs.makedirs, path)
            return
        if existing != EntryKind.DIR:
            raise FilesystemMutationError(
                "Cannot create dir", path, f"existing {existing.value} is in the way"
            )

    def remove_recursive(self, fs: FileSystem, path: str, trace_prefix: str) -> None:
        """Remove `path` and everything below it, children before parent."""
        kind = self.overlay.kind(fs, path)
        if kind is None:
            return
        if kind == EntryKind.DIR:
            for child in self.overlay.children(fs, path):
                self.remove_recursive(fs, child.path, trace_prefix)

        self.reporter.action(f"{trace_prefix} {kind.value} {path}")
        self.reporter.counters.deleted += 1
        if self.dummy:
            self.overlay.removed(fs, path)
        else:
            self._mutate("Cannot remove", path, fs.remove, path)

    def copy_recursive(
        self,
        from_fs: FileSystem,
        src: Entry,
        to_fs: FileSystem,
        dst_dir: str,
        trace_prefix: str,
        *,
        overwrite: bool = False,
        src_side: bool = True,
        dst_name: str | None = None,
    ) -> None:
        """Copy `src` into `dst_dir`, under `dst_name` or its own name.

        With `overwrite`, an existing destination is replaced. It is deleted
        first unless both sides are plain regular files, since a file cannot
        simply be written over a directory, symlink or special file.
        """
        if is_excluded_name(src.name, self.config, src=src_side):
            return
        follow = self.config.follow_symlinks
        kind = classify(src, follow)
        if kind == EntryKind.NON_EXISTING:
            return

        dst = to_fs.join(dst_dir, dst_name or src.name)
        if overwrite:
            existing = self.overlay.kind(to_fs, dst)
            if existing is not None and (
                kind != EntryKind.REGULAR or existing != EntryKind.REGULAR
            ):
                self.remove_recursive(to_fs, dst, f"{trace_prefix}: Deleting")

        if kind == EntryKind.DIR:
            self._copy_dir(from_fs, src, to_fs, dst, trace_prefix, src_side=src_side)
            return

        if not overwrite and self.overlay.kind(to_fs, dst) is not None:
            raise FilesystemMutationError("Cannot copy", dst, "destination exists")

        self.reporter.action(f"{trace_prefix} {kind.value} {src.path} -> {dst}")
        self.reporter.counters.copied += 1
        if self.dummy:
            self.overlay.created(to_fs, dst, kind)
            return
        self._copy_leaf(from_fs, src, to_fs, dst, kind)

    def _copy_dir(
        self,
        from_fs: FileSystem,
        src: Entry,
        to_fs: FileSystem,
        dst: str,
        trace_prefix: str,
        *,
        src_side: bool,
    ) -> None:
        created = self.overlay.kind(to_fs, dst) is None
        self.mkdirs(to_fs, dst, f"{trace_prefix}: Creating dir")
        try:
            children = from_fs.scan_dir(src.path, self.config.follow_symlinks)
        except OSError as exc:
            raise FilesystemMutationError(
                "Cannot read dir", src.path, exc.strerror or str(exc)
            ) from exc
        for child in sorted(children, key=lambda item: item.name):
            self.copy_recursive(
                from_fs,
                child,
                to_fs,
                dst,
                trace_prefix,
                overwrite=True,
                src_side=src_side,
            )
        if self.dummy or not created:
            return
        source = effective(src, self.config.follow_symlinks)
        self._mutate("Cannot chmod", dst, to_fs.chmod, dst, source.mode)
        if self.config.preserve:
            self._mutate("Cannot set mtime", dst, to_fs.set_mtime, dst, source.mtime_ns)

    def _copy_leaf(
        self,
        from_fs: FileSystem,
        src: Entry,
        to_fs: FileSystem,
        dst: str,
        kind: EntryKind,
    ) -> None:
        source = effective(src, self.config.follow_symlinks)
        if kind == EntryKind.SYMLINK:
            assert src.link_target is not None
            self._mutate("Cannot copy", dst, to_fs.symlink, src.link_target, dst)
            return
        if kind in SPECIAL_KINDS:
            self._mutate("Cannot copy", dst, to_fs.make_special, dst, source)
            return

        self._mutate("Cannot copy", dst, self._stream, from_fs, src.path, to_fs, dst)
        self._mutate("Cannot chmod", dst, to_fs.chmod, dst, source.mode)
        if self.config.preserve:
            self._mutate("Cannot set mtime", dst, to_fs.set_mtime, dst, source.mtime_ns)

    @staticmethod
    def _stream(
        from_fs: FileSystem, src_path: str, to_fs: FileSystem, dst: str
    ) -> None:
        with from_fs.open_read(src_path) as reader, to_fs.open_write(dst) as writer:
            shutil.copyfileobj(reader, writer, COPY_CHUNK_SIZE)

    def set_mtime(self, fs: FileSystem, src: Entry, dst: Entry) -> None:
        follow = self.config.follow_symlinks
        source = effective(src, follow)
        self.reporter.action(
            f"Updating mtime {classify(src, follow).value} {src.path} -> {dst.path}"
        )
        self.reporter.counters.mtime_updates += 1
        if self.dummy:
            return
        self._mutate(
            "Cannot set mtime",
            dst.path,
            fs.set_mtime,
            dst.path,
            source.mtime_ns,
            follow,
        )
