from __future__ import annotations

from .classify import classify, effective
from .config import VERBOSE_DIRS, VERBOSE_FILES, SyncConfig
from .excludes import is_excluded_name
from .fs import FileSystem
from .fs_local import LocalFileSystem
from .handlers import TreeEventHandler
from .models import (
    DEVICE_KINDS,
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
from .reporter import STYLE_DELETE, STYLE_INSERT, Reporter
from .tree_ops import TreeOps

STYLE_WARNING = "yellow"


def _format_device(entry: Entry) -> str:
    if entry.device is None:
        return "?"
    return f"{entry.device[0]}:{entry.device[1]}"


class SyncActions(TreeEventHandler):
    """Turns classification events into reports, copies and deletions.

    The diff/new/delete/update modes combine additively. `copy-ins`/`copy-del`
    exports go to `export_fs` (the local filesystem by default), never into the
    destination tree.
    """

    def __init__(
        self,
        config: SyncConfig,
        src_fs: FileSystem,
        dst_fs: FileSystem,
        reporter: Reporter,
        *,
        ops: TreeOps | None = None,
        export_fs: FileSystem | None = None,
    ) -> None:
        self.config = config
        self.src_fs = src_fs
        self.dst_fs = dst_fs
        self.reporter = reporter
        self.ops = ops or TreeOps(config, reporter)
        self.export_fs = export_fs or LocalFileSystem()

    def _kind(self, entry: Entry) -> str:
        return classify(entry, self.config.follow_symlinks).value

    def _newer(self, src: Entry, dst: Entry) -> bool:
        # Compare at the coarser side's granularity: an SFTP side only keeps
        # whole seconds, so sub-second local digits are not "newer".
        follow = self.config.follow_symlinks
        step = max(
            self.src_fs.mtime_resolution_ns, self.dst_fs.mtime_resolution_ns
        )
        src_mtime = effective(src, follow).mtime_ns // step
        return src_mtime > effective(dst, follow).mtime_ns // step

    def _print_entry(
        self, fs: FileSystem, entry: Entry, prefix: str, style: str, *, src: bool
    ) -> None:
        if is_excluded_name(entry.name, self.config, src=src):
            return
        self.reporter.line(f"{prefix}{self._kind(entry)} {entry.path}", style)
        if not self.config.show_subtree:
            return
        if classify(entry, self.config.follow_symlinks) != EntryKind.DIR:
            return
        children = fs.scan_dir(entry.path, self.config.follow_symlinks)
        for child in sorted(children, key=lambda item: item.name):
            self._print_entry(fs, child, prefix, style, src=src)

    def _export(
        self, fs: FileSystem, entry: Entry, export_dir: str, label: str, *, src: bool
    ) -> None:
        self.ops.mkdirs(
            self.export_fs, export_dir, f"Creating --{label} destination dir"
        )
        self.ops.copy_recursive(
            fs,
            entry,
            self.export_fs,
            export_dir,
            f"Copying (--{label})",
            overwrite=True,
            src_side=src,
        )

    def _replace(self, src: Entry, dst: Entry, trace_prefix: str) -> None:
        self.ops.copy_recursive(
            self.src_fs,
            src,
            self.dst_fs,
            self.dst_fs.parent(dst.path),
            trace_prefix,
            overwrite=True,
            dst_name=dst.name,
        )

    def src_only(self, event: SrcOnly) -> None:
        self.reporter.counters.differences += 1
        if self.config.diff:
            self._print_entry(self.src_fs, event.src, "+ ", STYLE_INSERT, src=True)
            if self.config.copy_ins:
                self._export(
                    self.src_fs, event.src, self.config.copy_ins, "copy-ins", src=True
                )
        if self.config.new:
            self.ops.mkdirs(self.dst_fs, event.dst_dir, "Copying (new): Creating dir")
            self.ops.copy_recursive(
                self.src_fs, event.src, self.dst_fs, event.dst_dir, "Copying (new)"
            )

    def dst_only(self, event: DstOnly) -> None:
        self.reporter.counters.differences += 1
        if self.config.diff:
            self._print_entry(self.dst_fs, event.dst, "- ", STYLE_DELETE, src=False)
            if self.config.copy_del:
                self._export(
                    self.dst_fs, event.dst, self.config.copy_del, "copy-del", src=False
                )
        if self.config.delete:
            self.ops.remove_recursive(self.dst_fs, event.dst.path, "Deleting")

    def match(self, event: Match) -> None:
        src, dst = event.src, event.dst
        if self.config.diff and self.config.show_matches:
            self.reporter.line(
                f"= {self._kind(src)} {src.path} and {self._kind(dst)} {dst.path}"
            )
        if (
            self.config.update
            and self.config.preserve
            and not self.config.ignore_mtime
            and self._newer(src, dst)
        ):
            self.ops.set_mtime(self.dst_fs, src, dst)

    def _mismatch_details(self, src: Entry, dst: Entry) -> tuple[str, str]:
        follow = self.config.follow_symlinks
        kind = classify(src, follow)
        if kind == EntryKind.SYMLINK:
            return f' -> "{src.link_target}"', f' -> "{dst.link_target}"'
        if kind in DEVICE_KINDS:
            src_dev = _format_device(effective(src, follow))
            dst_dev = _format_device(effective(dst, follow))
            return "", f" (device {src_dev} != {dst_dev})"
        src_size = effective(src, follow).size
        dst_size = effective(dst, follow).size
        if src_size != dst_size:
            return "", f" (size {src_size} != {dst_size})"
        return "", " (same size, different content)"

    def mismatch(self, event: Mismatch) -> None:
        src, dst = event.src, event.dst
        self.reporter.counters.differences += 1
        if self.config.diff:
            src_info, dst_info = self._mismatch_details(src, dst)
            self.reporter.line(
                f"Diff: {self._kind(src)} {src.path}{src_info} "
                f"and {self._kind(dst)} {dst.path}{dst_info}"
            )
        # Untrusted mtimes: the source always wins. Otherwise a newer
        # destination is left alone.
        if self.config.update and (self.config.ignore_mtime or self._newer(src, dst)):
            self._replace(src, dst, "Copying (update)")

    def type_mismatch(self, event: TypeMismatch) -> None:
        src, dst = event.src, event.dst
        self.reporter.counters.differences += 1
        if self.config.diff:
            self.reporter.line(
                f"Type mismatch: {self._kind(src)} {src.path} "
                f"and {self._kind(dst)} {dst.path}"
            )
        if self.config.update:
            self._replace(src, dst, "Copying (type mismatch)")

    def ignored_dir(self, event: IgnoredDir) -> None:
        self.reporter.counters.ignored += 1
        if self.config.diff or self.config.verbose:
            self.reporter.line(f"Ignoring dir {event.entry.path}")

    def ignored_file(self, event: IgnoredFile) -> None:
        self.reporter.counters.ignored += 1
        if self.config.diff or self.config.verbose:
            self.reporter.line(f"Ignoring {self._kind(event.entry)} {event.entry.path}")

    def name_collision(self, event: NameCollision) -> None:
        self.reporter.counters.differences += 1
        kept, dropped = event.kept, event.dropped
        self.reporter.line(
            f"Name collision: {self._kind(kept)} {kept.path} "
            f"and {self._kind(dropped)} {dropped.path} "
            "(same key after normalization, ignoring the latter)",
            STYLE_WARNING,
        )

    def progress_dirs(self, event: DirsProgress) -> None:
        self.reporter.trace(
            VERBOSE_DIRS, f"Processing dirs {event.src_dir} and {event.dst_dir}"
        )

    def progress_files(self, event: FilesProgress) -> None:
        src, dst = event.src, event.dst
        self.reporter.trace(
            VERBOSE_FILES,
            f"Processing {self._kind(src)} {src.path} and {self._kind(dst)} {dst.path}",
        )
