from __future__ import annotations

from contextlib import ExitStack

from .actions import SyncActions
from .classify import classify
from .compare import TreeDiff
from .config import VERBOSE_ACTIONS, SyncConfig
from .endpoints import open_filesystem, parse_endpoint
from .errors import ConfigError
from .fs import FileSystem
from .models import EntryKind
from .reporter import Reporter
from .tree_ops import TreeOps


def _is_dir(fs: FileSystem, path: str) -> bool:
    return classify(fs.stat(path, follow_symlinks=True), True) == EntryKind.DIR


def check_src_root(config: SyncConfig, src_fs: FileSystem) -> None:
    if not src_fs.exists(config.src_root):
        raise ConfigError(f'SRCDIR "{config.src_root}" does not exist!')
    if not _is_dir(src_fs, config.src_root):
        raise ConfigError(f'SRCDIR "{config.src_root}" is not a directory!')


def check_dst_root(config: SyncConfig, dst_fs: FileSystem) -> None:
    """A missing destination is tolerated only for a dummy run that would have
    created it (`--create-missing-dst`); it is then compared as empty."""
    if not dst_fs.exists(config.dst_root):
        if config.create_missing_dst and config.dummy_mode:
            return
        raise ConfigError(f'DSTDIR "{config.dst_root}" does not exist!')
    if not _is_dir(dst_fs, config.dst_root):
        raise ConfigError(f'DSTDIR "{config.dst_root}" is not a directory!')


def sync_trees(
    config: SyncConfig,
    reporter: Reporter,
    src_fs: FileSystem,
    dst_fs: FileSystem,
    *,
    export_fs: FileSystem | None = None,
) -> bool:
    """Diff and/or sync `config.src_root` into `config.dst_root`.

    Returns True iff the trees had no difference when compared. Precondition
    failures raise `ConfigError` before anything is traversed.
    """
    check_src_root(config, src_fs)
    ops = TreeOps(config, reporter)
    if (
        config.new
        and config.create_missing_dst
        and not dst_fs.exists(config.dst_root)
    ):
        ops.mkdirs(dst_fs, config.dst_root, "Creating destination dir")
    check_dst_root(config, dst_fs)

    actions = SyncActions(
        config, src_fs, dst_fs, reporter, ops=ops, export_fs=export_fs
    )
    equal = TreeDiff(config, src_fs, dst_fs, actions).process()
    if reporter.wants(VERBOSE_ACTIONS):
        reporter.line(f"Summary: {reporter.counters.summary()}")
    return equal


def run(config: SyncConfig, reporter: Reporter) -> bool:
    """Open both endpoints and run `sync_trees` over them."""
    src_endpoint = parse_endpoint(config.src_root)
    dst_endpoint = parse_endpoint(config.dst_root)
    with ExitStack() as stack:
        src_fs, src_root = open_filesystem(
            stack, src_endpoint, compress=config.ssh_compression
        )
        dst_fs, dst_root = open_filesystem(
            stack, dst_endpoint, compress=config.ssh_compression
        )
        resolved = config.with_roots(src_root, dst_root)
        return sync_trees(resolved, reporter, src_fs, dst_fs)
