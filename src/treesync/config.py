from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import ConfigError

FORK_PREFIX = "._"
DEFAULT_SSH_PORT = 22
SSH_CONNECT_TIMEOUT = 10
COPY_CHUNK_SIZE = 1024 * 1024

VERBOSE_ACTIONS = 1
VERBOSE_DIRS = 2
VERBOSE_FILES = 3


@dataclass(frozen=True)
class SyncConfig:
    """Run-wide policy flags. Read by the comparator and dispatcher, never mutated."""

    src_root: str
    dst_root: str
    diff: bool = True
    new: bool = False
    delete: bool = False
    update: bool = False
    ignore_dirs: bool = False
    ignore_special: bool = False
    ignore_forks_src: bool = False
    ignore_forks_dst: bool = False
    follow_symlinks: bool = False
    create_missing_dst: bool = False
    ignore_content: bool = False
    ignore_mtime: bool = False
    normalize_filenames: bool = False
    show_matches: bool = False
    show_subtree: bool = False
    preserve: bool = False
    verbose: int = 0
    no_color: bool = False
    dummy_mode: bool = False
    copy_ins: str | None = None
    copy_del: str | None = None
    ssh_compression: bool = False

    def with_roots(self, src_root: str, dst_root: str) -> SyncConfig:
        return replace(self, src_root=src_root, dst_root=dst_root)

    @classmethod
    def from_flags(
        cls,
        src_root: str,
        dst_root: str,
        *,
        diff: bool = False,
        diff_fast: bool = False,
        sync: bool = False,
        sync_fast: bool = False,
        new: bool = False,
        delete: bool = False,
        update: bool = False,
        ignore_forks: bool = False,
        ignore_content: bool = False,
        ignore_mtime: bool = False,
        normalize_filenames: bool = False,
        copy_ins: str | None = None,
        copy_del: str | None = None,
        verbose: int = 0,
        **options: bool,
    ) -> SyncConfig:
        """Build a config from raw CLI flags, applying the shortcut implications.

        `--sync` means new+delete+update, `--sync-fast` and `--diff-fast` add the
        four "fast" matching options, `--update` implies `--new`, and `--diff` is
        the default when no mutating mode is given.
        """
        if sync or sync_fast:
            new = delete = update = True
        if sync_fast or diff_fast:
            ignore_forks = ignore_content = ignore_mtime = normalize_filenames = True
        if diff_fast:
            diff = True
        if update:
            new = True
        if not (new or delete or update):
            diff = True

        if verbose < 0:
            raise ConfigError("verbosity cannot be negative")
        if (copy_ins or copy_del) and not diff:
            raise ConfigError("--copy-ins/--copy-del only apply together with --diff")

        try:
            return cls(
                src_root=src_root,
                dst_root=dst_root,
                diff=diff,
                new=new,
                delete=delete,
                update=update,
                ignore_forks_src=ignore_forks,
                ignore_content=ignore_content,
                ignore_mtime=ignore_mtime,
                normalize_filenames=normalize_filenames,
                copy_ins=copy_ins or None,
                copy_del=copy_del or None,
                verbose=verbose,
                **options,
            )
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc
