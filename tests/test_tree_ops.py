from __future__ import annotations

import pytest

from treesync.config import SyncConfig
from treesync.errors import FilesystemMutationError
from treesync.fs_local import LocalFileSystem
from treesync.models import EntryKind
from treesync.tree_ops import DryRunOverlay, TreeOps

from conftest import make_reporter, write_tree


def _ops(tmp_path, **options) -> tuple[TreeOps, object]:
    config = SyncConfig(src_root=str(tmp_path), dst_root=str(tmp_path), **options)
    reporter, buffer = make_reporter(verbose=1)
    return TreeOps(config, reporter), buffer


def test_overlay_tracks_simulated_creations_and_removals(tmp_path) -> None:
    fs = LocalFileSystem()
    root = write_tree(tmp_path / "root", {"real/a": "a", "real/b": "b"})
    overlay = DryRunOverlay()

    overlay.created(fs, str(root / "real" / "c"), EntryKind.REGULAR)
    overlay.removed(fs, str(root / "real" / "a"))

    assert overlay.kind(fs, str(root / "real")) == EntryKind.DIR
    assert overlay.kind(fs, str(root / "real" / "a")) is None
    assert overlay.kind(fs, str(root / "real" / "c")) == EntryKind.REGULAR
    assert [e.name for e in overlay.children(fs, str(root / "real"))] == ["b", "c"]

    overlay.removed(fs, str(root / "real"))
    assert overlay.kind(fs, str(root / "real" / "b")) is None
    assert overlay.children(fs, str(root / "real")) == []


def test_overlay_keeps_filesystems_apart(tmp_path) -> None:
    first, second = LocalFileSystem(), LocalFileSystem()
    overlay = DryRunOverlay()
    path = str(tmp_path / "x")

    overlay.created(first, path, EntryKind.DIR)

    assert overlay.kind(first, path) == EntryKind.DIR
    assert overlay.kind(second, path) is None


def test_mkdirs_refuses_to_replace_a_file(tmp_path) -> None:
    write_tree(tmp_path, {"blocker": "x"})
    ops, _ = _ops(tmp_path)

    with pytest.raises(FilesystemMutationError, match="existing file is in the way"):
        ops.mkdirs(LocalFileSystem(), str(tmp_path / "blocker"), "Creating dir")


def test_mkdirs_traces_only_missing_dirs(tmp_path) -> None:
    ops, buffer = _ops(tmp_path)
    fs = LocalFileSystem()

    ops.mkdirs(fs, str(tmp_path), "Creating dir")
    ops.mkdirs(fs, str(tmp_path / "a" / "b"), "Creating dir")

    assert (tmp_path / "a" / "b").is_dir()
    assert buffer.getvalue().splitlines() == [f"Creating dir {tmp_path}/a/b"]
    assert ops.reporter.counters.created_dirs == 1


def test_copy_without_overwrite_refuses_existing_destination(tmp_path) -> None:
    write_tree(tmp_path, {"src/f": "new", "dst/f": "old"})
    ops, _ = _ops(tmp_path)
    fs = LocalFileSystem()
    entry = fs.stat(str(tmp_path / "src" / "f"))

    with pytest.raises(FilesystemMutationError, match="destination exists"):
        ops.copy_recursive(fs, entry, fs, str(tmp_path / "dst"), "Copying")

    assert (tmp_path / "dst" / "f").read_text() == "old"


def test_copy_under_another_name(tmp_path) -> None:
    write_tree(tmp_path, {"src/f": "data", "dst": None})
    ops, buffer = _ops(tmp_path)
    fs = LocalFileSystem()
    entry = fs.stat(str(tmp_path / "src" / "f"))

    ops.copy_recursive(fs, entry, fs, str(tmp_path / "dst"), "Copying", dst_name="g")

    assert (tmp_path / "dst" / "g").read_text() == "data"
    assert buffer.getvalue().splitlines() == [
        f"Copying file {tmp_path}/src/f -> {tmp_path}/dst/g"
    ]


def test_mutation_failures_are_wrapped(tmp_path) -> None:
    write_tree(tmp_path, {"src/f": "data"})
    ops, _ = _ops(tmp_path)
    fs = LocalFileSystem()
    entry = fs.stat(str(tmp_path / "src" / "f"))

    with pytest.raises(FilesystemMutationError) as excinfo:
        ops.copy_recursive(fs, entry, fs, str(tmp_path / "missing"), "Copying")

    assert excinfo.value.path == str(tmp_path / "missing" / "f")
    assert str(excinfo.value).startswith(f"Cannot copy {tmp_path}/missing/f: ")


def test_remove_recursive_ignores_missing_paths(tmp_path) -> None:
    ops, buffer = _ops(tmp_path)

    ops.remove_recursive(LocalFileSystem(), str(tmp_path / "nothing"), "Deleting")

    assert buffer.getvalue() == ""
    assert ops.reporter.counters.deleted == 0
