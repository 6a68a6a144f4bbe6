from __future__ import annotations

import errno
import io
import os
import posixpath
import stat
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from treesync.config import SyncConfig
from treesync.fs_local import LocalFileSystem
from treesync.models import Entry, EntryKind
from treesync.reporter import Reporter
from treesync.runner import sync_trees


def mk_entry(
    path: str,
    *,
    kind: EntryKind = EntryKind.REGULAR,
    size: int = 0,
    mtime_ns: int = 0,
    mode: int = 0o644,
    link_target: str | None = None,
    device: tuple[int, int] | None = None,
    resolved: Entry | None = None,
) -> Entry:
    return Entry(
        path=path,
        name=posixpath.basename(path),
        kind=kind,
        size=size,
        mtime_ns=mtime_ns,
        mode=mode,
        link_target=link_target,
        device=device,
        resolved=resolved,
    )


def write_tree(root: Path, spec: dict[str, object]) -> Path:
    """Create `root` from {relpath: content}.

    content is a str (text file), bytes (binary file), None (directory) or
    ("link", target) for a symlink.
    """
    root.mkdir(parents=True, exist_ok=True)
    for relpath, content in spec.items():
        path = root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        if content is None:
            path.mkdir(exist_ok=True)
        elif isinstance(content, tuple):
            os.symlink(content[1], path)
        elif isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(str(content), encoding="utf-8")
    return root


def set_mtime(path: Path, seconds: int) -> None:
    ns = seconds * 1_000_000_000
    os.utime(path, ns=(ns, ns), follow_symlinks=False)


def snapshot(root: Path) -> dict[str, tuple]:
    """Kind, content/target and mtime of everything below `root`."""
    result: dict[str, tuple] = {}
    for current, dirs, files in os.walk(root):
        for name in sorted(dirs + files):
            path = Path(current) / name
            rel = path.relative_to(root).as_posix()
            st = path.lstat()
            if stat.S_ISLNK(st.st_mode):
                result[rel] = ("symlink", os.readlink(path), st.st_mtime_ns)
            elif stat.S_ISDIR(st.st_mode):
                result[rel] = ("dir", None, st.st_mtime_ns)
            else:
                result[rel] = ("file", path.read_bytes(), st.st_mtime_ns)
    return result


def make_reporter(verbose: int = 0) -> tuple[Reporter, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, highlight=False, no_color=True, width=200)
    return Reporter(console, verbose=verbose, no_color=True), buffer


def run_tree(
    src: Path, dst: Path, *, verbose: int = 0, **flags
) -> tuple[bool, list[str]]:
    config = SyncConfig.from_flags(str(src), str(dst), verbose=verbose, **flags)
    reporter, buffer = make_reporter(verbose)
    fs = LocalFileSystem()
    equal = sync_trees(config, reporter, fs, fs)
    return equal, buffer.getvalue().splitlines()


@dataclass
class FakeAttrs:
    filename: str
    st_mode: int
    st_size: int = 0
    st_mtime: float = 1.0
    st_atime: float = 1.0


@dataclass
class _Node:
    kind: str
    data: bytes = b""
    mode: int = 0o644
    mtime: float = 1.0
    target: str = ""


_TYPE_BITS = {"file": stat.S_IFREG, "dir": stat.S_IFDIR, "link": stat.S_IFLNK}


class _FakeHandle(io.BytesIO):
    def __init__(self, client: FakeSFTPClient, path: str, data: bytes, writable: bool):
        super().__init__(data)
        self._client = client
        self._path = path
        self._writable = writable

    def prefetch(self) -> None:
        self._client.calls.append(("prefetch", self._path))

    def set_pipelined(self, pipelined: bool = True) -> None:
        self._client.calls.append(("set_pipelined", self._path, pipelined))

    def close(self) -> None:
        if self._writable and not self.closed:
            node = self._client.nodes.setdefault(self._path, _Node("file"))
            node.data = self.getvalue()
        super().close()


@dataclass
class FakeSFTPClient:
    """In-memory SFTP server with paramiko's client method names."""

    home: str = "/home/user"
    nodes: dict[str, _Node] = field(default_factory=lambda: {"/": _Node("dir")})
    calls: list[tuple] = field(default_factory=list)

    def _missing(self, path: str) -> FileNotFoundError:
        return FileNotFoundError(errno.ENOENT, "No such file", path)

    def _node(self, path: str) -> _Node:
        node = self.nodes.get(path)
        if node is None:
            raise self._missing(path)
        return node

    def _attrs(self, path: str, node: _Node) -> FakeAttrs:
        return FakeAttrs(
            filename=posixpath.basename(path),
            st_mode=_TYPE_BITS[node.kind] | node.mode,
            st_size=len(node.data) if node.kind == "file" else 0,
            st_mtime=node.mtime,
        )

    def _resolve(self, path: str) -> str:
        seen = 0
        while self._node(path).kind == "link" and seen < 20:
            target = self.nodes[path].target
            path = posixpath.normpath(posixpath.join(posixpath.dirname(path), target))
            seen += 1
        return path

    def add_dir(self, path: str, mtime: float = 1.0) -> None:
        self.nodes[path] = _Node("dir", mode=0o755, mtime=mtime)

    def add_file(self, path: str, data: bytes, mtime: float = 1.0) -> None:
        self.nodes[path] = _Node("file", data=data, mtime=mtime)

    def add_link(self, path: str, target: str) -> None:
        self.nodes[path] = _Node("link", mode=0o777, target=target)

    def normalize(self, path: str) -> str:
        return self.home if path == "." else path

    def listdir_attr(self, path: str) -> list[FakeAttrs]:
        if self._node(path).kind != "dir":
            raise OSError(errno.ENOTDIR, "Not a directory", path)
        prefix = path.rstrip("/") + "/"
        return [
            self._attrs(child, node)
            for child, node in sorted(self.nodes.items())
            if child != "/"
            and child.startswith(prefix)
            and "/" not in child[len(prefix) :]
        ]

    def lstat(self, path: str) -> FakeAttrs:
        return self._attrs(path, self._node(path))

    def stat(self, path: str) -> FakeAttrs:
        resolved = self._resolve(path)
        return self._attrs(path, self._node(resolved))

    def readlink(self, path: str) -> str:
        return self._node(path).target

    def open(self, path: str, mode: str = "r") -> _FakeHandle:
        self.calls.append(("open", path, mode))
        if "w" in mode:
            self.nodes[path] = _Node("file")
            return _FakeHandle(self, path, b"", writable=True)
        return _FakeHandle(self, path, self._node(self._resolve(path)).data, False)

    def mkdir(self, path: str) -> None:
        self.calls.append(("mkdir", path))
        self.add_dir(path)

    def rmdir(self, path: str) -> None:
        self.calls.append(("rmdir", path))
        prefix = path.rstrip("/") + "/"
        if any(child.startswith(prefix) for child in self.nodes):
            raise OSError(errno.ENOTEMPTY, "Directory not empty", path)
        del self.nodes[path]

    def remove(self, path: str) -> None:
        self.calls.append(("remove", path))
        self._node(path)
        del self.nodes[path]

    def symlink(self, target: str, path: str) -> None:
        self.calls.append(("symlink", target, path))
        self.add_link(path, target)

    def utime(self, path: str, times: tuple[int, int]) -> None:
        self.calls.append(("utime", path, times))
        self._node(self._resolve(path)).mtime = float(times[1])

    def chmod(self, path: str, mode: int) -> None:
        self.calls.append(("chmod", path, mode))
        self._node(self._resolve(path)).mode = mode

    def close(self) -> None:
        self.calls.append(("close",))


class FakeSSHClient:
    def __init__(self, sftp: FakeSFTPClient | None = None) -> None:
        self.sftp = sftp or FakeSFTPClient()
        self.connect_calls: list[dict[str, object]] = []
        self.closed = False

    def load_system_host_keys(self) -> None:
        return None

    def set_missing_host_key_policy(self, policy: object) -> None:
        _ = policy

    def connect(self, **kwargs) -> None:
        self.connect_calls.append(kwargs)

    def open_sftp(self) -> FakeSFTPClient:
        return self.sftp

    def close(self) -> None:
        self.closed = True


class DummyAutoAddPolicy:
    pass


class ListingFileSystem(LocalFileSystem):
    """Provider serving prepared `Entry` listings, in the given order."""

    def __init__(self, listing: dict[str, list[Entry]]) -> None:
        self.listing = listing

    def exists(self, path: str) -> bool:
        return path in self.listing

    def scan_dir(self, path: str, follow_symlinks: bool = False) -> list[Entry]:
        return list(self.listing[path])

    def read_bytes(self, path: str) -> bytes:
        raise AssertionError(f"content of {path} must not be read")
