from __future__ import annotations

import re
from contextlib import ExitStack
from dataclasses import dataclass
from urllib.parse import urlparse

import paramiko

from .config import DEFAULT_SSH_PORT
from .errors import ConfigError
from .fs import FileSystem
from .fs_local import LocalFileSystem
from .fs_sftp import SftpFileSystem
from .ssh_pool import pooled_ssh_client

_SCP_LIKE = re.compile(r"^(?:(?P<user>[^@/:]+)@)?(?P<host>[^@/:]+):(?P<root>.*)$")


@dataclass(frozen=True)
class EndpointSpec:
    kind: str
    root: str
    user: str | None = None
    host: str | None = None
    port: int | None = None

    @property
    def is_local(self) -> bool:
        return self.kind == "local"

    @property
    def is_remote(self) -> bool:
        return self.kind == "ssh"


def parse_endpoint(value: str) -> EndpointSpec:
    """Parse a tree root.

    Accepted forms: a plain local path, `local:/path`, `ssh://user@host[:port]/path`
    and scp-like `user@host:path`. The scp-like form needs the user part;
    a bare `host:path` stays a local path.
    """
    text = value.strip()
    if not text:
        raise ConfigError("empty tree root")

    if text.startswith("local:"):
        root = text[len("local:") :]
        if not root:
            raise ConfigError(f"missing path in endpoint {value!r}")
        return EndpointSpec(kind="local", root=root)

    if text.startswith("ssh://"):
        parsed = urlparse(text)
        if not parsed.hostname:
            raise ConfigError(f"missing host in endpoint {value!r}")
        try:
            port = parsed.port
        except ValueError as exc:
            raise ConfigError(f"invalid port in endpoint {value!r}") from exc
        root = parsed.path or "."
        if root.startswith("/~"):
            root = root[1:]
        return EndpointSpec(
            kind="ssh",
            root=root,
            user=parsed.username,
            host=parsed.hostname,
            port=port or DEFAULT_SSH_PORT,
        )

    match = _SCP_LIKE.match(text)
    if match and match.group("user"):
        return EndpointSpec(
            kind="ssh",
            root=match.group("root") or ".",
            user=match.group("user"),
            host=match.group("host"),
            port=DEFAULT_SSH_PORT,
        )

    return EndpointSpec(kind="local", root=text)


def endpoint_to_string(endpoint: EndpointSpec) -> str:
    if endpoint.is_local:
        return endpoint.root
    user = f"{endpoint.user}@" if endpoint.user else ""
    port = f":{endpoint.port}" if endpoint.port not in (None, DEFAULT_SSH_PORT) else ""
    return f"ssh://{user}{endpoint.host}{port}/{endpoint.root.lstrip('/')}"


def _remote_root(sftp: paramiko.SFTPClient, root: str) -> str:
    if root == "~" or root.startswith("~/"):
        home = sftp.normalize(".")
        return home if root == "~" else f"{home.rstrip('/')}/{root[2:]}"
    return root


def open_filesystem(
    stack: ExitStack, endpoint: EndpointSpec, *, compress: bool = False
) -> tuple[FileSystem, str]:
    """Open the provider for `endpoint` and return it with the resolved root path.

    Remote sessions are closed when `stack` unwinds.
    """
    if endpoint.is_local:
        return LocalFileSystem(), endpoint.root

    assert endpoint.host is not None
    client = stack.enter_context(
        pooled_ssh_client(
            host=endpoint.host,
            user=endpoint.user,
            port=endpoint.port or DEFAULT_SSH_PORT,
            compress=compress,
        )
    )
    sftp = client.open_sftp()
    stack.callback(sftp.close)
    return SftpFileSystem(sftp), _remote_root(sftp, endpoint.root)
