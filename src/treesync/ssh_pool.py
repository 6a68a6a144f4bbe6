from __future__ import annotations

import atexit
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import paramiko

from .config import SSH_CONNECT_TIMEOUT

type PoolKey = tuple[str, str, int, bool]


_CLIENTS: dict[PoolKey, Any] = {}


def _is_connected(client: Any) -> bool:
    # Test doubles may not expose a transport at all.
    if not hasattr(client, "get_transport"):
        return True
    transport = client.get_transport()
    return transport is not None and bool(transport.is_active())


def _disconnect(client: Any) -> None:
    try:
        client.close()
    except (OSError, paramiko.SSHException):
        pass


def _connect(
    key: PoolKey,
    timeout: int,
    client_factory: Callable[[], Any],
    auto_add_policy_factory: Callable[[], Any],
) -> Any:
    host, user, port, compress = key
    client = client_factory()
    client.load_system_host_keys()
    client.set_missing_host_key_policy(auto_add_policy_factory())
    client.connect(
        hostname=host,
        username=user or None,
        port=port,
        look_for_keys=True,
        allow_agent=True,
        timeout=timeout,
        compress=compress,
    )
    return client


@contextmanager
def pooled_ssh_client(
    *,
    host: str,
    user: str | None,
    port: int,
    compress: bool,
    timeout: int = SSH_CONNECT_TIMEOUT,
    client_factory: Callable[[], Any] = paramiko.SSHClient,
    auto_add_policy_factory: Callable[[], Any] = paramiko.AutoAddPolicy,
) -> Iterator[Any]:
    """Yield a connected SSH client.

    Source and destination on the same host share one connection, which stays
    open until `close_ssh_pool`. A pooled client whose transport went down is
    dropped and reconnected.
    """
    key: PoolKey = (host, user or "", port, compress)
    client = _CLIENTS.get(key)
    if client is not None and not _is_connected(client):
        _disconnect(client)
        client = None
    if client is None:
        client = _CLIENTS[key] = _connect(
            key, timeout, client_factory, auto_add_policy_factory
        )
    yield client


def close_ssh_pool() -> None:
    """Close every pooled connection. Registered to run at interpreter exit."""
    clients = list(_CLIENTS.values())
    _CLIENTS.clear()
    for client in clients:
        _disconnect(client)


atexit.register(close_ssh_pool)
