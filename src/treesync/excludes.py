from __future__ import annotations

from .config import FORK_PREFIX, SyncConfig


def is_fork_name(name: str) -> bool:
    return name.startswith(FORK_PREFIX)


def is_excluded_src_name(name: str, config: SyncConfig) -> bool:
    return config.ignore_forks_src and is_fork_name(name)


def is_excluded_dst_name(name: str, config: SyncConfig) -> bool:
    return config.ignore_forks_dst and is_fork_name(name)


def is_excluded_name(name: str, config: SyncConfig, *, src: bool) -> bool:
    if src:
        return is_excluded_src_name(name, config)
    return is_excluded_dst_name(name, config)
