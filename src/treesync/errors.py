from __future__ import annotations


class TreesyncError(Exception):
    """Base user-facing application error."""


class ConfigError(TreesyncError):
    """Invalid roots, flags or endpoints. Raised before any traversal."""


class FilesystemMutationError(TreesyncError):
    def __init__(self, action: str, path: str, detail: str) -> None:
        self.action = action
        self.path = path
        self.detail = detail
        super().__init__(f"{action} {path}: {detail}")
