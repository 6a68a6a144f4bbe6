from __future__ import annotations

from .models import (
    DirsProgress,
    DstOnly,
    FilesProgress,
    IgnoredDir,
    IgnoredFile,
    Match,
    Mismatch,
    NameCollision,
    SrcOnly,
    TreeEvent,
    TypeMismatch,
)

_DISPATCH: dict[type, str] = {
    SrcOnly: "src_only",
    DstOnly: "dst_only",
    Match: "match",
    Mismatch: "mismatch",
    TypeMismatch: "type_mismatch",
    IgnoredDir: "ignored_dir",
    IgnoredFile: "ignored_file",
    NameCollision: "name_collision",
    DirsProgress: "progress_dirs",
    FilesProgress: "progress_files",
}


class TreeEventHandler:
    """Receives classification events from `TreeDiff`, one method per variant.

    Every method is a no-op here; subclasses override the ones they react to.
    """

    def handle(self, event: TreeEvent) -> None:
        getattr(self, _DISPATCH[type(event)])(event)

    def src_only(self, event: SrcOnly) -> None:
        pass

    def dst_only(self, event: DstOnly) -> None:
        pass

    def match(self, event: Match) -> None:
        pass

    def mismatch(self, event: Mismatch) -> None:
        pass

    def type_mismatch(self, event: TypeMismatch) -> None:
        pass

    def ignored_dir(self, event: IgnoredDir) -> None:
        pass

    def ignored_file(self, event: IgnoredFile) -> None:
        pass

    def name_collision(self, event: NameCollision) -> None:
        pass

    def progress_dirs(self, event: DirsProgress) -> None:
        pass

    def progress_files(self, event: FilesProgress) -> None:
        pass


class RecordingHandler(TreeEventHandler):
    """Collects every event in arrival order."""

    def __init__(self) -> None:
        self.events: list[TreeEvent] = []

    def handle(self, event: TreeEvent) -> None:
        self.events.append(event)
