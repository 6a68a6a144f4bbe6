from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.text import Text

from .config import VERBOSE_ACTIONS
from .text_utils import display_text

STYLE_INSERT = "green"
STYLE_DELETE = "red"
STYLE_ERROR = "bold red"


@dataclass
class RunCounters:
    differences: int = 0
    copied: int = 0
    created_dirs: int = 0
    deleted: int = 0
    mtime_updates: int = 0
    ignored: int = 0

    def summary(self) -> str:
        return (
            f"differences={self.differences} copied={self.copied} "
            f"dirs_created={self.created_dirs} deleted={self.deleted} "
            f"mtime_updates={self.mtime_updates} ignored={self.ignored}"
        )


class Reporter:
    """Ordered diagnostic sink for one run.

    Every record goes out as a single unwrapped line. Paths are rendered
    verbatim: no markup parsing, no highlighting.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        verbose: int = 0,
        no_color: bool = False,
    ) -> None:
        self.console = console or Console(highlight=False, no_color=no_color)
        self.verbose = verbose
        self.no_color = no_color
        self.counters = RunCounters()

    def wants(self, level: int) -> bool:
        return self.verbose >= level

    def line(self, text: str, style: str | None = None) -> None:
        applied = "" if self.no_color or style is None else style
        rendered = Text(display_text(text), style=applied)
        self.console.print(rendered, soft_wrap=True, highlight=False)

    def trace(self, level: int, text: str) -> None:
        if self.wants(level):
            self.line(text)

    def action(self, text: str) -> None:
        self.trace(VERBOSE_ACTIONS, text)
