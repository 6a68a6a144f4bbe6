from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

import paramiko
import typer
from rich.console import Console
from rich.text import Text

from .config import SyncConfig
from .errors import TreesyncError
from .reporter import STYLE_ERROR, Reporter
from .runner import run

app = typer.Typer(
    help=(
        "Sync or diff two directory trees, recursively.\n\n"
        "Compare SRCDIR with DSTDIR and print differences (--diff or no option) "
        "or update DSTDIR (--new, --delete or --update). SRCDIR is never modified. "
        "Either tree may be remote: user@host:path or ssh://user@host[:port]/path."
    ),
    add_completion=False,
)
err_console = Console(stderr=True, highlight=False)


def _project_version() -> str:
    try:
        return version("treesync")
    except PackageNotFoundError:
        return "unknown"


def _version_callback(value: bool) -> None:
    if value:
        Console(highlight=False).print(f"treesync {_project_version()}")
        raise typer.Exit()


def _fail(message: str) -> None:
    err_console.print(
        Text("Error: ", style=STYLE_ERROR), Text(message), sep="", soft_wrap=True
    )
    raise typer.Exit(1)


@app.command()
def main(
    srcdir: str = typer.Argument(..., metavar="SRCDIR", show_default=False),
    dstdir: str = typer.Argument(..., metavar="DSTDIR", show_default=False),
    diff: bool = typer.Option(
        False,
        "--diff",
        help="Print differences and change nothing. Default when none of "
        "--new/--delete/--update is given. Differences read as going from DSTDIR "
        "to SRCDIR.",
    ),
    diff_fast: bool = typer.Option(
        False,
        "--diff-fast",
        help="Like --diff --ignore-forks --ignore-content --ignore-mtime "
        "--normalize-filenames.",
    ),
    sync: bool = typer.Option(
        False, "--sync", "-s", help="Make DSTDIR look like SRCDIR (-NDU)."
    ),
    sync_fast: bool = typer.Option(
        False,
        "--sync-fast",
        "-S",
        help="--sync ignoring mtime, content and forks, with normalized "
        "filenames (-NDUFCTZ).",
    ),
    new: bool = typer.Option(
        False, "--new", "-N", help="Copy entries only in SRCDIR into DSTDIR."
    ),
    delete: bool = typer.Option(
        False, "--delete", "-D", help="Delete entries in DSTDIR not in SRCDIR."
    ),
    update: bool = typer.Option(
        False,
        "--update",
        "-U",
        help="Copy entries that are newer (mtime) in SRCDIR or differ in type. "
        "Implies --new.",
    ),
    ignore_dirs: bool = typer.Option(
        False, "--ignore-dirs", help="Do not descend into subdirectories."
    ),
    ignore_special: bool = typer.Option(
        False,
        "--ignore-special",
        help="Ignore block/char devices, fifos and sockets.",
    ),
    ignore_forks: bool = typer.Option(
        False,
        "--ignore-forks",
        "-F",
        help="Ignore entries in SRCDIR starting with '._' (Apple resource forks).",
    ),
    ignore_forks_dst: bool = typer.Option(
        False,
        "--ignore-forks-dst",
        help="Ignore entries in DSTDIR starting with '._', so -D keeps them.",
    ),
    follow_symlinks: bool = typer.Option(
        False,
        "--follow-symlinks",
        help="Follow symlinks instead of comparing them as links.",
    ),
    create_missing_dst: bool = typer.Option(
        False,
        "--create-missing-dst",
        "-c",
        help="Create DSTDIR if it does not exist for --new/--update.",
    ),
    copy_ins: str | None = typer.Option(
        None,
        "--copy-ins",
        metavar="DIR",
        help="Copy insertions to DIR during --diff. DSTDIR is not modified.",
    ),
    copy_del: str | None = typer.Option(
        None,
        "--copy-del",
        metavar="DIR",
        help="Copy deletions to DIR during --diff. DSTDIR is not modified.",
    ),
    preserve: bool = typer.Option(
        False,
        "--preserve",
        "-p",
        help="Copy mtimes for --new/--update and refresh older mtimes of "
        "matching entries for --update.",
    ),
    ignore_content: bool = typer.Option(
        False,
        "--ignore-content",
        "-C",
        help="Compare regular files by size only.",
    ),
    ignore_mtime: bool = typer.Option(
        False,
        "--ignore-mtime",
        "-T",
        help="For --update always treat SRC as newer than a differing DST.",
    ),
    normalize_filenames: bool = typer.Option(
        False,
        "--normalize-filenames",
        "-Z",
        help="Apply unicode canonical decomposition (NFD) before comparing names.",
    ),
    show_matches: bool = typer.Option(
        False, "--show-matches", help="Also show matching entries for --diff."
    ),
    show_subtree: bool = typer.Option(
        False,
        "--show-subtree",
        help="Show every entry below new/deleted dirs, not just the dir.",
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase verbosity (repeatable)."
    ),
    no_color: bool = typer.Option(False, "--no-color", "-n", help="No colors."),
    dummy_mode: bool = typer.Option(
        False, "--dummy-mode", "-d", help="Do not write, change or delete anything."
    ),
    ssh_compression: bool = typer.Option(
        False,
        "--ssh-compression/--no-ssh-compression",
        help="Enable SSH transport compression for remote trees.",
    ),
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Diff or sync SRCDIR into DSTDIR."""
    try:
        config = SyncConfig.from_flags(
            srcdir,
            dstdir,
            diff=diff,
            diff_fast=diff_fast,
            sync=sync,
            sync_fast=sync_fast,
            new=new,
            delete=delete,
            update=update,
            ignore_forks=ignore_forks,
            ignore_content=ignore_content,
            ignore_mtime=ignore_mtime,
            normalize_filenames=normalize_filenames,
            copy_ins=copy_ins,
            copy_del=copy_del,
            verbose=verbose,
            ignore_dirs=ignore_dirs,
            ignore_special=ignore_special,
            ignore_forks_dst=ignore_forks_dst,
            follow_symlinks=follow_symlinks,
            create_missing_dst=create_missing_dst,
            show_matches=show_matches,
            show_subtree=show_subtree,
            preserve=preserve,
            no_color=no_color,
            dummy_mode=dummy_mode,
            ssh_compression=ssh_compression,
        )
        reporter = Reporter(verbose=config.verbose, no_color=config.no_color)
        run(config, reporter)
    except TreesyncError as exc:
        _fail(str(exc))
    except OSError as exc:
        _fail(f"{exc.filename}: {exc.strerror}" if exc.filename else str(exc))
    except paramiko.SSHException as exc:
        _fail(f"SSH error: {exc}")


if __name__ == "__main__":
    app()
