"""Console rendering for the CLI — prefixed messages, aligned grids, summaries.

All user-facing text goes through the module-level rich Console so tests can
swap it for one writing into a buffer. Diagnostics go to logging instead.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .registry.types import Change

console = Console(highlight=False)

_CHANGE_STYLES = {"+": "green", "-": "red", "~": "yellow"}


def info(msg: str) -> None:
    console.print(f"[bold cyan]INFO[/]: {escape(msg)}")


def error(msg: str) -> None:
    console.print(f"[bold red]ERROR[/]: {escape(msg)}")


def warn(msg: str) -> None:
    console.print(f"[bold yellow]WARN[/]: {escape(msg)}")


def usage(msg: str) -> None:
    console.print(f"[bold cyan]USAGE[/]: {escape(msg)}")


def grid(rows: list[tuple[str | Text, str]], space: int = 4) -> None:
    """Print two left-aligned columns; the first padded to its widest cell."""
    if not rows:
        return
    width = max(len(Text(left) if isinstance(left, str) else left) for left, _ in rows)
    for left, right in rows:
        cell = Text(left) if isinstance(left, str) else left.copy()
        cell.pad_right(width + space - len(cell))
        console.print(Text.assemble(cell, right))


def changes(items: list[Change]) -> None:
    grid(
        [
            (Text.assemble((c.kind, _CHANGE_STYLES.get(c.kind, "")), f" {c.name}"), c.project.path)
            for c in items
        ]
    )


def result(succeeded: int, failures: list[str]) -> None:
    """Print ``N success, M fail.`` followed by one ERROR line per failure."""
    console.print(
        f"[bold cyan]INFO[/]: [green]{succeeded}[/] success, [red]{len(failures)}[/] fail."
    )
    for msg in failures:
        error(msg)


def status(msg: str) -> None:
    """Transient progress line, only shown on a terminal."""
    if console.is_terminal:
        console.print(msg, end="")


def clear() -> None:
    if console.is_terminal:
        console.file.write("\r\x1b[2K")
        console.file.flush()
