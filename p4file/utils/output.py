"""Rich console output helpers for p4file."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text
from rich.theme import Theme

from p4file.diff.models import DiffResult, LineKind

THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "path": "blue underline",
        "diff.meta": "bold magenta",
        "diff.add": "green",
        "diff.delete": "red",
        "diff.same": "default",
        "diff.lineno": "dim",
    }
)

console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)

_LINE_STYLES = {
    LineKind.META: "diff.meta",
    LineKind.ADD: "diff.add",
    LineKind.DELETE: "diff.delete",
    LineKind.SAME: "diff.same",
}


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {message}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def _lineno(value: int | None, width: int) -> str:
    return str(value).rjust(width) if value is not None else " " * width


def print_diff(result: DiffResult, target: Console | None = None) -> None:
    """Print a diff result with a left/right line number gutter.

    Args:
        result: Result returned by the diff engine.
        target: Console to print to; defaults to the module console.
    """
    out = target or console
    if not result.lines:
        if result.is_identical:
            out.print("[info]Files are identical.[/info]")
        else:
            out.print("[info]No differences to show.[/info]")
        return

    numbers = [n for line in result.lines for n in (line.left_line, line.right_line) if n]
    width = len(str(max(numbers))) if numbers else 1

    for line in result.lines:
        text = Text()
        text.append(
            f"{_lineno(line.left_line, width)} {_lineno(line.right_line, width)} ",
            style="diff.lineno",
        )
        text.append(line.text, style=_LINE_STYLES[line.kind])
        out.print(text, soft_wrap=True)

    if result.is_truncated:
        out.print(
            f"[warning]Content truncated at {result.is_truncated} bytes.[/warning]"
        )
