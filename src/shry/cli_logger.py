"""CLI output utilities for consistent messaging."""

from rich.console import Console
from rich.markup import escape

_console = Console()
_verbose = False


def set_verbose(enabled: bool) -> None:
    """Enable or disable debug output."""
    global _verbose
    _verbose = enabled


def success(message: str) -> None:
    """Print a success message with green checkmark."""
    _console.print(f"[green]✓[/green] {message}")


def error(message: str) -> None:
    """Print an error message with red X."""
    _console.print(f"[red]✗[/red] {message}")


def warning(message: str) -> None:
    """Print a warning message with yellow exclamation."""
    _console.print(f"[yellow]![/yellow] {message}")


def info(message: str) -> None:
    """Print an info message (no prefix)."""
    _console.print(message)


def dim(message: str) -> None:
    """Print a dimmed message (for secondary info)."""
    _console.print(f"[dim]{message}[/dim]")


def debug(message: str) -> None:
    """Print a dimmed message only in verbose mode.

    The message is printed literally; rich markup is not interpreted.
    """
    if _verbose:
        _console.print(f"[dim]{escape(message)}[/dim]")
