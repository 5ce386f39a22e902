"""User interaction used while adding components and managing registries.

Core code talks to the user only through the UserInteraction protocol so
it can run against scripted answers in tests.
"""

import difflib
from typing import Protocol

import click
import typer
from rich.console import Console
from rich.markup import escape

# Unchanged lines shown around each change in a diff
DIFF_CONTEXT_LINES = 2


class UserInteraction(Protocol):
    """Questions the core asks the user."""

    def choose(self, title: str, options: list[str]) -> str:
        """Ask the user to pick one of options and return it."""
        ...

    def confirm(self, title: str, description: str = "") -> bool:
        """Ask a yes/no question."""
        ...

    def show_diff(self, old: str, new: str, path: str) -> None:
        """Show the changes between two versions of a file."""
        ...

    def select(self, title: str, items: list[str]) -> str | None:
        """Let the user pick one of items; None if cancelled or empty."""
        ...


def format_diff(old: str, new: str, path: str) -> list[str]:
    """Return a line-level unified diff between old and new.

    Returns:
        Diff lines without trailing newlines; empty if the texts are equal.
    """
    return list(
        difflib.unified_diff(
            old.splitlines(),
            new.splitlines(),
            fromfile=f"{path} (existing)",
            tofile=f"{path} (component)",
            n=DIFF_CONTEXT_LINES,
            lineterm="",
        )
    )


def _diff_line_markup(line: str) -> str:
    text = escape(line)
    if line.startswith(("---", "+++")):
        return f"[bold]{text}[/bold]"
    if line.startswith("@@"):
        return f"[dim]{text}[/dim]"
    if line.startswith("+"):
        return f"[green]{text}[/green]"
    if line.startswith("-"):
        return f"[red]{text}[/red]"
    return text


class ConsoleInteraction:
    """UserInteraction on the terminal using typer prompts and rich output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def choose(self, title: str, options: list[str]) -> str:
        return typer.prompt(
            title,
            type=click.Choice(options, case_sensitive=False),
            default=options[0],
            show_choices=True,
        )

    def confirm(self, title: str, description: str = "") -> bool:
        if description:
            self.console.print(f"[yellow]{escape(description)}[/yellow]")
        return typer.confirm(title, default=False)

    def show_diff(self, old: str, new: str, path: str) -> None:
        self.console.print()
        for line in format_diff(old, new, path):
            self.console.print(_diff_line_markup(line), highlight=False)
        self.console.print()

    def select(self, title: str, items: list[str]) -> str | None:
        if not items:
            return None

        self.console.print(f"[bold]{escape(title)}[/bold]")
        for number, item in enumerate(items, start=1):
            self.console.print(f"  {number}) {escape(item)}", highlight=False)
        self.console.print("  0) Cancel", style="dim")

        number = typer.prompt("Selection", type=click.IntRange(0, len(items)), default=1)
        if number == 0:
            return None
        return items[number - 1]
