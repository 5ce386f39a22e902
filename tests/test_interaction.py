"""Tests for the user interaction helpers."""

from io import StringIO
from unittest.mock import patch

from rich.console import Console

from shry.interaction import ConsoleInteraction, format_diff


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=120, color_system=None), buffer


class TestFormatDiff:
    """Tests for format_diff function."""

    def test_equal_texts_have_no_diff(self) -> None:
        """Verify identical inputs produce no lines."""
        assert format_diff("a\nb\n", "a\nb\n", "x.txt") == []

    def test_headers_name_both_sides(self) -> None:
        """Verify the headers label the existing file and the component version."""
        # When
        lines = format_diff("old\n", "new\n", "src/Button.tsx")

        # Then
        assert lines[0] == "--- src/Button.tsx (existing)"
        assert lines[1] == "+++ src/Button.tsx (component)"
        assert "-old" in lines
        assert "+new" in lines

    def test_two_lines_of_context(self) -> None:
        """Verify only two unchanged lines surround a change."""
        # Given
        old = "\n".join(["1", "2", "3", "4", "5", "6", "7"])
        new = "\n".join(["1", "2", "3", "X", "5", "6", "7"])

        # When
        lines = format_diff(old, new, "f")

        # Then
        assert lines[2:] == ["@@ -2,5 +2,5 @@", " 2", " 3", "-4", "+X", " 5", " 6"]


class TestConsoleInteraction:
    """Tests for ConsoleInteraction class."""

    def test_choose_returns_prompt_answer(self) -> None:
        """Verify choose returns the option typed by the user."""
        # Given
        console, _ = _console()
        interaction = ConsoleInteraction(console)

        # When
        with patch("shry.interaction.typer.prompt", return_value="overwrite") as mock_prompt:
            answer = interaction.choose("File already exists: a.txt", ["skip", "overwrite", "diff"])

        # Then
        assert answer == "overwrite"
        assert mock_prompt.call_args.kwargs["default"] == "skip"

    def test_select_returns_numbered_item(self) -> None:
        """Verify select maps the number to the item and lists every option."""
        # Given
        console, buffer = _console()
        interaction = ConsoleInteraction(console)

        # When
        with patch("shry.interaction.typer.prompt", return_value=2):
            answer = interaction.select("Select platform", ["mobile", "web"])

        # Then
        assert answer == "web"
        output = buffer.getvalue()
        assert "1) mobile" in output
        assert "2) web" in output
        assert "0) Cancel" in output

    def test_select_zero_cancels(self) -> None:
        """Verify 0 cancels the selection."""
        # Given
        console, _ = _console()

        # When
        with patch("shry.interaction.typer.prompt", return_value=0):
            answer = ConsoleInteraction(console).select("Select platform", ["web"])

        # Then
        assert answer is None

    def test_select_empty_does_not_prompt(self) -> None:
        """Verify an empty list returns None without asking."""
        # Given
        console, _ = _console()

        # When
        with patch("shry.interaction.typer.prompt") as mock_prompt:
            answer = ConsoleInteraction(console).select("Select platform", [])

        # Then
        assert answer is None
        mock_prompt.assert_not_called()

    def test_show_diff_prints_changes(self) -> None:
        """Verify the diff is printed to the console."""
        # Given
        console, buffer = _console()

        # When
        ConsoleInteraction(console).show_diff("[old]\n", "[new]\n", "a.txt")

        # Then
        output = buffer.getvalue()
        assert "-[old]" in output
        assert "+[new]" in output
        assert "a.txt (existing)" in output
