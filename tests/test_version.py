"""Test shry version and basic imports."""

from importlib.metadata import version

from typer.testing import CliRunner

from shry import __version__
from shry.cli import app


class TestVersion:
    """Tests for shry version and package structure."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_version_is_defined(self) -> None:
        """Verify that __version__ is defined and matches pyproject.toml."""
        # Given - version from pyproject.toml via package metadata
        expected = version("shry")

        # When
        actual = __version__

        # Then
        assert actual == expected

    def test_cli_app_is_importable(self) -> None:
        """Verify that the CLI app can be imported."""
        # Given/When - app is imported at module level

        # Then
        assert app is not None
        assert app.info.name == "shry"

    def test_version_flag_prints_version(self) -> None:
        """Verify that --version outputs the package version."""
        # When
        result = self.runner.invoke(app, ["--version"])

        # Then
        assert result.exit_code == 0
        assert f"shry {version('shry')}" in result.output

    def test_no_arguments_shows_help(self) -> None:
        """Verify that running without a command lists the commands."""
        # When
        result = self.runner.invoke(app, [])

        # Then
        assert "init" in result.output
        assert "registry" in result.output
