"""Tests for registry lookups."""

from pathlib import Path
from unittest.mock import patch

import pytest

from shry import component as component_module
from shry.filesystem import LocalFilesystem, MemoryFilesystem
from shry.registry import ComponentLookupError, ComponentNotFoundError, PlatformNotFoundError, Registry
from tests.conftest import BUTTON_TEMPLATE, create_local_registry


@pytest.fixture
def registry(tmp_path: Path) -> Registry:
    """Registry over the standard local test components."""
    registry_dir = create_local_registry(tmp_path)
    return Registry(name=str(registry_dir), fs=LocalFilesystem(registry_dir))


class TestResolveComponent:
    """Tests for Registry.resolve_component."""

    def test_finds_component(self, registry: Registry) -> None:
        """Verify a component is found by platform and name."""
        # When
        component = registry.resolve_component("web", "button")

        # Then
        assert component.platform == "web"
        assert component.path == "web/button"
        assert component.dependencies == ["icon"]

    def test_unknown_platform_raises_platform_not_found(self, registry: Registry) -> None:
        """Verify an unknown platform fails at the platform level."""
        # When/Then
        with pytest.raises(PlatformNotFoundError) as exc_info:
            registry.resolve_component("desktop", "button")

        assert exc_info.value.platform == "desktop"
        assert isinstance(exc_info.value, ComponentLookupError)

    def test_unknown_name_raises_component_not_found(self, registry: Registry) -> None:
        """Verify an unknown name fails at the component level."""
        # When/Then
        with pytest.raises(ComponentNotFoundError) as exc_info:
            registry.resolve_component("mobile", "icon")

        assert exc_info.value.platform == "mobile"
        assert exc_info.value.name == "icon"
        assert isinstance(exc_info.value, ComponentLookupError)


class TestReadFile:
    """Tests for Registry file access."""

    def test_reads_component_file(self, registry: Registry) -> None:
        """Verify component files are read relative to the component directory."""
        # Given
        component = registry.resolve_component("web", "button")

        # When
        content = registry.read_component_file(component, "button.tsx.tmpl")

        # Then
        assert content == BUTTON_TEMPLATE.encode()

    def test_missing_file_raises(self, registry: Registry) -> None:
        """Verify a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            registry.read_file("web/button/missing.txt")


class TestScanComponents:
    """Tests for Registry.scan_components."""

    def test_scan_runs_once(self) -> None:
        """Verify the index is built once per registry."""
        # Given
        registry = Registry(
            name="memory",
            fs=MemoryFilesystem({"card/shry.yaml": b"name: card\nplatform: web\nfiles: []\n"}),
            commit="abc123",
        )

        # When
        with patch("shry.registry.scan_components", wraps=component_module.scan_components) as mock_scan:
            first = registry.scan_components()
            second = registry.scan_components()

        # Then
        assert first is second
        assert mock_scan.call_count == 1
        assert registry.is_git
