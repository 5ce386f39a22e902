"""Component loading and discovery.

Loads shry.yaml manifests from a registry filesystem and builds the
platform -> name -> component index used by every command.
"""

from collections.abc import Iterable
from pathlib import PurePosixPath

import yaml
from pydantic import ValidationError

from shry.component_schema import COMPONENT_CONFIG_FILE, ComponentSchema
from shry.errors import format_validation_errors
from shry.filesystem import ReadOnlyFilesystem, normalize_path

ComponentIndex = dict[str, dict[str, ComponentSchema]]

# Directories never scanned for components
IGNORED_DIRS = frozenset({".git"})


class ComponentLoadError(Exception):
    """Raised when a component manifest cannot be read or is invalid."""


class DuplicateComponentError(Exception):
    """Raised when two manifests declare the same platform and name."""

    def __init__(self, platform: str, name: str, first_path: str, second_path: str) -> None:
        """Initialize with the conflicting key and both locations."""
        self.platform = platform
        self.name = name
        self.paths = (first_path, second_path)
        super().__init__(
            f"Duplicate component '{name}' for platform '{platform}' "
            f"in '{first_path}' and '{second_path}'"
        )


def _join(directory: str, name: str) -> str:
    return name if directory == "." else str(PurePosixPath(directory) / name)


def load_component(fs: ReadOnlyFilesystem, path: str) -> ComponentSchema:
    """Load and validate the manifest in a component directory.

    Args:
        fs: Registry filesystem.
        path: Component directory relative to the filesystem root.

    Returns:
        Validated ComponentSchema with ``path`` set to the directory.

    Raises:
        ComponentLoadError: If the manifest is missing, not valid YAML or
            fails schema validation (e.g. empty name or platform).
    """
    directory = normalize_path(path)
    manifest_path = _join(directory, COMPONENT_CONFIG_FILE)

    try:
        content = fs.read_bytes(manifest_path)
    except FileNotFoundError as e:
        msg = f"Component manifest '{manifest_path}' not found"
        raise ComponentLoadError(msg) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{manifest_path}': {e}"
        raise ComponentLoadError(msg) from e

    if not isinstance(data, dict):
        msg = f"Invalid component '{manifest_path}': expected a mapping"
        raise ComponentLoadError(msg)

    try:
        component = ComponentSchema.model_validate(data)
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid component '{manifest_path}': {clean_errors}"
        raise ComponentLoadError(msg) from e

    component.path = directory
    return component


def scan_components(fs: ReadOnlyFilesystem, root: str = ".") -> ComponentIndex:
    """Find every component below root.

    A directory containing a manifest is a component and is not descended
    into further. Directories are visited in sorted order so a duplicate is
    always reported for the same pair of paths.

    Args:
        fs: Registry filesystem.
        root: Directory to start from.

    Returns:
        Mapping of platform to a mapping of component name to component.

    Raises:
        ComponentLoadError: If any manifest is invalid.
        DuplicateComponentError: If a (platform, name) pair occurs twice.
    """
    components: ComponentIndex = {}
    pending = [normalize_path(root)]

    while pending:
        directory = pending.pop()
        subdirs: list[str] = []

        for entry in fs.list_dir(directory):
            if not entry.is_dir or entry.name in IGNORED_DIRS:
                continue
            entry_path = _join(directory, entry.name)

            if not fs.is_file(_join(entry_path, COMPONENT_CONFIG_FILE)):
                subdirs.append(entry_path)
                continue

            component = load_component(fs, entry_path)
            platform_components = components.setdefault(component.platform, {})
            existing = platform_components.get(component.name)
            if existing is not None:
                raise DuplicateComponentError(
                    component.platform, component.name, existing.path, component.path
                )
            platform_components[component.name] = component

        # Reversed so the stack pops in sorted (depth-first) order
        pending.extend(reversed(subdirs))

    return components


def group_by_category(components: Iterable[ComponentSchema]) -> list[tuple[str, list[ComponentSchema]]]:
    """Group components by category for display.

    Uncategorized components come first under an empty category, followed
    by the categories in alphabetical order. Components are sorted by name
    within each group.
    """
    groups: dict[str, list[ComponentSchema]] = {}
    for component in components:
        groups.setdefault(component.category or "", []).append(component)

    return [
        (category, sorted(groups[category], key=lambda c: c.name))
        for category in sorted(groups)
    ]
