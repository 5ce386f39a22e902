"""Registry access.

A Registry is a read-only handle over a directory of components, either a
live local directory or an in-memory snapshot of a git commit.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from shry.component import ComponentIndex, scan_components
from shry.component_schema import ComponentSchema
from shry.filesystem import ReadOnlyFilesystem


class ComponentLookupError(Exception):
    """Base class for failures to find a component in a registry."""


class PlatformNotFoundError(ComponentLookupError):
    """Raised when a registry has no components for a platform."""

    def __init__(self, platform: str) -> None:
        """Initialize with the platform that was looked up."""
        self.platform = platform
        super().__init__(f"No components found for platform '{platform}'")


class ComponentNotFoundError(ComponentLookupError):
    """Raised when a platform has no component with the given name."""

    def __init__(self, platform: str, name: str) -> None:
        """Initialize with the platform and component name."""
        self.platform = platform
        self.name = name
        super().__init__(f"Component '{name}' not found for platform '{platform}'")


@dataclass
class Registry:
    """A resolved registry.

    Attributes:
        name: Location the registry was resolved from.
        fs: Filesystem view of the registry root.
        commit: Commit hash of the snapshot, None for local directories.
        ref: Reference the snapshot was taken from (empty for the default branch).
    """

    name: str
    fs: ReadOnlyFilesystem
    commit: str | None = None
    ref: str = ""
    _index: ComponentIndex | None = field(default=None, init=False, repr=False)

    @property
    def is_git(self) -> bool:
        """True if this registry is a snapshot of a git repository."""
        return self.commit is not None

    def read_file(self, path: str) -> bytes:
        """Read a file relative to the registry root.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        return self.fs.read_bytes(path)

    def read_component_file(self, component: ComponentSchema, src: str) -> bytes:
        """Read a file relative to a component's directory."""
        return self.read_file(str(PurePosixPath(component.path) / src))

    def scan_components(self) -> ComponentIndex:
        """Return all components in the registry by platform and name.

        The registry does not change during a command, so the scan runs once.
        """
        if self._index is None:
            self._index = scan_components(self.fs, ".")
        return self._index

    def resolve_component(self, platform: str, name: str) -> ComponentSchema:
        """Find a single component.

        Raises:
            PlatformNotFoundError: If no component targets platform.
            ComponentNotFoundError: If platform has no component called name.
        """
        components = self.scan_components()
        platform_components = components.get(platform)
        if not platform_components:
            raise PlatformNotFoundError(platform)
        component = platform_components.get(name)
        if component is None:
            raise ComponentNotFoundError(platform, name)
        return component
