"""Component add functionality for shry.

Copies a component's files from a registry into the project, substituting
variables into paths and contents, asking the user what to do with files
that already exist, and then adding the component's dependencies.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from shry.component_schema import ComponentSchema
from shry.interaction import UserInteraction
from shry.project_config import ProjectConfig
from shry.registry import Registry
from shry.template import resolve


class ConflictChoice(str, Enum):
    """Answers offered when a destination file already exists."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    DIFF = "diff"


class FileStatus(str, Enum):
    """What happened to a single destination file."""

    ADDED = "added"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    OVERWRITTEN = "overwritten"


class DestinationConflictError(Exception):
    """Raised when an existing destination file was neither skipped nor overwritten."""

    def __init__(self, path: Path) -> None:
        """Initialize with the destination path."""
        self.path = path
        super().__init__(f"Destination file already exists: {path}")


@dataclass
class FileOutcome:
    """Result of writing one component file."""

    component: str
    dst: str
    status: FileStatus


@dataclass
class AddResult:
    """Components added so far and what happened to their files.

    Pass the same instance through recursive calls; it doubles as the set
    of components that must not be added again.
    """

    components: list[str] = field(default_factory=list)
    files: list[FileOutcome] = field(default_factory=list)

    def __contains__(self, name: object) -> bool:
        return name in self.components

    def count(self, status: FileStatus) -> int:
        """Number of files with the given status."""
        return sum(1 for outcome in self.files if outcome.status == status)


class AddListener(Protocol):
    """Receives progress while components are added."""

    def component_started(self, component: ComponentSchema, is_dependency: bool) -> None:
        """Called before the files of a component are written."""
        ...

    def file_processed(self, outcome: FileOutcome) -> None:
        """Called after each destination file is handled."""
        ...


def component_variables(component: ComponentSchema, project: ProjectConfig) -> dict[str, Any]:
    """Project variables layered over the component's defaults."""
    return {**component.variables, **project.variables}


def add_component(
    project: ProjectConfig,
    registry: Registry,
    name: str,
    interaction: UserInteraction,
    result: AddResult | None = None,
    listener: AddListener | None = None,
) -> AddResult:
    """Add a component and, after it, its dependencies.

    A component already in result is skipped, which also stops cyclic
    dependencies. Destination paths are validated before any file of the
    component is touched; a variable missing only from file contents
    aborts when that file is reached. Files written before a failure stay
    on disk.

    Args:
        project: Project config (platform, variables, project directory).
        registry: Registry to read the component from.
        name: Component name within the project's platform.
        interaction: Used to resolve conflicts with existing files.
        result: Accumulated result of the enclosing call, if any.
        listener: Optional progress receiver.

    Returns:
        The accumulated AddResult.

    Raises:
        PlatformNotFoundError: If the registry has nothing for the platform.
        ComponentNotFoundError: If the component (or a dependency) is unknown.
        MissingVariablesError: If a destination path uses an unset variable.
        VariableNotDefinedError: If file contents use an unset variable.
        DestinationConflictError: If a conflict was left unresolved.
        OSError: If reading a source or writing a destination fails.
    """
    if result is None:
        result = AddResult()
    if name in result:
        return result

    is_dependency = bool(result.components)
    component = registry.resolve_component(project.platform, name)
    variables = component_variables(component, project)
    resolved_files = component.resolve_files(variables)

    if listener is not None:
        listener.component_started(component, is_dependency)

    for file in resolved_files:
        content = _render_content(registry.read_component_file(component, file.src), variables)
        status = _write_destination(project.project_dir / file.dst, file.dst, content, interaction)

        outcome = FileOutcome(component=component.name, dst=file.dst, status=status)
        result.files.append(outcome)
        if listener is not None:
            listener.file_processed(outcome)

    result.components.append(component.name)

    for dependency in component.dependencies:
        add_component(project, registry, dependency, interaction, result, listener)

    return result


def _render_content(source: bytes, variables: dict[str, Any]) -> bytes:
    """Substitute variables into text files; binary files are copied as-is."""
    try:
        text = source.decode("utf-8")
    except UnicodeDecodeError:
        return source
    return resolve(text, variables).encode("utf-8")


def _write_destination(
    dst_path: Path,
    dst: str,
    content: bytes,
    interaction: UserInteraction,
) -> FileStatus:
    """Write content to dst_path, consulting the user if it already exists."""
    if not dst_path.exists():
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        dst_path.write_bytes(content)
        return FileStatus.ADDED

    existing = dst_path.read_bytes()
    if existing == content:
        return FileStatus.UNCHANGED

    title = f"File already exists: {dst}"
    choice = interaction.choose(
        title, [ConflictChoice.SKIP.value, ConflictChoice.OVERWRITE.value, ConflictChoice.DIFF.value]
    )

    if choice == ConflictChoice.DIFF:
        interaction.show_diff(
            existing.decode("utf-8", errors="replace"),
            content.decode("utf-8", errors="replace"),
            dst,
        )
        choice = interaction.choose(title, [ConflictChoice.SKIP.value, ConflictChoice.OVERWRITE.value])

    if choice == ConflictChoice.SKIP:
        return FileStatus.SKIPPED

    if choice == ConflictChoice.OVERWRITE:
        dst_path.write_bytes(content)
        return FileStatus.OVERWRITTEN

    raise DestinationConflictError(dst_path)
