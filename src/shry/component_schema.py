"""Component manifest schema definitions using Pydantic.

This module defines the schema for shry.yaml files that describe a
reusable component inside a registry.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from shry.template import find_variables, resolve

# Name of the manifest file marking a component directory
COMPONENT_CONFIG_FILE = "shry.yaml"

ScalarValue = str | int | float | bool | None


class PreviewConfig(BaseModel):
    """Optional preview metadata shown when browsing components."""

    image: str | None = Field(default=None, description="Preview image URL or path")
    demo: str | None = Field(default=None, description="Demo URL")


class FileSpec(BaseModel):
    """A file copied into the project when the component is added."""

    src: str = Field(description="Source path relative to the component directory")
    dst: str = Field(description="Destination path in the project, may contain placeholders")


class ResolvedFile(BaseModel):
    """A FileSpec whose destination has been substituted."""

    src: str
    dst: str


class MissingVariablesError(Exception):
    """Raised when destination paths reference variables that are not set."""

    def __init__(self, component_name: str, names: list[str]) -> None:
        """Initialize with the component and the missing variable names."""
        self.component_name = component_name
        self.names = names
        joined = ", ".join(f"'{name}'" for name in names)
        super().__init__(f"Required variable(s) {joined} not defined for component '{component_name}'")


class ComponentSchema(BaseModel):
    """Root schema for shry.yaml files."""

    name: str = Field(description="Identifier, unique per platform within a registry")
    platform: str = Field(description="Platform this component is for")
    title: str | None = Field(default=None, description="Human-readable title")
    description: str | None = Field(default=None, description="One-line description")
    category: str | None = Field(default=None, description="Category used for grouping")
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    variables: dict[str, ScalarValue] = Field(
        default_factory=dict,
        description="Default variable values",
    )
    files: list[FileSpec] = Field(description="Files to copy into the project")
    dependencies: list[str] = Field(
        default_factory=list,
        description="Names of components (same platform) added along with this one",
    )

    # Directory of the component inside the registry; set when loading
    path: str = Field(default=".", exclude=True)

    @field_validator("name", "platform")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty identifiers."""
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("variables", "preview", mode="before")
    @classmethod
    def default_when_null(cls, v: Any) -> Any:
        """Treat an explicit YAML null like an omitted section."""
        if v is None:
            return {}
        return v

    @field_validator("dependencies", mode="before")
    @classmethod
    def dependencies_default_when_null(cls, v: Any) -> Any:
        """Treat an explicit YAML null like an omitted list."""
        if v is None:
            return []
        return v

    @property
    def display_title(self) -> str:
        """Title if set, otherwise the name."""
        return self.title or self.name

    def resolve_files(self, variables: dict[str, Any]) -> list[ResolvedFile]:
        """Substitute variables into every destination path.

        All variables referenced by destination paths are checked before any
        substitution happens. Variables used only in file contents are not
        checked here.

        Args:
            variables: Project variables.

        Returns:
            The resolved files in declaration order, src unchanged.

        Raises:
            MissingVariablesError: If a destination references an unset variable.
        """
        required: dict[str, None] = {}
        for file in self.files:
            for name in find_variables(file.dst):
                required.setdefault(name, None)

        missing = [name for name in required if name not in variables]
        if missing:
            raise MissingVariablesError(self.name, missing)

        return [ResolvedFile(src=file.src, dst=resolve(file.dst, variables)) for file in self.files]
