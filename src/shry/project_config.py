"""Project configuration (.shry.yaml).

The project config records which registry and platform a project uses and
the variables substituted into component templates. It lives at the
project root and is found by walking up from the working directory.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from shry.component_schema import ScalarValue
from shry.errors import format_validation_errors
from shry.location import split_registry_spec

PROJECT_CONFIG_FILE = ".shry.yaml"


class ProjectNotFoundError(Exception):
    """Raised when no .shry.yaml exists in a directory or its parents."""

    def __init__(self, start: Path) -> None:
        """Initialize with the directory the search started from."""
        self.start = start
        super().__init__(f"No {PROJECT_CONFIG_FILE} found in {start} or any parent directory")


class ProjectConfig(BaseModel):
    """Schema for .shry.yaml files."""

    registry: str = Field(description="Registry location, optionally suffixed with @ref")
    platform: str = Field(description="Platform this project is for")
    variables: dict[str, ScalarValue] = Field(
        default_factory=dict,
        description="Variables substituted into component templates",
    )

    # Directory containing the config file; not serialized
    project_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    @field_validator("registry", "platform")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty values."""
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("variables", mode="before")
    @classmethod
    def default_when_null(cls, v: Any) -> Any:
        """Treat an explicit YAML null like an omitted mapping."""
        if v is None:
            return {}
        return v

    @property
    def registry_location(self) -> str:
        """Registry location without the @ref suffix."""
        return split_registry_spec(self.registry)[0]

    @property
    def registry_ref(self) -> str:
        """Pinned reference, or an empty string for the default branch."""
        return split_registry_spec(self.registry)[1]


def find_project_dir(start: Path) -> Path:
    """Find the nearest directory at or above start containing .shry.yaml.

    Raises:
        ProjectNotFoundError: If no ancestor has a project config.
    """
    start = start.resolve()
    for directory in (start, *start.parents):
        if (directory / PROJECT_CONFIG_FILE).is_file():
            return directory
    raise ProjectNotFoundError(start)


def load_project_config(project_dir: Path) -> ProjectConfig:
    """Load and validate .shry.yaml from project_dir.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is invalid or registry/platform are missing.
    """
    config_path = project_dir / PROJECT_CONFIG_FILE
    if not config_path.exists():
        msg = f"{PROJECT_CONFIG_FILE} not found at {config_path}"
        raise FileNotFoundError(msg)

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{config_path}': {e}"
        raise ValueError(msg) from e

    if not isinstance(data, dict):
        msg = f"Invalid project config '{config_path}': expected a mapping"
        raise ValueError(msg)

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid project config '{config_path}': {clean_errors}"
        raise ValueError(msg) from e

    config.project_dir = project_dir
    return config


def find_nearest_project_config(start: Path | None = None) -> ProjectConfig:
    """Find and load the project config nearest to start (default: cwd).

    Raises:
        ProjectNotFoundError: If no project config exists.
        ValueError: If the config is invalid.
    """
    project_dir = find_project_dir(start or Path.cwd())
    return load_project_config(project_dir)


def save_project_config(config: ProjectConfig) -> Path:
    """Write config to .shry.yaml in its project directory.

    Returns:
        Path of the written file.
    """
    config_path = config.project_dir / PROJECT_CONFIG_FILE
    config_path.write_text(
        yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
    )
    return config_path
