"""Global configuration (~/.config/shry/config.yaml).

Stores the registries a user has added and the credentials used to
access them. Changes are only written when save_global_config is called.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shry.errors import format_validation_errors

GLOBAL_CONFIG_FILE = "config.yaml"


class HttpAuth(BaseModel):
    """HTTP basic authentication (password may be an access token)."""

    username: str
    password: str = ""


class SshAuth(BaseModel):
    """SSH key authentication."""

    model_config = ConfigDict(populate_by_name=True)

    private_key_path: str = Field(alias="privateKeyPath", description="Path to the private key")
    password: str | None = Field(default=None, description="Passphrase of an encrypted key")


class RegistryAuth(BaseModel):
    """Credentials for one registry. HTTP wins when both are set."""

    http: HttpAuth | None = None
    ssh: SshAuth | None = None

    @property
    def is_anonymous(self) -> bool:
        """True when no credentials are configured."""
        return self.http is None and self.ssh is None


class GlobalConfig(BaseModel):
    """Root schema for the global config file."""

    registries: dict[str, RegistryAuth] = Field(
        default_factory=dict,
        description="Registry location to credentials",
    )

    # Location of the config file; not serialized
    config_path: Path | None = Field(default=None, exclude=True)

    @field_validator("registries", mode="before")
    @classmethod
    def normalize_entries(cls, v: Any) -> Any:
        """Accept null for the mapping and for entries without credentials."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {key: {} if value is None else value for key, value in v.items()}
        return v

    def registry_locations(self) -> list[str]:
        """Return the configured registry locations, sorted."""
        return sorted(self.registries)

    def get_auth(self, location: str) -> RegistryAuth | None:
        """Return the credentials for location, if any are configured."""
        auth = self.registries.get(location)
        if auth is None or auth.is_anonymous:
            return None
        return auth

    def add_registry(self, location: str) -> None:
        """Record location without credentials unless it is already known."""
        self.registries.setdefault(location, RegistryAuth())

    def set_auth(self, location: str, auth: RegistryAuth) -> None:
        """Set the credentials for location, replacing existing ones."""
        self.registries[location] = auth

    def remove_auth(self, location: str) -> bool:
        """Drop the credentials for location but keep it registered.

        Returns:
            True if location was configured.
        """
        if location not in self.registries:
            return False
        self.registries[location] = RegistryAuth()
        return True

    def remove_registry(self, location: str) -> bool:
        """Forget location entirely.

        Returns:
            True if location was configured.
        """
        return self.registries.pop(location, None) is not None


def load_global_config(config_path: Path) -> GlobalConfig:
    """Load the global config, or an empty one if the file does not exist.

    Raises:
        ValueError: If the YAML is invalid or does not match the schema.
    """
    if not config_path.exists():
        return GlobalConfig(config_path=config_path)

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in '{config_path}': {e}"
        raise ValueError(msg) from e

    try:
        config = GlobalConfig.model_validate(data or {})
    except ValidationError as e:
        clean_errors = format_validation_errors(e)
        msg = f"Invalid global config '{config_path}': {clean_errors}"
        raise ValueError(msg) from e

    config.config_path = config_path
    return config


def save_global_config(config: GlobalConfig) -> Path:
    """Write config back to its file, creating parent directories.

    Raises:
        ValueError: If the config has no file location.
    """
    if config.config_path is None:
        msg = "Global config has no file location"
        raise ValueError(msg)

    config.config_path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    config.config_path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    return config.config_path
