"""Tests for global configuration."""

from pathlib import Path

import pytest
import yaml

from shry.global_config import (
    GlobalConfig,
    HttpAuth,
    RegistryAuth,
    SshAuth,
    load_global_config,
    save_global_config,
)


class TestLoadGlobalConfig:
    """Tests for load_global_config function."""

    def test_missing_file_is_empty_config(self, tmp_path: Path) -> None:
        """Verify a missing file yields an empty config bound to its path."""
        # Given
        path = tmp_path / "config.yaml"

        # When
        config = load_global_config(path)

        # Then
        assert config.registries == {}
        assert config.config_path == path
        assert not path.exists()

    def test_loads_http_and_ssh_credentials(self, tmp_path: Path) -> None:
        """Verify both auth kinds load, with the camelCase key on disk."""
        # Given
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({
            "registries": {
                "github.com/org/public": None,
                "github.com/org/http": {"http": {"username": "me", "password": "token"}},
                "github.com/org/ssh": {"ssh": {"privateKeyPath": "~/.ssh/id_ed25519", "password": "pw"}},
            }
        }))

        # When
        config = load_global_config(path)

        # Then
        assert config.registry_locations() == [
            "github.com/org/http",
            "github.com/org/public",
            "github.com/org/ssh",
        ]
        assert config.get_auth("github.com/org/public") is None
        http = config.get_auth("github.com/org/http")
        assert http is not None and http.http == HttpAuth(username="me", password="token")
        ssh = config.get_auth("github.com/org/ssh")
        assert ssh is not None and ssh.ssh is not None
        assert ssh.ssh.private_key_path == "~/.ssh/id_ed25519"
        assert ssh.ssh.password == "pw"

    def test_empty_file_is_empty_config(self, tmp_path: Path) -> None:
        """Verify an empty file is accepted."""
        # Given
        path = tmp_path / "config.yaml"
        path.write_text("")

        # Then
        assert load_global_config(path).registries == {}

    def test_invalid_config_raises(self, tmp_path: Path) -> None:
        """Verify schema errors raise ValueError naming the field."""
        # Given
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"registries": {"github.com/org/x": {"http": {"password": "p"}}}}))

        # When/Then
        with pytest.raises(ValueError, match="username"):
            load_global_config(path)


class TestGlobalConfigChanges:
    """Tests for GlobalConfig mutation and saving."""

    def test_changes_only_persist_on_save(self, tmp_path: Path) -> None:
        """Verify mutation alone does not write the file."""
        # Given
        path = tmp_path / "nested" / "config.yaml"
        config = load_global_config(path)

        # When
        config.add_registry("github.com/org/components")

        # Then
        assert not path.exists()
        save_global_config(config)
        assert load_global_config(path).registry_locations() == ["github.com/org/components"]

    def test_saved_file_uses_camel_case_and_omits_nulls(self, tmp_path: Path) -> None:
        """Verify the on-disk format matches the documented layout."""
        # Given
        config = load_global_config(tmp_path / "config.yaml")
        config.set_auth("github.com/org/x", RegistryAuth(ssh=SshAuth(private_key_path="/keys/id")))

        # When
        path = save_global_config(config)

        # Then
        data = yaml.safe_load(path.read_text())
        assert data == {"registries": {"github.com/org/x": {"ssh": {"privateKeyPath": "/keys/id"}}}}

    def test_add_registry_keeps_existing_auth(self) -> None:
        """Verify adding a known registry does not drop its credentials."""
        # Given
        config = GlobalConfig()
        config.set_auth("github.com/org/x", RegistryAuth(http=HttpAuth(username="me")))

        # When
        config.add_registry("github.com/org/x")

        # Then
        assert config.get_auth("github.com/org/x") is not None

    def test_remove_auth_keeps_registry(self) -> None:
        """Verify remove_auth clears credentials only."""
        # Given
        config = GlobalConfig()
        config.set_auth("github.com/org/x", RegistryAuth(http=HttpAuth(username="me")))

        # When
        removed = config.remove_auth("github.com/org/x")

        # Then
        assert removed
        assert config.get_auth("github.com/org/x") is None
        assert config.registry_locations() == ["github.com/org/x"]
        assert not config.remove_auth("github.com/org/unknown")

    def test_remove_registry(self) -> None:
        """Verify remove_registry forgets the registry."""
        # Given
        config = GlobalConfig()
        config.add_registry("github.com/org/x")

        # Then
        assert config.remove_registry("github.com/org/x")
        assert not config.remove_registry("github.com/org/x")
        assert config.registry_locations() == []

    def test_save_without_path_raises(self) -> None:
        """Verify a config without file location cannot be saved."""
        with pytest.raises(ValueError, match="no file location"):
            save_global_config(GlobalConfig())
