"""Shared test fixtures for shry tests."""

import os
import subprocess
from pathlib import Path
from typing import Any, NamedTuple

import pytest
import yaml
from typer.testing import CliRunner

from shry.component_schema import COMPONENT_CONFIG_FILE
from shry.project_config import PROJECT_CONFIG_FILE

GIT_ENV = {
    **os.environ,
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@test.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@test.com",
}

BUTTON_TEMPLATE = "export const {{name}} = () => <button class=\"{{ prefix }}-button\" />;\n"


def git_init(work_dir: Path) -> None:
    """Initialize a git repository with a fixed default branch."""
    subprocess.run(
        ["git", "init", "--initial-branch=main"], cwd=work_dir, check=True, capture_output=True
    )


def git_commit_all(work_dir: Path, message: str) -> str:
    """Stage all changes, commit, and return the new commit hash.

    Uses GIT_ENV for deterministic author/committer identity.
    """
    subprocess.run(["git", "add", "-A"], cwd=work_dir, check=True, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", message],
        cwd=work_dir, check=True, capture_output=True, env=GIT_ENV,
    )
    return subprocess.run(
        ["git", "rev-parse", "HEAD"],
        cwd=work_dir, check=True, capture_output=True, text=True,
    ).stdout.strip()


def write_component(
    registry_dir: Path,
    directory: str,
    manifest: dict[str, Any],
    files: dict[str, str] | None = None,
) -> Path:
    """Write a component manifest and its source files.

    Args:
        registry_dir: Root of the registry.
        directory: Component directory relative to the registry root.
        manifest: Content of shry.yaml.
        files: Source files relative to the component directory.

    Returns:
        Path to the component directory.
    """
    component_dir = registry_dir / directory
    component_dir.mkdir(parents=True, exist_ok=True)
    (component_dir / COMPONENT_CONFIG_FILE).write_text(yaml.dump(manifest, sort_keys=False))
    for relative, content in (files or {}).items():
        path = component_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return component_dir


def write_button_component(registry_dir: Path, dependencies: list[str] | None = None) -> Path:
    """Write the web/button component used across tests."""
    manifest: dict[str, Any] = {
        "name": "button",
        "title": "Button",
        "description": "A clickable button",
        "category": "Forms",
        "platform": "web",
        "files": [{"src": "button.tsx.tmpl", "dst": "{{name}}.tsx"}],
    }
    if dependencies:
        manifest["dependencies"] = dependencies
    return write_component(
        registry_dir,
        "web/button",
        manifest,
        {"button.tsx.tmpl": BUTTON_TEMPLATE},
    )


def create_local_registry(tmp_path: Path) -> Path:
    """Create a registry directory with web/button and web/icon components."""
    registry_dir = tmp_path / "registry"
    registry_dir.mkdir()
    write_button_component(registry_dir, dependencies=["icon"])
    write_component(
        registry_dir,
        "web/icon",
        {
            "name": "icon",
            "platform": "web",
            "files": [{"src": "icon.svg", "dst": "assets/icon.svg"}],
        },
        {"icon.svg": "<svg />\n"},
    )
    write_component(
        registry_dir,
        "mobile/button",
        {
            "name": "button",
            "platform": "mobile",
            "files": [{"src": "Button.kt", "dst": "Button.kt"}],
        },
        {"Button.kt": "class Button\n"},
    )
    return registry_dir


class FakeRegistry(NamedTuple):
    """Result of creating a fake git registry for testing."""

    url: str
    work_dir: Path
    commit_hash: str


def create_fake_registry(tmp_path: Path) -> FakeRegistry:
    """Create a local git repo holding the components of create_local_registry.

    Returns a FakeRegistry with the file:// URL, the working directory for
    further commits, and the commit hash.
    """
    work_dir = create_local_registry(tmp_path)
    git_init(work_dir)
    commit_hash = git_commit_all(work_dir, "Initial")
    return FakeRegistry(url=f"file://{work_dir}", work_dir=work_dir, commit_hash=commit_hash)


def write_project_config(project_dir: Path, registry: str, platform: str = "web", **variables: Any) -> Path:
    """Write a .shry.yaml to project_dir."""
    path = project_dir / PROJECT_CONFIG_FILE
    path.write_text(
        yaml.dump({"registry": registry, "platform": platform, "variables": variables}, sort_keys=False)
    )
    return path


class ScriptedInteraction:
    """UserInteraction answering from a fixed script and recording questions."""

    def __init__(
        self,
        choices: list[str] | None = None,
        confirms: list[bool] | None = None,
        selections: list[str | None] | None = None,
    ) -> None:
        self.choices = list(choices or [])
        self.confirms = list(confirms or [])
        self.selections = list(selections or [])
        self.questions: list[tuple[str, list[str]]] = []
        self.diffs: list[tuple[str, str, str]] = []

    def choose(self, title: str, options: list[str]) -> str:
        self.questions.append((title, options))
        if not self.choices:
            msg = f"Unexpected question: {title}"
            raise AssertionError(msg)
        return self.choices.pop(0)

    def confirm(self, title: str, description: str = "") -> bool:
        self.questions.append((title, ["yes", "no"]))
        return self.confirms.pop(0)

    def show_diff(self, old: str, new: str, path: str) -> None:
        self.diffs.append((old, new, path))

    def select(self, title: str, items: list[str]) -> str | None:
        self.questions.append((title, items))
        return self.selections.pop(0)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def shry_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point cache and global config at tmp_path and chdir into a project dir.

    Returns the (empty) project directory.
    """
    monkeypatch.setenv("SHRY_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("SHRY_GLOBAL_CONFIG", str(tmp_path / "config" / "config.yaml"))
    monkeypatch.delenv("SHRY_VERBOSE", raising=False)
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    monkeypatch.chdir(project_dir)
    return project_dir
