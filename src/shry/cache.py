"""Registry cache.

Resolves registry locations to Registry instances. Local directories are
used directly. Git registries are kept as bare clones under the cache
directory (cloned on first use, fetched on every later use); each command
reads from an in-memory snapshot of the requested commit, so refs always
reflect the latest fetch and nothing is checked out on disk.
"""

import errno
import shutil
from pathlib import Path

from shry import git
from shry.filesystem import LocalFilesystem, MemoryFilesystem
from shry.global_config import GlobalConfig
from shry.location import cache_key, clone_url, display_url, is_git_location
from shry.registry import Registry


class RegistryCacheError(Exception):
    """Raised when a cached registry cannot be used."""


class RegistryCache:
    """Cache of git registries on disk."""

    def __init__(self, base_dir: Path, global_config: GlobalConfig, verbose: bool = False) -> None:
        self.base_dir = base_dir
        self.global_config = global_config
        self.verbose = verbose

    def repo_path(self, location: str) -> Path:
        """Directory holding the bare clone for location."""
        return self.base_dir / cache_key(location)

    def get_registry(self, location: str, ref: str = "", project_root: Path | None = None) -> Registry:
        """Resolve location to a Registry.

        Args:
            location: Local path or git location (without ``@ref``).
            ref: Branch, tag or commit to use for git registries. Empty means
                the default branch.
            project_root: Base for relative local paths (default: cwd).

        Returns:
            Registry over the local directory or over a snapshot of the commit.

        Raises:
            FileNotFoundError: If a local registry directory does not exist,
                or a configured SSH key is missing.
            AuthenticationRequiredError: If the remote requires credentials.
            GitCommandError: If cloning or fetching fails.
            RegistryCacheError: If the cache entry is unusable or ref cannot
                be resolved.
        """
        if not is_git_location(location):
            return self._get_local_registry(location, project_root or Path.cwd())

        repo_path = self._update_clone(location)

        revision = ref or "HEAD"
        try:
            commit = git.resolve_revision(repo_path, revision)
        except git.RevisionNotFoundError as e:
            msg = f"Failed to resolve reference '{revision}' in registry {location}"
            raise RegistryCacheError(msg) from e

        fs = MemoryFilesystem.from_tar(git.archive_tree(repo_path, commit))
        return Registry(name=location, fs=fs, commit=commit, ref=ref)

    def _get_local_registry(self, location: str, project_root: Path) -> Registry:
        path = Path(location).expanduser()
        if not path.is_absolute():
            path = project_root / path
        path = path.resolve()

        if not path.is_dir():
            raise FileNotFoundError(errno.ENOENT, "Registry directory not found", str(path))

        return Registry(name=str(path), fs=LocalFilesystem(path))

    def _update_clone(self, location: str) -> Path:
        """Clone location if absent, fetch otherwise; return the clone path."""
        repo_path = self.repo_path(location)
        auth = self.global_config.get_auth(location)

        with git.auth_environment(auth) as env:
            if git.is_bare_repo(repo_path):
                git.fetch_origin(repo_path, env=env, progress=self.verbose)
                return repo_path

            if repo_path.exists():
                msg = f"Cache entry {repo_path} exists but is not a git repository"
                raise RegistryCacheError(msg)

            self.base_dir.mkdir(parents=True, exist_ok=True)
            try:
                git.clone_bare(clone_url(location, auth), repo_path, env=env, progress=self.verbose)
            except git.GitCommandError:
                # A failed clone must not look like a usable cache entry
                shutil.rmtree(repo_path, ignore_errors=True)
                raise

        return repo_path

    def list_registries(self) -> list[str]:
        """Return the remote URLs of all cached clones, without scheme."""
        if not self.base_dir.is_dir():
            return []

        registries = []
        for entry in sorted(self.base_dir.iterdir()):
            if not git.is_bare_repo(entry):
                continue
            url = git.get_remote_url(entry)
            if url is not None:
                registries.append(display_url(url))
        return registries

    def clear(self) -> None:
        """Delete the whole cache directory."""
        if self.base_dir.exists():
            shutil.rmtree(self.base_dir)
