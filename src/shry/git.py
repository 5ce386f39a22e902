"""Git operations for shry.

Thin wrappers around the git executable used by the registry cache. All
commands run non-interactively so a remote asking for credentials fails
fast with AuthenticationRequiredError instead of blocking on a prompt.
"""

import base64
import errno
import os
import shlex
import stat
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from shry import cli_logger
from shry.global_config import RegistryAuth

# Fragments of git/ssh stderr meaning the remote wants (other) credentials
AUTH_FAILURE_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "terminal prompts disabled",
    "invalid username or password",
    "permission denied (publickey",
    "http basic: access denied",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
)

HEADS_REFSPEC = "+refs/heads/*:refs/heads/*"
TAGS_REFSPEC = "+refs/tags/*:refs/tags/*"

# Written to info/attributes of cached clones so archives keep every file verbatim
CHECKOUT_ATTRIBUTES = "* -export-ignore -export-subst\n"


class GitCommandError(Exception):
    """Raised when a git command fails."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        """Initialize with the failed command and git's error output."""
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr.splitlines()[-1] if self.stderr else f"exit code {returncode}"
        super().__init__(f"git {' '.join(args)} failed: {detail}")


class AuthenticationRequiredError(GitCommandError):
    """Raised when the remote rejects the request for lack of credentials."""


class RevisionNotFoundError(Exception):
    """Raised when a ref cannot be resolved to a commit."""

    def __init__(self, revision: str) -> None:
        """Initialize with the revision that failed to resolve."""
        self.revision = revision
        super().__init__(f"Reference '{revision}' not found")


def is_auth_failure(stderr: str) -> bool:
    """Return True if git's error output indicates missing or bad credentials."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in AUTH_FAILURE_MARKERS)


def run_git(
    args: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """Run a git command and return the completed process.

    Args:
        args: Arguments after ``git``.
        cwd: Working directory.
        env: Extra environment variables.
        text: Decode stdout as text (False for binary output).

    Raises:
        AuthenticationRequiredError: If the remote asked for credentials.
        GitCommandError: If git exits with a non-zero status.
    """
    cli_logger.debug(f"$ git {' '.join(args)}")
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        env={**os.environ, "GIT_TERMINAL_PROMPT": "0", **(env or {})},
    )
    stderr = result.stderr.decode(errors="replace")
    if stderr.strip():
        cli_logger.debug(stderr.rstrip())

    if result.returncode != 0:
        if is_auth_failure(stderr):
            raise AuthenticationRequiredError(args, result.returncode, stderr)
        raise GitCommandError(args, result.returncode, stderr)

    if text:
        return subprocess.CompletedProcess(
            result.args, result.returncode, result.stdout.decode(), stderr
        )
    return subprocess.CompletedProcess(result.args, result.returncode, result.stdout, stderr)


def is_git_available() -> bool:
    """Check if git command is available on the system."""
    try:
        subprocess.run(
            ["git", "--version"],
            capture_output=True,
            check=True,
        )
        return True
    except (FileNotFoundError, subprocess.CalledProcessError):
        return False


def is_bare_repo(path: Path) -> bool:
    """Check if a directory is itself a bare git repository.

    A plain directory nested inside some other repository does not count.
    """
    if not path.is_dir():
        return False

    result = subprocess.run(
        ["git", "rev-parse", "--is-bare-repository"],
        cwd=path,
        capture_output=True,
        text=True,
    )
    return result.returncode == 0 and result.stdout.strip() == "true"


@contextmanager
def auth_environment(auth: RegistryAuth | None) -> Iterator[dict[str, str]]:
    """Yield environment variables that make git use the given credentials.

    HTTP credentials are sent as a basic auth header configured through
    ``GIT_CONFIG_*`` variables, so nothing is stored in the repository.
    SSH credentials select the identity file; a key passphrase is handed
    to ssh through a throwaway askpass script.

    Raises:
        FileNotFoundError: If the configured private key does not exist.
    """
    if auth is None or auth.is_anonymous:
        yield {}
        return

    if auth.http is not None:
        token = base64.b64encode(f"{auth.http.username}:{auth.http.password}".encode()).decode()
        yield {
            "GIT_CONFIG_COUNT": "1",
            "GIT_CONFIG_KEY_0": "http.extraHeader",
            "GIT_CONFIG_VALUE_0": f"Authorization: Basic {token}",
        }
        return

    assert auth.ssh is not None
    key_path = Path(auth.ssh.private_key_path).expanduser()
    if not key_path.is_file():
        raise FileNotFoundError(errno.ENOENT, "Private key not found", str(key_path))

    env = {
        "GIT_SSH_COMMAND": f"ssh -i {shlex.quote(str(key_path))} -o IdentitiesOnly=yes",
    }
    if not auth.ssh.password:
        yield env
        return

    with tempfile.TemporaryDirectory(prefix="shry-askpass-") as tmp:
        script = Path(tmp) / "askpass.sh"
        script.write_text('#!/bin/sh\nprintf "%s\\n" "$SHRY_SSH_KEY_PASSWORD"\n')
        script.chmod(stat.S_IRWXU)
        yield {
            **env,
            "SSH_ASKPASS": str(script),
            "SSH_ASKPASS_REQUIRE": "force",
            "SHRY_SSH_KEY_PASSWORD": auth.ssh.password,
        }


def clone_bare(url: str, dest: Path, env: dict[str, str] | None = None, progress: bool = False) -> None:
    """Clone url into dest as a bare repository.

    Raises:
        AuthenticationRequiredError: If the remote requires credentials.
        GitCommandError: If the clone fails.
    """
    args = ["clone", "--bare"]
    if progress:
        args.append("--progress")
    run_git([*args, url, str(dest)], env=env)


def fetch_origin(repo: Path, env: dict[str, str] | None = None, progress: bool = False) -> None:
    """Fetch all branches and tags from origin into a bare repository.

    Branches deleted on the remote are pruned. Nothing to fetch is not an error.

    Raises:
        AuthenticationRequiredError: If the remote requires credentials.
        GitCommandError: If the fetch fails.
    """
    args = ["fetch", "--prune"]
    if progress:
        args.append("--progress")
    run_git([*args, "origin", HEADS_REFSPEC, TAGS_REFSPEC], cwd=repo, env=env)


def resolve_revision(repo: Path, revision: str) -> str:
    """Resolve a branch, tag or commit-ish to a full commit hash.

    Raises:
        RevisionNotFoundError: If the revision does not name a commit.
    """
    try:
        result = run_git(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"], cwd=repo)
    except GitCommandError as e:
        raise RevisionNotFoundError(revision) from e
    return result.stdout.strip()


def archive_tree(repo: Path, commit: str) -> bytes:
    """Return the tree of commit as an uncompressed tar archive.

    The archive matches a checkout of commit: export-ignore and
    export-subst attributes from the tree are overridden through the
    repository's info/attributes, which takes precedence over them.

    Raises:
        GitCommandError: If the archive cannot be created.
    """
    attributes = repo / "info" / "attributes"
    if not attributes.is_file() or attributes.read_text() != CHECKOUT_ATTRIBUTES:
        attributes.parent.mkdir(parents=True, exist_ok=True)
        attributes.write_text(CHECKOUT_ATTRIBUTES)

    result = run_git(["archive", "--format=tar", commit], cwd=repo, text=False)
    return result.stdout


def get_remote_url(repo: Path, remote: str = "origin") -> str | None:
    """Return the URL of remote, or None if it is not configured."""
    try:
        result = run_git(["remote", "get-url", remote], cwd=repo)
    except GitCommandError:
        return None
    return result.stdout.strip() or None
