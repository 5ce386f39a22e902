"""Registry location handling.

A registry location is either a filesystem path or a git host/path,
optionally followed by ``@ref``. Classification rules:

1. Absolute path, Windows volume path, or starts with ``.`` or ``/`` -> local
2. Everything else -> git
"""

import hashlib
import os
import re
from pathlib import PureWindowsPath

from shry.global_config import RegistryAuth

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Hex digits of the location digest appended to cache directory names
CACHE_KEY_DIGEST_LENGTH = 12


def is_git_location(location: str) -> bool:
    """Return True if location refers to a git repository."""
    if not location:
        return False
    if os.path.isabs(location) or PureWindowsPath(location).drive:
        return False
    return not location.startswith((".", "/"))


def split_registry_spec(spec: str) -> tuple[str, str]:
    """Split ``location@ref`` into location and ref.

    The user part of SSH style locations (``git@host:org/repo``) is not
    taken for a ref separator.

    Returns:
        Tuple of (location, ref); ref is empty when not given.
    """
    scheme = _SCHEME_PATTERN.match(spec)
    offset = scheme.end() if scheme else 0
    rest = spec[offset:]

    host_end = min((i for i in (rest.find("/"), rest.find(":")) if i >= 0), default=len(rest))
    at = rest.find("@")
    if 0 <= at < host_end:
        at = rest.find("@", at + 1)

    if at < 0:
        return spec, ""
    return spec[: offset + at], rest[at + 1 :]


def clone_url(location: str, auth: RegistryAuth | None = None) -> str:
    """Return the URL git should clone for location.

    Locations with a scheme or in ``git@host:path`` form are used as-is.
    Bare ``host/path`` locations use HTTPS, or SSH when only SSH
    credentials are configured.
    """
    if _SCHEME_PATTERN.match(location) or location.startswith("git@"):
        return location
    if auth is not None and auth.http is None and auth.ssh is not None:
        return f"ssh://git@{location}"
    return f"https://{location}"


def cache_key(location: str) -> str:
    """Return a filesystem-safe directory name for location.

    The readable prefix is lossy, so a digest of the full location keeps
    distinct locations in distinct directories.
    """
    readable = _UNSAFE_CHARS.sub("_", location).strip("_")
    digest = hashlib.sha256(location.encode()).hexdigest()[:CACHE_KEY_DIGEST_LENGTH]
    return f"{readable}-{digest}"


def display_url(url: str) -> str:
    """Strip the scheme from a remote URL for display."""
    return _SCHEME_PATTERN.sub("", url)
