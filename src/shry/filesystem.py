"""Read-only filesystem views used by registries.

A registry is read either straight from a local directory or from a
snapshot of a git commit held in memory. Both expose the same small
interface so callers never need to know which one they have.

Paths are POSIX-style and relative to the filesystem root (``"."`` is the
root itself).
"""

import errno
import io
import tarfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol


@dataclass(frozen=True)
class DirEntry:
    """A single entry returned by list_dir."""

    name: str
    is_dir: bool


class ReadOnlyFilesystem(Protocol):
    """Capabilities a registry needs from its backing storage."""

    def read_bytes(self, path: str) -> bytes:
        """Return the full contents of the file at path."""
        ...

    def list_dir(self, path: str) -> list[DirEntry]:
        """Return the entries of the directory at path, sorted by name."""
        ...

    def is_file(self, path: str) -> bool:
        """Return True if path exists and is a regular file."""
        ...


def normalize_path(path: str) -> str:
    """Normalize a relative path to the form used as a lookup key.

    Raises:
        ValueError: If the path is absolute or escapes the root.
    """
    pure = PurePosixPath(path.replace("\\", "/"))
    if pure.is_absolute():
        msg = f"Path '{path}' must be relative to the registry root"
        raise ValueError(msg)

    parts: list[str] = []
    for part in pure.parts:
        if part == "..":
            if not parts:
                msg = f"Path '{path}' points outside the registry root"
                raise ValueError(msg)
            parts.pop()
        elif part != ".":
            parts.append(part)
    return "/".join(parts) or "."


def _not_found(path: str, kind: str = "file") -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, f"No such {kind} in registry", path)


class LocalFilesystem:
    """Live view of a directory on disk."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _resolve(self, path: str) -> Path:
        relative = normalize_path(path)
        return self.root if relative == "." else self.root / relative

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def list_dir(self, path: str) -> list[DirEntry]:
        """List a directory; symlinks are never reported as directories."""
        directory = self._resolve(path)
        return sorted(
            (
                DirEntry(name=child.name, is_dir=child.is_dir() and not child.is_symlink())
                for child in directory.iterdir()
            ),
            key=lambda entry: entry.name,
        )

    def is_file(self, path: str) -> bool:
        return self._resolve(path).is_file()


class MemoryFilesystem:
    """Immutable in-memory tree of files.

    Directories are implied by the file paths they contain.
    """

    def __init__(self, files: dict[str, bytes]) -> None:
        self._files = {normalize_path(path): content for path, content in files.items()}
        self._dirs: dict[str, set[str]] = {".": set()}
        for path in self._files:
            self._register_parents(path)

    def _register_parents(self, path: str) -> None:
        child = PurePosixPath(path)
        for parent in child.parents:
            key = str(parent)
            self._dirs.setdefault(key, set()).add(child.name)
            child = parent

    def read_bytes(self, path: str) -> bytes:
        key = normalize_path(path)
        try:
            return self._files[key]
        except KeyError:
            raise _not_found(path) from None

    def list_dir(self, path: str) -> list[DirEntry]:
        key = normalize_path(path)
        if key not in self._dirs:
            raise _not_found(path, "directory")
        prefix = "" if key == "." else f"{key}/"
        return [
            DirEntry(name=name, is_dir=f"{prefix}{name}" in self._dirs)
            for name in sorted(self._dirs[key])
        ]

    def is_file(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def __len__(self) -> int:
        return len(self._files)

    @classmethod
    def from_tar(cls, data: bytes) -> "MemoryFilesystem":
        """Build a filesystem from an uncompressed tar archive.

        Only regular files are kept; links and special entries are ignored.
        """
        files: dict[str, bytes] = {}
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as archive:
            for member in archive.getmembers():
                if not member.isfile():
                    continue
                extracted = archive.extractfile(member)
                if extracted is None:
                    continue
                files[member.name] = extracted.read()
        return cls(files)
