"""shry - add and share components for generic projects and platforms."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shry")
except PackageNotFoundError:
    __version__ = "0.0.0"
