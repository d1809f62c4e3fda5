"""harperext package."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("harperext")
except PackageNotFoundError:
    __version__ = "0.0.0"
