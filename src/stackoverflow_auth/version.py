"""Centralized package information for stackoverflow-auth."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["PACKAGE_NAME", "__version__"]

PACKAGE_NAME = "stackoverflow-auth"

try:
    __version__ = version(PACKAGE_NAME)
except PackageNotFoundError:
    # Running from a source checkout without installation
    __version__ = "unknown"
