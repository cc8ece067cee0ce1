"""Command line interface for stackoverflow-auth."""

from .main import cli, main

__all__ = ["cli", "main"]
