"""Shared plumbing for the stackoverflow-auth commands."""

import json
import logging
import os
import traceback
from pathlib import Path
from typing import Any

import click

from stackoverflow_auth.config import StackOverflowConfigModel, load_config, resolve_config

DEBUG_ENV = "STACKOVERFLOW_AUTH_DEBUG"

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


def debug_requested(flag: bool) -> bool:
    """``--debug`` wins; otherwise STACKOVERFLOW_AUTH_DEBUG=1/true/yes turns it on."""
    return flag or os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes")


def configure_logging(debug: bool = False, log_level: str = "WARNING") -> None:
    """Send package logs to stderr.

    ``config`` and ``authorize-url`` stay quiet at WARNING so their output can
    be piped; ``serve`` asks for INFO to show each sign-in attempt.
    """
    level = logging.DEBUG if debug_requested(debug) else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    # force=True replaces handlers left by an earlier invocation in the same process
    logging.basicConfig(level=level, handlers=[handler], force=True)


def load_resolved_config(
    config_path: Path | None, overrides: dict[str, Any] | None = None
) -> StackOverflowConfigModel:
    """Read the YAML file (if any) and resolve it against defaults and environment."""
    return resolve_config(load_config(config_path), overrides)


def output_result(result: Any, json_output: bool = False) -> None:
    if json_output:
        click.echo(json.dumps({"status": "ok", "result": result}, indent=2, default=str))
        return

    if isinstance(result, dict):
        width = max((len(key) for key in result), default=0)
        for key, value in result.items():
            click.echo(f"{click.style(key.ljust(width), fg='cyan')}  {value}")
    else:
        click.echo(result)


def output_error(error: Exception, json_output: bool = False, debug: bool = False) -> None:
    """Report ``error`` and abort the command with exit code 1."""
    payload: dict[str, Any] = {"status": "error", "error": str(error)}
    if debug:
        payload["type"] = type(error).__name__
        payload["traceback"] = traceback.format_exc()

    if json_output:
        click.echo(json.dumps(payload, indent=2))
    else:
        click.secho(f"Error: {error}", fg="red", err=True)
        if debug:
            click.echo(payload["traceback"], err=True)

    raise click.Abort()
