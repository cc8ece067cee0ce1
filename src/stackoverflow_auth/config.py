"""Configuration resolution for the StackOverflow strategy.

Configuration is merged from four sources, later sources winning:

1. static defaults (:data:`DEFAULTS`)
2. environment variables (:data:`ENV_KEYS`)
3. the stored configuration, usually a YAML file loaded by :func:`load_config`
4. per-call overrides

Example config file (``stackoverflow-auth.yml``)::

    stackoverflow:
      client_id: ${STACKOVERFLOW_CLIENT_ID}
      client_secret: ${STACKOVERFLOW_CLIENT_SECRET}
      api_key: ${STACKOVERFLOW_API_KEY}
      default_scope: "read_inbox,no_expiry"
      send_redirect_uri: false

String values of the form ``${VAR}`` are read from the environment. A missing
``api_key``, ``client_id`` or ``client_secret`` is a :class:`ConfigError`.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import ValidationError

from stackoverflow_auth.contracts import ConfigError
from stackoverflow_auth.models import AuthBaseModel

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "STACKOVERFLOW_AUTH_CONFIG"
DEFAULT_CONFIG_FILENAME = "stackoverflow-auth.yml"
CONFIG_SECTION = "stackoverflow"

# "site" means the Stack Exchange site (stackoverflow, superuser, ...), not the
# API host; the API host is "server_url".
DEFAULTS: dict[str, Any] = {
    "stackexchange_site": "stackoverflow",
    "filter": "!9YdnSA07B",
    "server_url": "https://api.stackexchange.com",
    "authorize_url": "https://stackexchange.com/oauth",
    "token_url": "https://stackexchange.com/oauth/access_token",
    "redirect_uri": "http://localhost:4000/auth/stackoverflow/callback",
    "default_scope": "",
    "send_redirect_uri": True,
    "uid_field": "account_id",
    "trust_proxy": False,
}

ENV_KEYS: dict[str, str] = {
    "client_id": "STACKOVERFLOW_CLIENT_ID",
    "client_secret": "STACKOVERFLOW_CLIENT_SECRET",
    "api_key": "STACKOVERFLOW_API_KEY",
}

REQUIRED_KEYS = ("api_key", "client_id", "client_secret")

SECRET_KEYS = frozenset({"client_secret", "api_key"})

ENV_VAR_PATTERN = re.compile(r"^\$\{([A-Za-z0-9_]+)\}$")


class StackOverflowConfigModel(AuthBaseModel):
    """Resolved configuration for the StackOverflow strategy."""

    client_id: str
    client_secret: str
    api_key: str
    stackexchange_site: str
    filter: str
    server_url: str
    authorize_url: str
    token_url: str
    redirect_uri: str
    default_scope: str
    # Disable when a reverse proxy terminates TLS and the callback URL seen by
    # the app would not match the one registered with Stack Exchange.
    send_redirect_uri: bool
    # The global account id; the per-site user_id differs across sites.
    uid_field: Literal["account_id"]
    trust_proxy: bool

    def masked(self) -> dict[str, Any]:
        """Dump the configuration with secrets replaced by asterisks."""
        data = self.model_dump()
        for key in SECRET_KEYS:
            if data.get(key):
                data[key] = "****"
        return data


def _interpolate(key: str, value: Any, environ: Mapping[str, str]) -> Any:
    if not isinstance(value, str):
        return value
    match = ENV_VAR_PATTERN.match(value)
    if not match:
        return value
    var_name = match.group(1)
    resolved = environ.get(var_name)
    if resolved is None:
        raise ConfigError(f"Environment variable not found: {var_name} (referenced by {key!r})")
    return resolved


def resolve_config(
    stored: Any = None,
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> StackOverflowConfigModel:
    """Merge defaults, environment, stored config and overrides.

    Args:
        stored: The stored configuration; must be a mapping (or None).
        overrides: Per-call overrides; win over everything else.
        environ: Environment to read from (defaults to ``os.environ``).

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If ``stored`` is not a mapping, a required key is
            missing, a ``${VAR}`` reference is unset, or a value is invalid.
    """
    if environ is None:
        environ = os.environ

    if stored is None:
        stored = {}
    if not isinstance(stored, Mapping):
        raise ConfigError(
            "StackOverflow strategy configuration is not a key-value mapping, as expected"
        )

    merged: dict[str, Any] = dict(DEFAULTS)
    for key, env_var in ENV_KEYS.items():
        value = environ.get(env_var)
        if value:
            merged[key] = value
    for source in (stored, overrides or {}):
        for key, value in source.items():
            merged[key] = _interpolate(key, value, environ)

    for key in REQUIRED_KEYS:
        if not merged.get(key):
            raise ConfigError(f"{key!r} missing from StackOverflow strategy configuration")

    try:
        return StackOverflowConfigModel.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid StackOverflow strategy configuration: {exc}") from exc


def find_config_file(config_path: Path | None = None) -> Path | None:
    """Locate the config file.

    Looks for, in order: the explicit path, ``STACKOVERFLOW_AUTH_CONFIG``,
    then ``./stackoverflow-auth.yml``. Only an explicit path (or env path)
    that does not exist is an error; the cwd fallback is optional.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            config_path = Path(env_path)
        else:
            candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
            return candidate if candidate.exists() else None

    if not config_path.exists():
        raise ConfigError(f"Config file not found at {config_path}")
    return config_path


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load the stored configuration from YAML.

    The file may hold a top-level ``stackoverflow:`` section or the keys
    directly. Values are returned as-is; ``${VAR}`` references are resolved
    by :func:`resolve_config`.

    Returns:
        The stored configuration mapping, empty if no file was found.
    """
    path = find_config_file(config_path)
    if path is None:
        logger.info("No config file found, using defaults and environment")
        return {}

    logger.debug(f"Loading config from: {path}")
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config file {path}: {e}") from e

    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(
            f"Config file {path} is not a key-value mapping, as expected"
        )

    section = raw.get(CONFIG_SECTION, raw)
    if not isinstance(section, dict):
        raise ConfigError(f"Section {CONFIG_SECTION!r} in {path} is not a key-value mapping")
    return section
