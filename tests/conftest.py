"""
Global pytest configuration and fixtures.
"""

from typing import Any

import pytest

from stackoverflow_auth.config import StackOverflowConfigModel, resolve_config

ENV_VARS = (
    "STACKOVERFLOW_CLIENT_ID",
    "STACKOVERFLOW_CLIENT_SECRET",
    "STACKOVERFLOW_API_KEY",
    "STACKOVERFLOW_AUTH_CONFIG",
    "STACKOVERFLOW_AUTH_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials in the environment out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def stored_config() -> dict[str, Any]:
    return {"client_id": "cid", "client_secret": "secret", "api_key": "key"}


@pytest.fixture
def config(stored_config: dict[str, Any]) -> StackOverflowConfigModel:
    return resolve_config(stored_config, environ={})
