"""Contracts and shared types for the stackoverflow-auth strategy.

Every record a callback produces lives here, together with the two
exceptions used across the package.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from stackoverflow_auth.models import AuthBaseModel


class ConfigError(ValueError):
    """Configuration is missing a required key or is malformed.

    Raised at startup or first use and never retried.
    """


class ProviderError(Exception):
    """Standardized provider error with HTTP-style status information."""

    def __init__(self, error: str, description: str | None = None, status_code: int = 400):
        super().__init__(description or error)
        self.error = error
        self.description = description
        self.status_code = status_code


class OAuthToken(AuthBaseModel):
    """Token returned by the provider's token endpoint.

    ``access_token`` is ``None`` when the provider answered with an OAuth error;
    the error code and description are then found in ``other_params``.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: int | None = None
    token_type: str | None = "Bearer"
    other_params: dict[str, Any] = Field(default_factory=dict)


class AuthError(AuthBaseModel):
    """A normalized ``(code, description)`` failure."""

    code: str
    description: str


class Credentials(AuthBaseModel):
    token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    expires: bool = False
    token_type: str | None = None
    scopes: list[str] = Field(default_factory=list)


class Info(AuthBaseModel):
    name: str | None = None
    nickname: str | None = None
    email: str | None = None
    location: str | None = None
    image: str | None = None
    urls: dict[str, str | None] = Field(default_factory=dict)


class Extra(AuthBaseModel):
    """Raw provider data kept for callers needing unmapped fields."""

    raw_info: dict[str, Any] = Field(default_factory=dict)


class Auth(AuthBaseModel):
    """Successful authentication result handed to the application."""

    provider: str
    strategy: str
    #: Stack Exchange account_id as a string, e.g. "42" for account 42.
    uid: str
    credentials: Credentials
    info: Info
    extra: Extra


class Failure(AuthBaseModel):
    """Failed authentication; ``errors`` is never empty."""

    provider: str
    strategy: str
    errors: list[AuthError]


__all__ = [
    "Auth",
    "AuthError",
    "ConfigError",
    "Credentials",
    "Extra",
    "Failure",
    "Info",
    "OAuthToken",
    "ProviderError",
]
