"""OAuth2 client for Stack Exchange.

:class:`StackOverflowOAuthClient` covers the three outbound interactions of
the authorization-code flow:

- building the authorize URL the user is redirected to,
- exchanging the authorization code for a token,
- calling the Stack Exchange API on behalf of the user.

Every API call carries the ``site``, ``key``, ``filter`` and ``access_token``
query parameters Stack Exchange expects; the bearer token is not sent as a
header.

Usage outside the strategy's request/callback phases::

    from stackoverflow_auth.config import resolve_config
    from stackoverflow_auth.oauth import StackOverflowOAuthClient

    client = StackOverflowOAuthClient(resolve_config({"api_key": "...", ...}))
    url = client.authorize_url(scope="read_inbox", state="xyz")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

import httpx
from pydantic import ConfigDict, ValidationError

from stackoverflow_auth import http
from stackoverflow_auth.config import StackOverflowConfigModel
from stackoverflow_auth.contracts import OAuthToken, ProviderError
from stackoverflow_auth.models import AuthBaseModel

logger = logging.getLogger(__name__)

PROVIDER_NAME = "stackoverflow"


class _TokenResponse(AuthBaseModel):
    """Token endpoint response (successful or error).

    Unknown fields (``scope``, ``error``, ...) are kept as extras and end up in
    :attr:`OAuthToken.other_params`.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    # Stack Exchange sends "expires"; standard OAuth2 servers send "expires_in".
    expires_in: int | None = None
    expires: int | None = None


class StackOverflowOAuthClient:
    """Stack Exchange OAuth2 client that uses real HTTP calls."""

    provider_name = PROVIDER_NAME

    def __init__(self, config: StackOverflowConfigModel):
        self.config = config
        self.client_id = config.client_id
        self.client_secret = config.client_secret

    def authorize_url(
        self,
        *,
        scope: str,
        redirect_uri: str | None = None,
        state: str | None = None,
    ) -> str:
        """Construct the provider authorize URL.

        ``redirect_uri`` is omitted from the URL entirely when None.
        """
        params: list[tuple[str, str]] = [("client_id", self.client_id)]
        if redirect_uri is not None:
            params.append(("redirect_uri", redirect_uri))
        params.append(("response_type", "code"))
        params.append(("scope", scope))
        if state is not None:
            params.append(("state", state))
        query_string = urlencode(params, doseq=True)
        return f"{self.config.authorize_url}?{query_string}"

    async def get_token(self, *, code: str, redirect_uri: str) -> OAuthToken:
        """Exchange an authorization code for a token.

        An OAuth error answered by the provider is not raised: it is returned
        as a token without ``access_token`` whose ``other_params`` carry
        ``error`` and ``error_description``.

        Raises:
            ProviderError: On transport failures or an unparseable response.
        """
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": redirect_uri,
        }
        try:
            async with http.create_http_client() as client:
                resp = await client.post(
                    self.config.token_url,
                    data=payload,
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "Accept": "application/json",
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "Stack Exchange token request failed",
                extra={"provider": self.provider_name, "endpoint": "token"},
            )
            raise ProviderError("OAuth2", str(exc) or exc.__class__.__name__, 502) from exc

        data = self._decode_token_body(resp)
        if resp.status_code >= 400 and "error" not in data:
            logger.warning(
                "Stack Exchange token endpoint returned an error status",
                extra={
                    "provider": self.provider_name,
                    "endpoint": "token",
                    "status_code": resp.status_code,
                },
            )
            raise ProviderError(
                "OAuth2",
                f"Token endpoint returned status {resp.status_code}",
                status_code=resp.status_code,
            )

        return self._build_token(data, status_code=resp.status_code)

    async def get(self, token: OAuthToken, path: str) -> httpx.Response:
        """Perform an authenticated GET against the Stack Exchange API.

        Args:
            token: Token holding the access token to send.
            path: API path, e.g. ``/2.2/me``.

        Raises:
            ProviderError: On transport failures; the reason is the
                underlying error text.
        """
        params = {
            "site": self.config.stackexchange_site,
            "key": self.config.api_key,
            "filter": self.config.filter,
            "access_token": token.access_token or "",
        }
        url = f"{self.config.server_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            async with http.create_http_client() as client:
                resp = await client.get(url, params=params, headers={"Accept": "application/json"})
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "Stack Exchange API request failed",
                extra={"provider": self.provider_name, "endpoint": path},
            )
            raise ProviderError("OAuth2", str(exc) or exc.__class__.__name__, 502) from exc
        return resp

    # ── helpers ──────────────────────────────────────────────────────────────
    def _decode_token_body(self, resp: httpx.Response) -> dict[str, Any]:
        content_type = resp.headers.get("content-type", "")
        try:
            if "json" in content_type or not content_type:
                data = resp.json()
            else:
                data = dict(parse_qsl(resp.text))
        except ValueError:
            # Stack Exchange's non-json endpoint answers form-encoded bodies
            # with a text/plain content type.
            data = dict(parse_qsl(resp.text))

        if not isinstance(data, dict):
            raise ProviderError(
                "OAuth2", "Invalid token response payload", status_code=resp.status_code
            )
        return self._normalize_error(data)

    @staticmethod
    def _normalize_error(data: dict[str, Any]) -> dict[str, Any]:
        # Stack Exchange nests errors as {"error": {"type": ..., "message": ...}}.
        error = data.get("error")
        if isinstance(error, Mapping):
            data = dict(data)
            data["error"] = str(error.get("type") or "invalid_request")
            data.setdefault("error_description", error.get("message"))
        return data

    def _build_token(self, data: dict[str, Any], *, status_code: int) -> OAuthToken:
        try:
            parsed = _TokenResponse.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(
                "OAuth2", "Invalid token response payload", status_code=status_code
            ) from exc

        lifetime = parsed.expires_in if parsed.expires_in is not None else parsed.expires
        expires_at = int(time.time()) + lifetime if lifetime else None

        return OAuthToken(
            access_token=parsed.access_token or None,
            refresh_token=parsed.refresh_token,
            expires_at=expires_at,
            token_type=parsed.token_type or "Bearer",
            other_params=dict(parsed.model_extra or {}),
        )
