"""Stack Exchange / StackOverflow authentication strategy.

Register the strategy with the auth routes::

    from starlette.applications import Starlette
    from stackoverflow_auth import StackOverflowStrategy, create_auth_routes
    from stackoverflow_auth.config import load_config

    strategy = StackOverflowStrategy(
        stored_config=load_config(),
        default_scope="read_inbox",
    )
    app = Starlette(routes=create_auth_routes([strategy]))

The request phase honours a ``scope`` query parameter (falling back to
``default_scope``) and forwards a ``state`` parameter to the provider::

    /auth/stackoverflow?scope=read_inbox,no_expiry&state=abc

Set ``send_redirect_uri: false`` when a reverse proxy terminates TLS and the
callback URL the app computes would not match the one registered with Stack
Exchange.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, ValidationError

from stackoverflow_auth.config import StackOverflowConfigModel, resolve_config
from stackoverflow_auth.contracts import (
    Credentials,
    Extra,
    Info,
    OAuthToken,
    ProviderError,
)
from stackoverflow_auth.models import AuthBaseModel
from stackoverflow_auth.oauth import StackOverflowOAuthClient
from stackoverflow_auth.url_utils import URLBuilder

from .base import AuthFlow, Strategy

logger = logging.getLogger(__name__)

PROFILE_PATH = "/2.2/me"

TOKEN_KEY = "stackoverflow_token"
USER_KEY = "stackoverflow_user"
RAW_USER_KEY = "stackoverflow_raw_user"


class StackExchangeUserModel(AuthBaseModel):
    """One entry of the ``items`` list returned by ``/me``.

    ``account_id`` is the network-wide Stack Exchange account; ``user_id`` is
    the per-site user and differs between stackoverflow, superuser, etc.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    account_id: int | None = None
    user_id: int | None = None
    display_name: str | None = None
    location: str | None = None
    profile_image: str | None = None
    website_url: str | None = None
    link: str | None = None


class _MeResponse(AuthBaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    items: list[dict[str, Any]] = []


class StackOverflowStrategy(Strategy):
    """Authenticate users through Stack Exchange OAuth2."""

    name = "stackoverflow"

    def __init__(
        self,
        provider: str = "stackoverflow",
        *,
        config: StackOverflowConfigModel | None = None,
        stored_config: Any = None,
        **overrides: Any,
    ):
        """Create the strategy.

        Configuration is resolved on first use unless ``config`` is given.

        Args:
            provider: Name the strategy is mounted under (``/auth/<provider>``).
            config: Already resolved configuration.
            stored_config: Stored configuration mapping, see
                :func:`~stackoverflow_auth.config.load_config`.
            **overrides: Per-provider overrides, e.g. ``default_scope``.
        """
        super().__init__(provider)
        self._config = config
        self._stored_config = stored_config
        self._overrides: Mapping[str, Any] = overrides
        self._oauth_client: StackOverflowOAuthClient | None = None

    @property
    def config(self) -> StackOverflowConfigModel:
        if self._config is None:
            self._config = resolve_config(self._stored_config, self._overrides)
        return self._config

    @property
    def oauth_client(self) -> StackOverflowOAuthClient:
        if self._oauth_client is None:
            self._oauth_client = StackOverflowOAuthClient(self.config)
        return self._oauth_client

    def callback_url(self, flow: AuthFlow) -> str:
        builder = URLBuilder(trust_proxy=self.config.trust_proxy)
        return builder.build_callback_url(flow.request, flow.callback_path)

    # ── request phase ────────────────────────────────────────────────────────
    async def handle_request(self, flow: AuthFlow) -> None:
        """Redirect to the Stack Exchange authorize page."""
        scope = flow.params.get("scope") or self.config.default_scope
        redirect_uri = self.callback_url(flow) if self.config.send_redirect_uri else None
        url = self.oauth_client.authorize_url(
            scope=scope,
            redirect_uri=redirect_uri,
            state=flow.params.get("state"),
        )
        logger.info(
            "Redirecting to Stack Exchange authorize endpoint",
            extra={"provider": self.provider, "send_redirect_uri": redirect_uri is not None},
        )
        flow.redirect(url)

    # ── callback phase ───────────────────────────────────────────────────────
    async def handle_callback(self, flow: AuthFlow) -> None:
        """Exchange the code for a token, then fetch the user.

        Failures are recorded on the flow; nothing is raised.
        """
        code = flow.params.get("code")
        if not code:
            provider_error = flow.params.get("error")
            if provider_error:
                description = flow.params.get("error_description") or provider_error
                flow.set_errors([self.error(provider_error, description)])
            else:
                flow.set_errors([self.error("missing_code", "No code received")])
            return

        redirect_uri = (
            self.callback_url(flow) if self.config.send_redirect_uri else self.config.redirect_uri
        )
        try:
            token = await self.oauth_client.get_token(code=code, redirect_uri=redirect_uri)
        except ProviderError as exc:
            flow.set_errors([self.error(exc.error, exc.description or exc.error)])
            return

        if token.access_token is None:
            error = token.other_params.get("error")
            description = token.other_params.get("error_description")
            flow.set_errors(
                [
                    self.error(
                        str(error or "OAuth2"),
                        str(description or "No access_token in response"),
                    )
                ]
            )
            return

        await self._fetch_user(flow, token)

    def handle_cleanup(self, flow: AuthFlow) -> None:
        """Clear the raw Stack Exchange token and user from the flow."""
        flow.put_private(TOKEN_KEY, None)
        flow.put_private(USER_KEY, None)
        flow.put_private(RAW_USER_KEY, None)

    async def _fetch_user(self, flow: AuthFlow, token: OAuthToken) -> None:
        flow.put_private(TOKEN_KEY, token)
        try:
            resp = await self.oauth_client.get(token, PROFILE_PATH)
        except ProviderError as exc:
            flow.set_errors([self.error("OAuth2", exc.description or exc.error)])
            return

        status_code = resp.status_code
        if status_code == 401:
            flow.set_errors([self.error("token", "unauthorized")])
            return
        if not 200 <= status_code <= 399:
            logger.warning(
                "Stack Exchange profile endpoint returned unexpected status",
                extra={
                    "provider": self.provider,
                    "endpoint": PROFILE_PATH,
                    "status_code": status_code,
                },
            )
            flow.set_errors(
                [self.error("OAuth2", f"Unexpected status {status_code} from profile endpoint")]
            )
            return

        try:
            me = _MeResponse.model_validate(resp.json())
        except ValueError:
            # Covers JSON decoding and pydantic ValidationError.
            flow.set_errors([self.error("OAuth2", "Invalid profile response")])
            return

        if not me.items:
            flow.set_errors([self.error("no_user", "No user profile returned")])
            return

        raw_user = me.items[0]
        try:
            user = StackExchangeUserModel.model_validate(raw_user)
        except ValidationError:
            flow.set_errors([self.error("OAuth2", "Invalid profile response")])
            return
        if user.account_id is None:
            flow.set_errors([self.error("no_user", "Profile has no account_id")])
            return

        flow.put_private(USER_KEY, user)
        flow.put_private(RAW_USER_KEY, raw_user)

    # ── field mappers ────────────────────────────────────────────────────────
    def uid(self, flow: AuthFlow) -> str:
        """Return the global Stack Exchange account id, never the per-site user id."""
        user: StackExchangeUserModel = flow.get_private(USER_KEY)
        return str(getattr(user, self.config.uid_field))

    def credentials(self, flow: AuthFlow) -> Credentials:
        token: OAuthToken = flow.get_private(TOKEN_KEY)
        scope_string = token.other_params.get("scope") or ""
        scopes = str(scope_string).split(",") if scope_string else []

        return Credentials(
            token=token.access_token or "",
            refresh_token=token.refresh_token,
            expires_at=token.expires_at,
            expires=token.expires_at is not None,
            token_type=token.token_type,
            scopes=scopes,
        )

    def info(self, flow: AuthFlow) -> Info:
        user: StackExchangeUserModel = flow.get_private(USER_KEY)
        return Info(
            name=user.display_name,
            # Stack Exchange has no handle; the profile link's slug is not one.
            nickname=None,
            # Not exposed by the API.
            email=None,
            location=user.location,
            image=user.profile_image,
            urls={"website_url": user.website_url, "link": user.link},
        )

    def extra(self, flow: AuthFlow) -> Extra:
        return Extra(
            raw_info={
                "token": flow.get_private(TOKEN_KEY),
                "user": flow.get_private(RAW_USER_KEY),
            }
        )
