"""Strategy interface and the request-scoped flow object.

A strategy authenticates a user against one external provider in three
phases:

- **request**: redirect the user agent to the provider (:meth:`Strategy.handle_request`)
- **callback**: turn the provider's answer into a user (:meth:`Strategy.handle_callback`)
- **cleanup**: drop whatever the callback stashed on the flow (:meth:`Strategy.handle_cleanup`)

The phases share an :class:`AuthFlow`. It is created per inbound request and
holds the request, the private values a strategy keeps between its callback
and its field mappers, and the errors recorded so far.

:meth:`Strategy.run_callback` drives the callback phase. It returns either a
complete :class:`~stackoverflow_auth.contracts.Auth` or a
:class:`~stackoverflow_auth.contracts.Failure`, never a partial result, and
runs cleanup on every path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from starlette.datastructures import QueryParams
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from stackoverflow_auth.contracts import Auth, AuthError, Credentials, Extra, Failure, Info

logger = logging.getLogger(__name__)


class AuthFlow:
    """State of one authentication attempt, scoped to a single request."""

    def __init__(self, request: Request, *, provider: str, callback_path: str):
        self.request = request
        self.provider = provider
        self.callback_path = callback_path
        self.private: dict[str, Any] = {}
        self.errors: list[AuthError] = []
        self.response: Response | None = None

    @property
    def params(self) -> QueryParams:
        return self.request.query_params

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def put_private(self, key: str, value: Any) -> None:
        self.private[key] = value

    def get_private(self, key: str) -> Any:
        return self.private.get(key)

    def set_errors(self, errors: list[AuthError]) -> None:
        self.errors = list(errors)

    def redirect(self, url: str) -> Response:
        self.response = RedirectResponse(url=url, status_code=302)
        return self.response


class Strategy(ABC):
    """Abstract base class for authentication strategies.

    Subclasses implement the request and callback phases plus the four field
    mappers. The mappers are only called after a callback that recorded no
    errors.
    """

    #: Strategy identifier reported on Auth and Failure records.
    name: str = "strategy"

    def __init__(self, provider: str):
        self.provider = provider

    def default_callback_path(self) -> str:
        return f"/auth/{self.provider}/callback"

    def new_flow(self, request: Request, callback_path: str | None = None) -> AuthFlow:
        return AuthFlow(
            request,
            provider=self.provider,
            callback_path=callback_path or self.default_callback_path(),
        )

    @staticmethod
    def error(code: str, description: str) -> AuthError:
        return AuthError(code=code, description=description)

    # ── phases ───────────────────────────────────────────────────────────────
    @abstractmethod
    async def handle_request(self, flow: AuthFlow) -> None:
        """Redirect the user agent to the provider (via ``flow.redirect``)."""

    @abstractmethod
    async def handle_callback(self, flow: AuthFlow) -> None:
        """Process the provider callback, storing results or errors on the flow."""

    def handle_cleanup(self, flow: AuthFlow) -> None:
        """Clear private values stored during the callback."""
        flow.private.clear()

    # ── field mappers ────────────────────────────────────────────────────────
    @abstractmethod
    def uid(self, flow: AuthFlow) -> str: ...

    @abstractmethod
    def credentials(self, flow: AuthFlow) -> Credentials: ...

    @abstractmethod
    def info(self, flow: AuthFlow) -> Info: ...

    @abstractmethod
    def extra(self, flow: AuthFlow) -> Extra: ...

    # ── drivers ──────────────────────────────────────────────────────────────
    async def run_request(self, request: Request, callback_path: str | None = None) -> Response:
        """Run the request phase and return the redirect response."""
        flow = self.new_flow(request, callback_path)
        await self.handle_request(flow)
        if flow.response is None:
            raise RuntimeError(f"Strategy {self.name!r} did not produce a response")
        return flow.response

    async def run_callback(
        self, request: Request, callback_path: str | None = None
    ) -> Auth | Failure:
        """Run the callback phase, build the result, then clean up."""
        flow = self.new_flow(request, callback_path)
        try:
            await self.handle_callback(flow)
            if flow.failed:
                logger.info(
                    "Authentication failed",
                    extra={
                        "provider": self.provider,
                        "errors": [e.code for e in flow.errors],
                    },
                )
                return Failure(provider=self.provider, strategy=self.name, errors=flow.errors)
            return Auth(
                provider=self.provider,
                strategy=self.name,
                uid=self.uid(flow),
                credentials=self.credentials(flow),
                info=self.info(flow),
                extra=self.extra(flow),
            )
        finally:
            self.handle_cleanup(flow)
