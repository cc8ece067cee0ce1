"""Starlette routes for the request and callback phases.

Mounts every registered strategy at::

    GET {prefix}/{provider}            -> request phase (302 to the provider)
    GET {prefix}/{provider}/callback   -> callback phase

After the callback phase the outcome is available to the application on
``request.state.auth`` (success) or ``request.state.auth_failure`` (failure).
The application's ``on_success`` / ``on_failure`` handler builds the final
response; without handlers a JSON response is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable

from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from stackoverflow_auth.contracts import Auth, Failure
from stackoverflow_auth.strategy.base import Strategy

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


async def _default_success(request: Request) -> Response:
    auth: Auth = request.state.auth
    return JSONResponse({"status": "ok", "auth": auth.model_dump(mode="json")})


async def _default_failure(request: Request) -> Response:
    failure: Failure = request.state.auth_failure
    return JSONResponse(
        {"status": "error", "failure": failure.model_dump(mode="json")}, status_code=401
    )


def create_auth_routes(
    strategies: Iterable[Strategy],
    *,
    on_success: Handler | None = None,
    on_failure: Handler | None = None,
    prefix: str = "/auth",
) -> list[Route]:
    """Build the request and callback routes for the given strategies.

    Args:
        strategies: Strategies to mount, keyed by their ``provider`` name.
        on_success: Called with the request once ``request.state.auth`` is set.
        on_failure: Called with the request once ``request.state.auth_failure`` is set.
        prefix: Path prefix for all routes.

    Returns:
        Routes to pass to ``Starlette(routes=...)`` or ``Mount``.
    """
    registry = {strategy.provider: strategy for strategy in strategies}
    prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
    success_handler = on_success or _default_success
    failure_handler = on_failure or _default_failure

    def _lookup(request: Request) -> Strategy | None:
        return registry.get(request.path_params["provider"])

    def _callback_path(provider: str) -> str:
        return f"{prefix}/{provider}/callback"

    async def request_phase(request: Request) -> Response:
        strategy = _lookup(request)
        if strategy is None:
            return JSONResponse({"status": "error", "error": "Unknown provider"}, status_code=404)
        return await strategy.run_request(request, _callback_path(strategy.provider))

    async def callback_phase(request: Request) -> Response:
        strategy = _lookup(request)
        if strategy is None:
            return JSONResponse({"status": "error", "error": "Unknown provider"}, status_code=404)

        result = await strategy.run_callback(request, _callback_path(strategy.provider))
        if isinstance(result, Failure):
            request.state.auth_failure = result
            return await failure_handler(request)

        logger.info("Authentication succeeded", extra={"provider": strategy.provider})
        request.state.auth = result
        return await success_handler(request)

    logger.info(f"Registering auth routes for providers: {', '.join(registry) or '(none)'}")
    return [
        Route(f"{prefix}/{{provider}}", request_phase, methods=["GET"]),
        Route(f"{prefix}/{{provider}}/callback", callback_phase, methods=["GET"]),
    ]
