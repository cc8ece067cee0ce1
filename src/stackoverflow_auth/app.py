"""Demo Starlette application wiring the StackOverflow strategy.

Used by ``stackoverflow-auth serve`` to try the flow end to end against a
registered Stack Exchange app.
"""

import html
import logging

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from stackoverflow_auth.config import StackOverflowConfigModel
from stackoverflow_auth.contracts import Auth, Failure
from stackoverflow_auth.routes import create_auth_routes
from stackoverflow_auth.strategy import StackOverflowStrategy

logger = logging.getLogger(__name__)


async def _index(request: Request) -> Response:
    return HTMLResponse(
        "<h1>stackoverflow-auth</h1>"
        '<p><a href="/auth/stackoverflow">Sign in with Stack Overflow</a></p>'
    )


async def _success(request: Request) -> Response:
    auth: Auth = request.state.auth
    name = html.escape(auth.info.name or "")
    return HTMLResponse(
        f"<h1>Signed in</h1><p>{name} (account {html.escape(auth.uid)})</p>"
        f"<p>Scopes: {html.escape(', '.join(auth.credentials.scopes) or '-')}</p>"
    )


async def _failure(request: Request) -> Response:
    failure: Failure = request.state.auth_failure
    items = "".join(
        f"<li>{html.escape(e.code)}: {html.escape(e.description)}</li>" for e in failure.errors
    )
    return HTMLResponse(f"<h1>Authentication Failed</h1><ul>{items}</ul>", status_code=401)


def create_app(config: StackOverflowConfigModel) -> Starlette:
    strategy = StackOverflowStrategy(config=config)
    routes = [Route("/", _index, methods=["GET"])]
    routes.extend(create_auth_routes([strategy], on_success=_success, on_failure=_failure))
    return Starlette(routes=routes)
