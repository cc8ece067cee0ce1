from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest
from pytest import MonkeyPatch
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Mount
from starlette.testclient import TestClient

from stackoverflow_auth.app import create_app
from stackoverflow_auth.config import StackOverflowConfigModel
from stackoverflow_auth.routes import create_auth_routes
from stackoverflow_auth.strategy import StackOverflowStrategy
from tests.auth_testkit import FakeAsyncHttpClient, FakeResponse, patch_http_client


@pytest.fixture
def successful_provider(monkeypatch: MonkeyPatch) -> FakeAsyncHttpClient:
    fake_client = FakeAsyncHttpClient(
        post_response=FakeResponse(200, {"access_token": "at", "scope": "read_inbox"}),
        get_response=FakeResponse(
            200, {"items": [{"account_id": 42, "user_id": 7, "display_name": "X"}]}
        ),
    )
    patch_http_client(monkeypatch, fake_client)
    return fake_client


def _client(config: StackOverflowConfigModel, **kwargs: Any) -> TestClient:
    app = Starlette(routes=create_auth_routes([StackOverflowStrategy(config=config)], **kwargs))
    return TestClient(app, base_url="http://testserver", follow_redirects=False)


def test_request_route_redirects_to_provider(config: StackOverflowConfigModel) -> None:
    resp = _client(config).get("/auth/stackoverflow", params={"state": "s1"})

    assert resp.status_code == 302
    location = urlsplit(resp.headers["location"])
    assert location.netloc == "stackexchange.com"
    query = parse_qs(location.query)
    assert query["redirect_uri"] == ["http://testserver/auth/stackoverflow/callback"]
    assert query["state"] == ["s1"]


def test_custom_prefix_changes_callback_url(config: StackOverflowConfigModel) -> None:
    resp = _client(config, prefix="/login/").get("/login/stackoverflow")

    query = parse_qs(urlsplit(resp.headers["location"]).query)
    assert query["redirect_uri"] == ["http://testserver/login/stackoverflow/callback"]


def test_callback_success_json(
    config: StackOverflowConfigModel, successful_provider: FakeAsyncHttpClient
) -> None:
    resp = _client(config).get("/auth/stackoverflow/callback", params={"code": "abc"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["auth"]["uid"] == "42"
    assert body["auth"]["provider"] == "stackoverflow"
    assert body["auth"]["info"]["name"] == "X"
    assert body["auth"]["credentials"]["scopes"] == ["read_inbox"]


def test_callback_failure_json(config: StackOverflowConfigModel) -> None:
    resp = _client(config).get("/auth/stackoverflow/callback")

    assert resp.status_code == 401
    body = resp.json()
    assert body["status"] == "error"
    assert body["failure"]["errors"] == [
        {"code": "missing_code", "description": "No code received"}
    ]


def test_custom_handlers_see_request_state(
    config: StackOverflowConfigModel, successful_provider: FakeAsyncHttpClient
) -> None:
    async def on_success(request: Request) -> Response:
        return PlainTextResponse(f"hello {request.state.auth.uid}")

    async def on_failure(request: Request) -> Response:
        codes = ",".join(e.code for e in request.state.auth_failure.errors)
        return PlainTextResponse(codes, status_code=403)

    client = _client(config, on_success=on_success, on_failure=on_failure)

    ok = client.get("/auth/stackoverflow/callback", params={"code": "abc"})
    assert ok.status_code == 200
    assert ok.text == "hello 42"

    denied = client.get("/auth/stackoverflow/callback", params={"error": "access_denied"})
    assert denied.status_code == 403
    assert denied.text == "access_denied"


@pytest.mark.parametrize("path", ["/auth/github", "/auth/github/callback"])
def test_unknown_provider(config: StackOverflowConfigModel, path: str) -> None:
    resp = _client(config).get(path)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Unknown provider"


def test_demo_app_renders_html(
    config: StackOverflowConfigModel, successful_provider: FakeAsyncHttpClient
) -> None:
    client = TestClient(create_app(config), follow_redirects=False)

    index = client.get("/")
    assert "/auth/stackoverflow" in index.text

    signed_in = client.get("/auth/stackoverflow/callback", params={"code": "abc"})
    assert signed_in.status_code == 200
    assert "account 42" in signed_in.text

    failed = client.get("/auth/stackoverflow/callback")
    assert failed.status_code == 401
    assert "missing_code" in failed.text


def test_mounted_routes_keep_mount_path_in_callback(
    config: StackOverflowConfigModel, successful_provider: FakeAsyncHttpClient
) -> None:
    routes = create_auth_routes([StackOverflowStrategy(config=config)])
    app = Starlette(routes=[Mount("/api", routes=routes)])
    client = TestClient(app, base_url="http://testserver", follow_redirects=False)

    resp = client.get("/api/auth/stackoverflow")
    redirect_uri = parse_qs(urlsplit(resp.headers["location"]).query)["redirect_uri"][0]
    assert redirect_uri == "http://testserver/api/auth/stackoverflow/callback"

    callback = client.get(urlsplit(redirect_uri).path, params={"code": "abc"})
    assert callback.status_code == 200
    assert callback.json()["auth"]["uid"] == "42"
    _, kwargs = successful_provider.post_calls[0]
    assert kwargs["data"]["redirect_uri"] == redirect_uri
