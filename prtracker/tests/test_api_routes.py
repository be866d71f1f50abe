import json
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from prtracker.api.main import app
from prtracker.api.session import get_gateway


@pytest.fixture
def upstream():
    """Requests seen by the fake GitHub, plus the answer to give."""
    state = {"requests": [], "respond": lambda request: httpx.Response(200, json={})}

    def handler(request):
        state["requests"].append(request)
        return state["respond"](request)

    state["handler"] = handler
    return state


@pytest.fixture
def client(make_gateway, upstream):
    gateway = make_gateway(upstream["handler"])
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_welcome(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "live" in response.json()["message"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


# --- Session endpoints ---


def test_set_token_sets_cookies(client):
    response = client.post(
        "/api/auth-set-token", json={"access_token": "ghp_abc", "auth_method": "token"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    cookies = response.headers.get_list("set-cookie")
    token_cookie = next(c for c in cookies if c.startswith("github_access_token="))
    method_cookie = next(c for c in cookies if c.startswith("auth_method="))
    assert "ghp_abc" in token_cookie
    assert "HttpOnly" in token_cookie
    assert "SameSite=lax" in token_cookie
    assert "Path=/" in token_cookie
    assert "Max-Age=2592000" in token_cookie
    assert "token" in method_cookie


def test_set_token_requires_access_token(client):
    response = client.post("/api/auth-set-token", json={"auth_method": "oauth"})

    assert response.status_code == 400
    assert response.json()["error"] == "access_token is required"


def test_clear_token_expires_cookies(client):
    response = client.post("/api/auth-clear-token")

    assert response.json() == {"success": True}
    cookies = response.headers.get_list("set-cookie")
    assert len(cookies) == 2
    assert all("Max-Age=0" in cookie for cookie in cookies)


def test_auth_status(client):
    anonymous = client.get("/api/auth-status").json()
    signed_in = client.get(
        "/api/auth-status",
        headers={"Cookie": "github_access_token=ghp_abc; auth_method=token"},
    ).json()

    assert anonymous == {"authenticated": False, "auth_method": "oauth"}
    assert signed_in == {"authenticated": True, "auth_method": "token"}


# --- Proxy endpoints ---


def test_proxy_uses_cookie_token(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(200, json={"login": "octocat"})

    response = client.get(
        "/api/github-proxy/user?per_page=5",
        headers={"Cookie": "github_access_token=ghp_abc", "Authorization": "Bearer other"},
    )

    assert response.status_code == 200
    assert response.json() == {"login": "octocat"}
    sent = upstream["requests"][0]
    assert str(sent.url) == "https://api.github.test/user?per_page=5"
    assert sent.headers["Authorization"] == "Bearer ghp_abc"


def test_proxy_falls_back_to_authorization_header(client, upstream):
    client.get("/api/github-proxy/user", headers={"Authorization": "Bearer header-token"})

    assert upstream["requests"][0].headers["Authorization"] == "Bearer header-token"


def test_proxy_relays_empty_created_body(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(201)

    response = client.post("/api/github-proxy/repos/octo/app/check-runs/1/rerequest")

    assert response.status_code == 201
    assert response.content == b""
    assert upstream["requests"][0].method == "POST"


def test_proxy_forwards_json_body(client, upstream):
    client.patch("/api/github-proxy/repos/octo/app/pulls/1", json={"title": "New"})

    sent = upstream["requests"][0]
    assert sent.method == "PATCH"
    assert json.loads(sent.content) == {"title": "New"}


def test_proxy_wraps_upstream_errors(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(
        404, json={"message": "Not Found"}
    )

    response = client.get("/api/github-proxy/repos/octo/missing")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "GitHub API error: 404 Not Found"
    assert json.loads(body["details"]) == {"message": "Not Found"}
    assert body["url"] == "https://api.github.test/repos/octo/missing"


def test_proxy_transport_failure(client, upstream):
    def respond(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream["respond"] = respond

    response = client.get("/api/github-proxy/user")

    assert response.status_code == 500
    assert response.json()["error"] == "GitHub API request failed"


def test_graphql_forwards_body_verbatim(client, upstream):
    document = b'{"query": "{ viewer { login } }"}'
    upstream["respond"] = lambda request: httpx.Response(
        200, json={"data": {"viewer": {"login": "octocat"}}}
    )

    response = client.post(
        "/api/github-graphql",
        content=document,
        headers={"Cookie": "github_access_token=ghp_abc"},
    )

    assert response.json() == {"data": {"viewer": {"login": "octocat"}}}
    sent = upstream["requests"][0]
    assert sent.url.path == "/graphql"
    assert sent.content == document


def test_graphql_upstream_error(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(502, text="bad gateway")

    response = client.post("/api/github-graphql", content=b"{}")

    assert response.status_code == 502
    assert response.json() == {
        "error": "GitHub GraphQL API error: 502 Bad Gateway",
        "details": "bad gateway",
    }


# --- Device flow ---


def test_device_code(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(
        200, json={"device_code": "dev", "user_code": "ABCD-1234"}
    )

    response = client.post(
        "/api/github-device-code", json={"client_id": "client-1", "scope": "repo workflow"}
    )

    assert response.json()["user_code"] == "ABCD-1234"
    sent = upstream["requests"][0]
    assert str(sent.url) == "https://github.test/login/device/code"
    assert b"client_id=client-1" in sent.content


def test_device_code_upstream_error(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(401, text="bad client")

    response = client.post("/api/github-device-code", json={"client_id": "client-1"})

    assert response.status_code == 401
    assert response.json()["error"] == "GitHub device code API error: 401"


@patch("prtracker.config.settings.GITHUB_CLIENT_ID", "")
def test_device_code_requires_client_id(client, upstream):
    response = client.post("/api/github-device-code", json={"scope": "repo"})

    assert response.status_code == 400
    assert upstream["requests"] == []


def test_device_token_relays_pending(client, upstream):
    upstream["respond"] = lambda request: httpx.Response(
        200, json={"error": "authorization_pending"}
    )

    response = client.post(
        "/api/github-device-token", json={"client_id": "client-1", "device_code": "dev"}
    )

    assert response.json() == {"error": "authorization_pending"}
    assert b"grant_type=urn" in upstream["requests"][0].content


def test_device_token_requires_device_code(client):
    response = client.post("/api/github-device-token", json={"client_id": "client-1"})

    assert response.status_code == 400
    assert response.json()["error"] == "device_code is required"


def test_lifespan_opens_and_closes_gateway():
    with TestClient(app):
        assert app.state.gateway is not None
    assert app.state.gateway is None
