from unittest.mock import AsyncMock

import httpx
import pytest

from prtracker.auth.login import (
    DeviceCode,
    DeviceFlowError,
    DeviceFlowLogin,
    TokenValidationError,
    validate_personal_access_token,
    validate_token_format,
)


def token_responses(*payloads):
    answers = list(payloads)

    def handler(request):
        if request.url.path == "/login/device/code":
            return httpx.Response(
                200,
                json={
                    "device_code": "dev-123",
                    "user_code": "ABCD-1234",
                    "verification_uri": "https://github.com/login/device",
                    "interval": 5,
                },
            )
        return httpx.Response(200, json=answers.pop(0))

    return handler


@pytest.mark.asyncio
async def test_start_returns_device_code(make_gateway):
    login = DeviceFlowLogin(make_gateway(token_responses()), client_id="client-1")

    code = await login.start()

    assert code.user_code == "ABCD-1234"
    assert code.interval == 5


@pytest.mark.asyncio
async def test_poll_until_token_honouring_slow_down(make_gateway):
    sleep = AsyncMock()
    gateway = make_gateway(
        token_responses(
            {"error": "authorization_pending"},
            {"error": "slow_down"},
            {"access_token": "gho_token"},
        )
    )
    login = DeviceFlowLogin(gateway, client_id="client-1", sleep=sleep)

    token = await login.poll_for_token(DeviceCode("dev-123", "ABCD-1234", "https://x", 5))

    assert token == "gho_token"
    assert [call.args[0] for call in sleep.await_args_list] == [5, 10]


@pytest.mark.asyncio
async def test_poll_raises_on_other_errors(make_gateway):
    gateway = make_gateway(
        token_responses({"error": "expired_token", "error_description": "The code expired"})
    )
    login = DeviceFlowLogin(gateway, client_id="client-1", sleep=AsyncMock())

    with pytest.raises(DeviceFlowError, match="The code expired"):
        await login.poll_for_token(DeviceCode("dev-123", "ABCD-1234", "https://x"))


def test_missing_client_id(make_gateway):
    with pytest.raises(DeviceFlowError):
        DeviceFlowLogin(make_gateway(token_responses()), client_id="")


@pytest.mark.parametrize("token", ["", "   ", "gho_oauthtoken", "abc"])
def test_token_format_rejected(token):
    with pytest.raises(TokenValidationError):
        validate_token_format(token)


def test_token_format_accepted():
    assert validate_token_format("  ghp_abc  ") == "ghp_abc"
    assert validate_token_format("github_pat_abc") == "github_pat_abc"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, message",
    [(401, "Invalid token"), (403, "Insufficient permissions"), (500, "Token validation failed")],
)
async def test_token_rejected_by_github(make_gateway, status_code, message):
    gateway = make_gateway(lambda request: httpx.Response(status_code))

    with pytest.raises(TokenValidationError, match=message):
        await validate_personal_access_token(gateway, "ghp_abc")


@pytest.mark.asyncio
async def test_token_network_error(make_gateway):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(TokenValidationError, match="Network error"):
        await validate_personal_access_token(make_gateway(handler), "ghp_abc")


@pytest.mark.asyncio
async def test_valid_token_returns_user(make_gateway):
    def handler(request):
        assert request.headers["Authorization"] == "Bearer ghp_abc"
        return httpx.Response(200, json={"login": "octocat"})

    user = await validate_personal_access_token(make_gateway(handler), "ghp_abc")

    assert user == {"login": "octocat"}
