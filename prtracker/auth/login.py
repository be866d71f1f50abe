"""
Login helpers: GitHub OAuth device flow and personal access token validation.

Both produce an access token plus the auth method tag stored next to it in the
session ("oauth" or "token"). Only "token" sessions may restart CI.

These are public helpers for clients of the service (the dashboard page or
a script). The HTTP routes only relay the device-flow calls to GitHub and
store whatever token the client sends to /api/auth-set-token, so nothing in
the server calls them.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from prtracker.config import settings
from prtracker.integrations.github.client import GitHubClient
from prtracker.integrations.github.exceptions import TransportError, UpstreamError
from prtracker.integrations.github.gateway import (
    GitHubGateway,
    decode_json,
    raise_for_upstream,
)
from prtracker.utils.logger import logger

AUTH_METHOD_OAUTH = "oauth"
AUTH_METHOD_TOKEN = "token"
AUTH_METHODS = (AUTH_METHOD_OAUTH, AUTH_METHOD_TOKEN)

DEVICE_FLOW_SCOPE = "repo workflow"
SLOW_DOWN_INCREMENT = 5
TOKEN_PREFIXES = ("github_pat_", "ghp_")


class DeviceFlowError(Exception):
    """GitHub rejected the device authorization."""


class TokenValidationError(Exception):
    """A personal access token is malformed or was refused by GitHub."""


@dataclass(frozen=True)
class DeviceCode:
    device_code: str
    user_code: str
    verification_uri: str
    interval: int = 5
    expires_in: Optional[int] = None


class DeviceFlowLogin:
    """
    Drives the OAuth device flow.

    Usage:
        login = DeviceFlowLogin(gateway)
        code = await login.start()
        # show code.user_code and code.verification_uri to the user
        token = await login.poll_for_token(code)

    Polling runs in the calling task, so cancelling that task stops it.
    """

    def __init__(
        self,
        gateway: GitHubGateway,
        client_id: str = settings.GITHUB_CLIENT_ID,
        scope: str = DEVICE_FLOW_SCOPE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not client_id:
            raise DeviceFlowError("GitHub client id is not configured")
        self.gateway = gateway
        self.client_id = client_id
        self.scope = scope
        self._sleep = sleep

    async def start(self) -> DeviceCode:
        response = await self.gateway.request_device_code(self.client_id, self.scope)
        try:
            raise_for_upstream(response, "Device code request")
        except UpstreamError as e:
            raise DeviceFlowError(f"Failed to get device code: {e.status_code}") from e
        data = decode_json(response, dict)
        logger.info(f"Device code issued, verify at {data.get('verification_uri')}")
        return DeviceCode(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            interval=int(data.get("interval", 5)),
            expires_in=data.get("expires_in"),
        )

    async def poll_once(self, device_code: str) -> Dict:
        response = await self.gateway.exchange_device_code(self.client_id, device_code)
        return decode_json(response, dict)

    async def poll_for_token(self, code: DeviceCode) -> str:
        """Poll until the user authorizes; polls once immediately, then every interval."""
        interval = code.interval
        while True:
            data = await self.poll_once(code.device_code)
            if data.get("access_token"):
                logger.info("Device flow authorization complete")
                return data["access_token"]

            error = data.get("error")
            if error == "slow_down":
                interval += SLOW_DOWN_INCREMENT
                logger.debug(f"GitHub asked to slow down, polling every {interval}s")
            elif error != "authorization_pending":
                raise DeviceFlowError(
                    data.get("error_description") or error or "Unknown error"
                )
            await self._sleep(interval)


def validate_token_format(token: str) -> str:
    token = (token or "").strip()
    if not token:
        raise TokenValidationError("Please enter a token")
    if not token.startswith(TOKEN_PREFIXES):
        raise TokenValidationError(
            'Token should start with "github_pat_" (fine-grained) or "ghp_" (classic)'
        )
    return token


async def validate_personal_access_token(gateway: GitHubGateway, token: str) -> Dict:
    """Check a PAT's format, then confirm it against GitHub. Returns the user."""
    token = validate_token_format(token)
    try:
        return await GitHubClient(gateway, token).get_user()
    except UpstreamError as e:
        if e.status_code == 401:
            raise TokenValidationError(
                "Invalid token - check that your token is correct"
            ) from e
        if e.status_code == 403:
            raise TokenValidationError(
                'Insufficient permissions - token needs "Pull requests" and "Metadata" read access'
            ) from e
        raise TokenValidationError(f"Token validation failed: {e}") from e
    except TransportError as e:
        raise TokenValidationError(
            "Network error - check your connection and try again"
        ) from e
