"""
Async transport to GitHub's REST, GraphQL and device-flow endpoints.

Every byte that leaves the process for GitHub goes through GitHubGateway: the
HTTP proxy routes use the raw `send*` methods and relay the answer, while the
typed GitHubClient uses `rest`/`graphql`, which raise on non-2xx answers
and on 2xx bodies that are not the expected JSON.
"""

from typing import Any, Dict, Iterable, Optional, Tuple, Type, Union

import httpx

from prtracker.config import settings
from prtracker.integrations.github.exceptions import (
    MalformedResponseError,
    TransportError,
    UpstreamError,
)
from prtracker.utils.logger import logger

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

QueryParams = Union[Dict[str, Any], Iterable[Tuple[str, Any]], None]


def bearer(token: Optional[str]) -> Optional[str]:
    """Build an Authorization header value for a stored access token."""
    return f"Bearer {token}" if token else None


def raise_for_upstream(response: httpx.Response, label: str = "GitHub API") -> None:
    """Turn a non-2xx GitHub answer into an UpstreamError."""
    if response.is_success:
        return
    message = f"{label} error: {response.status_code} {response.reason_phrase}"
    logger.error(f"{message} ({response.request.url})")
    raise UpstreamError(
        message,
        status_code=response.status_code,
        body=response.text,
        url=str(response.request.url),
    )


def decode_json(
    response: httpx.Response, expected: Union[Type, Tuple[Type, ...]] = (dict, list)
) -> Any:
    """Decode a 2xx body, raising MalformedResponseError unless it is `expected` JSON."""
    url = str(response.request.url)
    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"GitHub returned a non-JSON body ({url}): {e}")
        raise MalformedResponseError(f"Invalid JSON from GitHub: {e}", url=url) from e
    if not isinstance(data, expected):
        logger.error(f"GitHub returned unexpected JSON ({url}): {type(data).__name__}")
        raise MalformedResponseError(
            f"Unexpected JSON from GitHub: {type(data).__name__}", url=url
        )
    return data


class GitHubGateway:
    """Thin authenticated pass-through to GitHub."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_url: str = settings.GITHUB_API_URL,
        oauth_url: str = settings.GITHUB_OAUTH_URL,
        user_agent: str = settings.USER_AGENT,
        timeout: float = settings.REQUEST_TIMEOUT,
    ):
        self.api_url = api_url.rstrip("/")
        self.oauth_url = oauth_url.rstrip("/")
        self.user_agent = user_agent
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    def api_headers(self, authorization: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.user_agent,
        }
        if authorization:
            headers["Authorization"] = authorization
        return headers

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"GitHub request failed: {method} {url}: {e}")
            raise TransportError(str(e) or e.__class__.__name__, url=url) from e

    async def send(
        self,
        method: str,
        path: str,
        *,
        authorization: Optional[str] = None,
        params: QueryParams = None,
        json: Any = None,
    ) -> httpx.Response:
        """Forward one REST call and return GitHub's response untouched."""
        url = f"{self.api_url}/{path.lstrip('/')}"
        logger.info(f"Proxying GitHub API request: {method} {url}")

        headers = self.api_headers(authorization)
        kwargs: Dict[str, Any] = {"headers": headers, "params": params}
        if method.upper() not in ("GET", "HEAD") and json:
            headers["Content-Type"] = "application/json"
            kwargs["json"] = json
        return await self._request(method.upper(), url, **kwargs)

    async def send_graphql(
        self, body: bytes, authorization: Optional[str] = None
    ) -> httpx.Response:
        """Forward a GraphQL document verbatim."""
        url = f"{self.api_url}/graphql"
        logger.info("Proxying GitHub GraphQL request")
        headers = self.api_headers(authorization)
        headers["Content-Type"] = "application/json"
        return await self._request("POST", url, headers=headers, content=body)

    async def rest(
        self,
        method: str,
        path: str,
        *,
        authorization: Optional[str] = None,
        params: QueryParams = None,
        json: Any = None,
    ) -> httpx.Response:
        response = await self.send(
            method, path, authorization=authorization, params=params, json=json
        )
        raise_for_upstream(response)
        return response

    async def graphql(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        authorization: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.api_url}/graphql"
        headers = self.api_headers(authorization)
        response = await self._request(
            "POST",
            url,
            headers=headers,
            json={"query": query, "variables": variables or {}},
        )
        raise_for_upstream(response, "GitHub GraphQL API")
        return decode_json(response, dict)

    async def request_device_code(self, client_id: str, scope: str) -> httpx.Response:
        """Step 1 of the OAuth device flow."""
        return await self._request(
            "POST",
            f"{self.oauth_url}/login/device/code",
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
            data={"client_id": client_id, "scope": scope},
        )

    async def exchange_device_code(
        self, client_id: str, device_code: str
    ) -> httpx.Response:
        """Step 2 of the OAuth device flow: trade the device code for a token."""
        return await self._request(
            "POST",
            f"{self.oauth_url}/login/oauth/access_token",
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
            data={
                "client_id": client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            },
        )
